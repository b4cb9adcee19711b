"""
Queue inspection endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, Query

from faceforge.models.job import JobStatus
from faceforge.schemas.job import VideoResponse
from faceforge.schemas.queue import QueueStats, QueueSnapshotResponse
from faceforge.services.video_service import VideoService, get_video_service


router = APIRouter(prefix='/tasks', tags=['tasks'])


@router.get('', response_model=List[VideoResponse])
async def list_tasks(
    status: JobStatus = Query(...),
    service: VideoService = Depends(get_video_service),
) -> List[VideoResponse]:
    """Jobs in one status, oldest first."""
    jobs = await service.list_by_status(status)
    return [VideoResponse.model_validate(job) for job in jobs]


@router.get('/stats', response_model=QueueStats)
async def task_stats(service: VideoService = Depends(get_video_service)) -> QueueStats:
    return QueueStats(**await service.get_stats())


@router.get('/queue', response_model=QueueSnapshotResponse)
async def queue_snapshot(service: VideoService = Depends(get_video_service)) -> QueueSnapshotResponse:
    """Counts per status plus the waiting, processing and pending listings."""
    return QueueSnapshotResponse(**await service.get_queue_snapshot())
