"""
Video job endpoints: drafts, queueing, cancel/retry and status.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from faceforge.database import get_db
from faceforge.errors import InvalidTransition, JobError, JobNotFound, ResultFileMissing
from faceforge.models.reference import FaceModel, Voice
from faceforge.schemas.job import (
    VideoCreate,
    VideoUpdate,
    VideoResponse,
    VideoListResponse,
    VideoStatusResponse,
)
from faceforge.services.video_service import VideoService, get_video_service


router = APIRouter(prefix='/videos', tags=['videos'])


def _to_http(error: JobError) -> HTTPException:
    if isinstance(error, (JobNotFound, ResultFileMissing)):
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, InvalidTransition):
        return HTTPException(status_code=409, detail=str(error))
    return HTTPException(status_code=400, detail=str(error))


async def _check_references(db: AsyncSession, model_id, voice_id):
    if model_id is not None and await db.get(FaceModel, model_id) is None:
        raise HTTPException(status_code=404, detail=f'Model not found: {model_id}')
    if voice_id is not None and await db.get(Voice, voice_id) is None:
        raise HTTPException(status_code=404, detail=f'Voice not found: {voice_id}')


@router.get('', response_model=VideoListResponse)
async def list_videos(
    limit: int = Query(default=10, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    name: str = Query(default=''),
    service: VideoService = Depends(get_video_service),
) -> VideoListResponse:
    """
    List video jobs with pagination, newest first.

    Waiting jobs carry a queue_label such as '2 / 5'.
    """
    jobs, total, labels = await service.list_page(limit, offset, name)
    videos = []
    for job in jobs:
        video = VideoResponse.model_validate(job)
        video.queue_label = labels.get(job.id)
        videos.append(video)
    return VideoListResponse(videos=videos, total=total, limit=limit, offset=offset)


@router.post('', response_model=VideoResponse, status_code=201)
async def create_video(
    data: VideoCreate,
    db: AsyncSession = Depends(get_db),
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    """
    Create a draft video job.

    The job does nothing until POST /videos/{id}/generate queues it.
    """
    await _check_references(db, data.model_id, data.voice_id)
    job_id = await service.create_draft_job(
        model_id=data.model_id,
        voice_id=data.voice_id,
        text=data.text,
        name=data.name,
        audio_path=data.audio_path,
    )
    return VideoResponse.model_validate(await service.get_job(job_id))


@router.get('/{job_id}', response_model=VideoResponse)
async def get_video(
    job_id: str,
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    try:
        job = await service.get_job(job_id)
    except JobError as e:
        raise _to_http(e)
    return VideoResponse.model_validate(job)


@router.put('/{job_id}', response_model=VideoResponse)
async def update_video(
    job_id: str,
    data: VideoUpdate,
    db: AsyncSession = Depends(get_db),
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    """Edit a draft. Queued or finished jobs are rejected with 409."""
    await _check_references(db, data.model_id, data.voice_id)
    try:
        job = await service.update_draft(job_id, **data.model_dump(exclude_unset=True))
    except JobError as e:
        raise _to_http(e)
    return VideoResponse.model_validate(job)


@router.delete('/{job_id}', status_code=204)
async def delete_video(
    job_id: str,
    service: VideoService = Depends(get_video_service),
):
    """Delete a job and its generated audio. In-flight jobs must be cancelled first."""
    try:
        await service.delete_job(job_id)
    except JobError as e:
        raise _to_http(e)


@router.post('/{job_id}/generate', response_model=VideoResponse)
async def generate_video(
    job_id: str,
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    """Queue a draft (or failed) job for synthesis."""
    try:
        job = await service.enqueue(job_id)
    except JobError as e:
        raise _to_http(e)
    return VideoResponse.model_validate(job)


@router.post('/{job_id}/cancel', response_model=VideoResponse)
async def cancel_video(
    job_id: str,
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    try:
        job = await service.cancel(job_id)
    except JobError as e:
        raise _to_http(e)
    return VideoResponse.model_validate(job)


@router.post('/{job_id}/retry', response_model=VideoResponse)
async def retry_video(
    job_id: str,
    service: VideoService = Depends(get_video_service),
) -> VideoResponse:
    try:
        job = await service.retry(job_id)
    except JobError as e:
        raise _to_http(e)
    return VideoResponse.model_validate(job)


@router.get('/{job_id}/status', response_model=VideoStatusResponse)
async def get_video_status(
    job_id: str,
    service: VideoService = Depends(get_video_service),
) -> VideoStatusResponse:
    """Status, progress and message; waiting jobs also report their queue position."""
    try:
        status = await service.get_status(job_id)
    except JobError as e:
        raise _to_http(e)
    return VideoStatusResponse(**status)


@router.get('/{job_id}/download')
async def download_video(
    job_id: str,
    service: VideoService = Depends(get_video_service),
):
    """
    Download the rendered video of a completed job.

    Raises:
        404: Job not found, or its video file is missing
        409: Job has not completed
    """
    try:
        job, path = await service.get_result_file(job_id)
    except JobError as e:
        raise _to_http(e)

    filename = f'{job.name or job.id}.mp4'
    return FileResponse(path=path, media_type='video/mp4', filename=filename)
