"""
User-facing job operations for the HTTP layer.
"""
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from fastapi import Request

from faceforge.config import RESULT_DIR
from faceforge.errors import ConcurrentModification, InvalidTransition, JobNotFound, ResultFileMissing
from faceforge.models.job import Job, JobStatus
from faceforge.services import queue_view, state_machine
from faceforge.services.job_store import JobStore
from faceforge.services.media_probe import resolve_result_path

logger = logging.getLogger(__name__)


class VideoService:
    """
    Draft creation, queueing, cancel/retry and status reporting.

    Guards are checked against the stored status and committed with the
    same guard, so an action racing a scheduler tick either applies
    cleanly or raises InvalidTransition.
    """

    def __init__(self, store: JobStore, result_dir: Path = RESULT_DIR):
        self.store = store
        self.result_dir = Path(result_dir)

    async def get_job(self, job_id: str) -> Job:
        job = await self.store.get_by_id(job_id)
        if job is None:
            raise JobNotFound(job_id)
        return job

    async def create_draft_job(
        self,
        model_id: str,
        voice_id: Optional[str],
        text: str,
        name: str = '',
        audio_path: Optional[str] = None,
    ) -> str:
        """Create a job in draft. A supplied audio_path is kept across retries."""
        job = Job(
            name=name,
            model_id=model_id,
            voice_id=voice_id,
            text=text,
            status=JobStatus.draft.value,
            audio_path=audio_path,
            audio_fixed=bool(audio_path),
            progress=0,
        )
        job_id = await self.store.insert(job)
        logger.info('Video created: %s (ID: %s)', name, job_id)
        return job_id

    async def update_draft(self, job_id: str, **fields) -> Job:
        """Edit a job that has not been queued yet."""
        job = await self.get_job(job_id)
        if job.status != JobStatus.draft.value:
            raise InvalidTransition('edit', job.status, 'only drafts can be edited')

        changes = {k: v for k, v in fields.items() if v is not None}
        if 'audio_path' in changes:
            changes['audio_fixed'] = bool(changes['audio_path'])
        try:
            return await self.store.update(job_id, expected_status=JobStatus.draft, **changes)
        except ConcurrentModification as e:
            raise InvalidTransition('edit', e.actual, 'only drafts can be edited') from e

    async def _apply(self, job: Job, action: str, transition: state_machine.Transition) -> Job:
        try:
            return await self.store.update(job.id, expected_status=transition.source, **transition.fields())
        except ConcurrentModification as e:
            raise InvalidTransition(action, e.actual) from e

    async def enqueue(self, job_id: str) -> Job:
        """draft/failed -> waiting."""
        job = await self.get_job(job_id)
        updated = await self._apply(job, 'enqueue', state_machine.enqueue(job))
        logger.info('Video generation queued: ID %s', job_id)
        return updated

    async def cancel(self, job_id: str) -> Job:
        """waiting/processing/pending -> failed. A remote call already running is not interrupted."""
        job = await self.get_job(job_id)
        updated = await self._apply(job, 'cancel', state_machine.cancel(job, now=self.store.now()))
        logger.info('Task %s cancelled', job_id)
        return updated

    async def retry(self, job_id: str) -> Job:
        """failed -> waiting."""
        job = await self.get_job(job_id)
        updated = await self._apply(job, 'retry', state_machine.retry(job))
        logger.info('Task %s queued for retry', job_id)
        return updated

    async def queue_info(self, job: Job) -> tuple:
        """(position, total) for a waiting job, (None, None) otherwise."""
        if job.status != JobStatus.waiting.value:
            return None, None
        waiting = await self.store.list_by_status(JobStatus.waiting)
        return queue_view.queue_position(waiting, job.id), len(waiting)

    async def get_status(self, job_id: str) -> dict:
        job = await self.get_job(job_id)
        position, total = await self.queue_info(job)
        return {
            'id': job.id,
            'status': job.status,
            'progress': job.progress or 0,
            'message': job.message,
            'queue_position': position,
            'total_in_queue': total,
            'result_path': job.result_path,
            'duration': job.duration,
        }

    async def list_by_status(self, status: JobStatus) -> List[Job]:
        return await self.store.list_by_status(status)

    async def get_stats(self) -> dict:
        counts = await self.store.count_by_status()
        counts['total'] = sum(counts.values())
        return counts

    async def get_queue_snapshot(self) -> dict:
        buckets = {
            status: await self.store.list_by_status(status)
            for status in (JobStatus.waiting, JobStatus.processing, JobStatus.pending)
        }
        snapshot = queue_view.build_snapshot(buckets)
        # Listings cover the live buckets; counts cover every status
        snapshot['counts'] = await self.get_stats()
        return snapshot

    async def list_page(self, limit: int, offset: int, name: str = '') -> tuple:
        """Page of jobs plus the queue label text for each waiting job. Returns (jobs, total, labels)."""
        jobs, total = await self.store.list_page(limit, offset, name)
        labels = {}
        if any(j.status == JobStatus.waiting.value for j in jobs):
            waiting = await self.store.list_by_status(JobStatus.waiting)
            for job in jobs:
                position = queue_view.queue_position(waiting, job.id)
                if position is not None:
                    labels[job.id] = queue_view.queue_label(position, len(waiting))
        return jobs, total, labels

    async def get_result_file(self, job_id: str) -> Tuple[Job, Path]:
        """
        Locate the rendered video of a completed job.

        Raises:
            JobNotFound: no such job
            InvalidTransition: the job has not completed
            ResultFileMissing: the render result is gone from disk
        """
        job = await self.get_job(job_id)
        if job.status != JobStatus.completed.value or not job.result_path:
            raise InvalidTransition('download', job.status, 'video is not ready')

        path = resolve_result_path(job.result_path, self.result_dir)
        if not path.is_file():
            logger.warning('Result file for job %s missing: %s', job_id, path)
            raise ResultFileMissing(job_id, path)
        return job, path

    async def delete_job(self, job_id: str):
        """Delete a job that is not in flight, along with generated audio."""
        job = await self.get_job(job_id)
        if state_machine.is_in_flight(job):
            raise InvalidTransition('delete', job.status, 'cancel it first')

        if job.audio_path and not job.audio_fixed and Path(job.audio_path).exists():
            try:
                os.remove(job.audio_path)
            except OSError as e:
                logger.warning('Could not delete audio for job %s: %s', job_id, e)

        await self.store.remove(job_id)
        logger.info('Video deleted: %s', job_id)


def get_video_service(request: Request) -> VideoService:
    """
    Dependency returning the service built at startup.

    Usage:
        @router.get('/videos/{job_id}')
        async def get_video(job_id: str, service: VideoService = Depends(get_video_service)):
            ...
    """
    return request.app.state.video_service
