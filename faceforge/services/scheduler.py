"""
Background scheduler driving jobs through the render pipeline.
"""
import asyncio
import logging
from typing import Optional, Protocol

from faceforge.config import SCHEDULER_INTERVAL
from faceforge.errors import (
    ConcurrentModification,
    JobError,
    MediaProbeFailure,
    ReferenceNotFound,
    RemoteTerminalFailure,
)
from faceforge.models.job import Job, JobStatus
from faceforge.services import state_machine
from faceforge.services.job_store import JobStore
from faceforge.services.media_probe import MediaProbe
from faceforge.services.references import ReferenceLookup
from faceforge.services.render_gateway import RemoteState, RenderGateway
from faceforge.services.state_machine import Transition
from faceforge.services.tts_gateway import TTSGateway

logger = logging.getLogger(__name__)


class Ticker(Protocol):
    """Paces the scheduler loop between ticks."""

    interval: float

    async def wait(self): ...

    def wake(self): ...


class IntervalTicker:
    """Fires every `interval` seconds; wake() cuts the current wait short."""

    def __init__(self, interval: float = SCHEDULER_INTERVAL):
        self.interval = interval
        self._wake = asyncio.Event()

    async def wait(self):
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=self.interval)
        except asyncio.TimeoutError:
            pass
        self._wake.clear()

    def wake(self):
        self._wake.set()


class Scheduler:
    """
    Single-worker control loop.

    Each tick advances at most one job: the in-flight (pending) job is
    polled first, then a job stuck in processing is resumed, and only when
    neither exists is the oldest waiting job promoted and submitted. Ticks
    never overlap, so at most one job is ever processing or pending.
    """

    def __init__(
        self,
        store: JobStore,
        references: ReferenceLookup,
        tts: TTSGateway,
        render: RenderGateway,
        probe: MediaProbe,
        ticker: Optional[Ticker] = None,
    ):
        self.store = store
        self.references = references
        self.tts = tts
        self.render = render
        self.probe = probe
        self._ticker: Ticker = ticker or IntervalTicker()
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running and self._task is not None and not self._task.done()

    async def start(self):
        """Start the background loop; the first tick runs immediately."""
        if self.is_running:
            logger.warning('Scheduler is already running')
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info('Scheduler started with %.1fs interval', self._ticker.interval)

    async def stop(self, timeout: float = 5.0):
        """Stop the loop, letting an in-progress tick finish within timeout."""
        self._running = False
        if self._task:
            self._ticker.wake()
            try:
                await asyncio.wait_for(self._task, timeout=timeout)
            except asyncio.TimeoutError:
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass
            self._task = None
            logger.info('Scheduler stopped')

    async def _run_loop(self):
        while self._running:
            try:
                await self.tick()
            except Exception:
                # Log but don't crash the loop
                logger.exception('Error in scheduler tick')
            if not self._running:
                break
            await self._ticker.wait()

    async def tick(self) -> Optional[str]:
        """
        Run one scheduling step.

        Returns:
            Id of the job that was advanced, or None when there was nothing to do.
        """
        job = await self.store.find_first_by_status(JobStatus.pending)
        if job:
            await self._advance(job, self._poll)
            return job.id

        job = await self.store.find_first_by_status(JobStatus.processing)
        if job:
            logger.info('Resuming job %s left in processing', job.id)
            await self._advance(job, self._process)
            return job.id

        job = await self.store.find_first_by_status(JobStatus.waiting)
        if job is None:
            return None

        in_flight = (
            await self.store.list_by_status(JobStatus.processing)
            + await self.store.list_by_status(JobStatus.pending)
        )
        try:
            job = await self._commit(job, state_machine.promote(job, in_flight))
        except ConcurrentModification as e:
            logger.info('Job %s left the queue before promotion: %s', job.id, e)
            return None

        logger.info('Starting synthesis for waiting job %s', job.id)
        await self._advance(job, self._process)
        return job.id

    async def _advance(self, job: Job, step):
        """
        Run one step for a job, turning any failure into a failed job.

        The failure is only recorded while the job is still in the status
        the step started from; a job cancelled (or cancelled and queued
        again) in the meantime keeps its newer state.
        """
        started_status = job.status
        try:
            await step(job)
        except ConcurrentModification as e:
            logger.warning('Discarding result for job %s: %s', job.id, e)
        except JobError as e:
            logger.error('Job %s failed: %s', job.id, e)
            await self._fail(job.id, started_status, str(e))
        except Exception as e:
            logger.exception('Unexpected error advancing job %s', job.id)
            await self._fail(job.id, started_status, f'Unexpected error: {e}')

    async def _process(self, job: Job):
        """processing: generate audio if needed, then submit to the render service."""
        model = await self.references.get_model_by_id(job.model_id)
        if model is None:
            raise ReferenceNotFound('model', job.model_id)

        if state_machine.needs_audio(job):
            voice_id = job.voice_id or model.voice_id
            voice = await self.references.get_voice_by_id(voice_id)
            if voice is None:
                raise ReferenceNotFound('voice', voice_id)

            logger.debug('Generating audio for job %s with voice %s', job.id, voice.id)
            audio_path = await self.tts.synthesize(voice, job.text)
            job = await self._commit(job, state_machine.audio_ready(job, audio_path))

        result = await self.render.submit(job.audio_path, model.video_path)
        job = await self._commit(job, state_machine.submitted(job, result, now=self.store.now()))
        if job.status == JobStatus.failed.value:
            logger.error('Render submission rejected for job %s: %s', job.id, job.message)

    async def _poll(self, job: Job):
        """pending: poll the render task, completing the job once the result probes."""
        if not job.remote_handle:
            raise RemoteTerminalFailure('Pending job has no render task handle')

        result = await self.render.poll(job.remote_handle)

        if result.state == RemoteState.failed:
            raise RemoteTerminalFailure(result.message or 'Render task failed')

        if result.state == RemoteState.succeeded:
            if not result.result_ref:
                raise RemoteTerminalFailure('Render service reported success without a result file')
            try:
                duration = await self.probe.get_duration(result.result_ref)
            except MediaProbeFailure as e:
                raise MediaProbeFailure(f'Completion handling failed: {e}') from e
            await self._commit(job, state_machine.completed(job, result, duration, now=self.store.now()))
            return

        logger.debug('Job %s rendering: %s%%', job.id, result.progress)
        await self._commit(job, state_machine.polled(job, result, now=self.store.now()))

    async def _fail(self, job_id: str, started_status: str, message: str):
        current = await self.store.get_by_id(job_id)
        if current is None or current.status != started_status:
            # Removed, cancelled or requeued while the step ran
            logger.info('Dropping stale failure for job %s: %s', job_id, message)
            return
        try:
            await self._commit(current, state_machine.fail(current, message, now=self.store.now()))
        except ConcurrentModification as e:
            logger.warning('Could not mark job %s failed: %s', job_id, e)

    async def _commit(self, job: Job, transition: Transition) -> Job:
        updated = await self.store.update(job.id, expected_status=transition.source, **transition.fields())
        if updated.status != job.status:
            logger.info('Job %s: %s -> %s', job.id, job.status, updated.status)
        return updated
