"""
Video Service Tests

Tests for the user actions exposed to the HTTP layer.
"""
import pytest

from faceforge.errors import InvalidTransition, JobNotFound, ResultFileMissing
from faceforge.models.job import JobStatus
from faceforge.services import state_machine
from faceforge.services.render_gateway import SubmitResult

pytestmark = pytest.mark.usefixtures('seeded')


class TestDrafts:

    @pytest.mark.asyncio
    async def test_create_draft(self, video_service):
        job_id = await video_service.create_draft_job('M1', 'V1', 'Hello', name='intro')

        job = await video_service.get_job(job_id)
        assert job.status == 'draft'
        assert job.text == 'Hello'
        assert job.audio_fixed is False

    @pytest.mark.asyncio
    async def test_supplied_audio_marked_fixed(self, video_service):
        job_id = await video_service.create_draft_job('M1', None, 'Hello', audio_path='/uploads/a.wav')

        job = await video_service.get_job(job_id)
        assert job.audio_path == '/uploads/a.wav'
        assert job.audio_fixed is True

    @pytest.mark.asyncio
    async def test_update_draft(self, video_service):
        job_id = await video_service.create_draft_job('M1', 'V1', 'Hello')

        job = await video_service.update_draft(job_id, text='Goodbye', name=None)

        assert job.text == 'Goodbye'

    @pytest.mark.asyncio
    async def test_script_frozen_once_queued(self, video_service, make_job):
        job_id = await make_job()

        with pytest.raises(InvalidTransition):
            await video_service.update_draft(job_id, text='Changed')

    @pytest.mark.asyncio
    async def test_get_missing_job(self, video_service):
        with pytest.raises(JobNotFound):
            await video_service.get_job('missing')


class TestEnqueue:

    @pytest.mark.asyncio
    async def test_enqueue_draft(self, video_service, make_job):
        job_id = await make_job(enqueue=False)

        job = await video_service.enqueue(job_id)

        assert job.status == 'waiting'

    @pytest.mark.asyncio
    async def test_enqueue_twice_rejected(self, video_service, make_job):
        job_id = await make_job()

        with pytest.raises(InvalidTransition):
            await video_service.enqueue(job_id)

    @pytest.mark.asyncio
    async def test_enqueue_missing_job(self, video_service):
        with pytest.raises(JobNotFound):
            await video_service.enqueue('missing')


class TestCancelAndRetry:

    @pytest.mark.asyncio
    async def test_cancel_waiting_job(self, video_service, make_job):
        job_id = await make_job()

        job = await video_service.cancel(job_id)

        assert job.status == 'failed'
        assert job.message == state_machine.CANCELLED_MESSAGE

    @pytest.mark.asyncio
    async def test_cancel_pending_job(self, video_service, make_job, scheduler):
        job_id = await make_job()
        await scheduler.tick()

        job = await video_service.cancel(job_id)

        assert job.status == 'failed'

    @pytest.mark.asyncio
    async def test_cancel_completed_rejected(self, video_service, store, make_job):
        job_id = await make_job()
        await store.update(job_id, status=JobStatus.completed, result_path='r1', duration=1.0)

        with pytest.raises(InvalidTransition):
            await video_service.cancel(job_id)

    @pytest.mark.asyncio
    async def test_cancel_failed_rejected(self, video_service, make_job):
        job_id = await make_job()
        await video_service.cancel(job_id)

        with pytest.raises(InvalidTransition):
            await video_service.cancel(job_id)

    @pytest.mark.asyncio
    async def test_retry_failed_job(self, video_service, make_job, scheduler, mock_render):
        mock_render.submit.return_value = SubmitResult(accepted=True, remote_handle='h1', message='ok')
        job_id = await make_job()
        await scheduler.tick()
        await video_service.cancel(job_id)

        job = await video_service.retry(job_id)

        assert job.status == 'waiting'
        assert job.remote_handle is None
        assert job.audio_path is None
        assert job.progress == 0

    @pytest.mark.asyncio
    async def test_retry_keeps_supplied_audio(self, video_service, make_job):
        job_id = await make_job(audio_path='/uploads/a.wav')
        await video_service.cancel(job_id)

        job = await video_service.retry(job_id)

        assert job.audio_path == '/uploads/a.wav'

    @pytest.mark.asyncio
    async def test_retry_not_failed_rejected(self, video_service, make_job):
        job_id = await make_job()

        with pytest.raises(InvalidTransition):
            await video_service.retry(job_id)


class TestStatus:

    @pytest.mark.asyncio
    async def test_waiting_status_reports_queue_position(self, video_service, make_job):
        await make_job(name='A')
        second = await make_job(name='B')
        await make_job(name='C')

        status = await video_service.get_status(second)

        assert status['status'] == 'waiting'
        assert status['queue_position'] == 2
        assert status['total_in_queue'] == 3

    @pytest.mark.asyncio
    async def test_positions_shift_when_head_promoted(self, video_service, make_job, scheduler):
        await make_job(name='A')
        second = await make_job(name='B')
        third = await make_job(name='C')

        await scheduler.tick()

        assert (await video_service.get_status(second))['queue_position'] == 1
        assert (await video_service.get_status(third))['queue_position'] == 2

    @pytest.mark.asyncio
    async def test_in_flight_status_has_no_queue_position(self, video_service, make_job, scheduler):
        job_id = await make_job()
        await scheduler.tick()

        status = await video_service.get_status(job_id)

        assert status['status'] == 'pending'
        assert status['queue_position'] is None

    @pytest.mark.asyncio
    async def test_stats_and_snapshot(self, video_service, make_job, scheduler):
        await make_job(name='A')
        await make_job(name='B')
        await make_job(name='draft', enqueue=False)
        await scheduler.tick()

        stats = await video_service.get_stats()
        snapshot = await video_service.get_queue_snapshot()

        assert stats['pending'] == 1
        assert stats['waiting'] == 1
        assert stats['draft'] == 1
        assert stats['total'] == 3
        assert snapshot['counts'] == stats
        assert [e['name'] for e in snapshot['waiting']] == ['B']
        assert snapshot['pending'][0]['name'] == 'A'

    @pytest.mark.asyncio
    async def test_list_page_labels_waiting_jobs(self, video_service, make_job):
        first = await make_job(name='A')
        second = await make_job(name='B')

        jobs, total, labels = await video_service.list_page(limit=10, offset=0)

        assert total == 2
        assert labels == {first: '1 / 2', second: '2 / 2'}


class TestResultFile:

    @pytest.mark.asyncio
    async def test_completed_job_resolves_under_result_dir(self, video_service, store, make_job):
        video_service.result_dir.mkdir(parents=True)
        (video_service.result_dir / 'r1.mp4').write_bytes(b'mp4')
        job_id = await make_job()
        await store.update(job_id, status=JobStatus.completed, result_path='r1.mp4', duration=1.0)

        job, path = await video_service.get_result_file(job_id)

        assert job.id == job_id
        assert path == video_service.result_dir / 'r1.mp4'

    @pytest.mark.asyncio
    async def test_unfinished_job_rejected(self, video_service, make_job):
        job_id = await make_job()

        with pytest.raises(InvalidTransition):
            await video_service.get_result_file(job_id)

    @pytest.mark.asyncio
    async def test_missing_file_reported(self, video_service, store, make_job):
        job_id = await make_job()
        await store.update(job_id, status=JobStatus.completed, result_path='gone.mp4', duration=1.0)

        with pytest.raises(ResultFileMissing):
            await video_service.get_result_file(job_id)


class TestDelete:

    @pytest.mark.asyncio
    async def test_delete_removes_generated_audio(self, video_service, make_job, store, tmp_path):
        audio = tmp_path / 'gen.wav'
        audio.write_bytes(b'RIFF')
        job_id = await make_job()
        await video_service.cancel(job_id)
        await store.update(job_id, audio_path=str(audio))

        await video_service.delete_job(job_id)

        assert not audio.exists()
        with pytest.raises(JobNotFound):
            await video_service.get_job(job_id)

    @pytest.mark.asyncio
    async def test_delete_keeps_supplied_audio(self, video_service, make_job, tmp_path):
        audio = tmp_path / 'mine.wav'
        audio.write_bytes(b'RIFF')
        job_id = await make_job(audio_path=str(audio), enqueue=False)

        await video_service.delete_job(job_id)

        assert audio.exists()

    @pytest.mark.asyncio
    async def test_delete_in_flight_rejected(self, video_service, make_job, scheduler):
        job_id = await make_job()
        await scheduler.tick()

        with pytest.raises(InvalidTransition):
            await video_service.delete_job(job_id)
