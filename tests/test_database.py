"""
Database Layer Tests

Tests for SQLite database setup, WAL mode, and the Job model.
"""
import pytest
from datetime import datetime
from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from faceforge.database import BUSY_TIMEOUT_MS
from faceforge.models import IN_FLIGHT_STATUSES
from faceforge.models.job import Job, JobStatus
from faceforge.models.reference import FaceModel, Voice


class TestDatabaseConfiguration:
    """Tests for database configuration."""

    def test_database_url_uses_aiosqlite(self):
        """Test database URL points the async engine at the SQLite file."""
        from faceforge.config import DATABASE_PATH, DATABASE_URL

        assert DATABASE_URL.startswith('sqlite+aiosqlite:///')
        assert str(DATABASE_PATH) in DATABASE_URL

    def test_audio_dir_under_data_dir(self):
        from faceforge.config import AUDIO_DIR, DATA_DIR

        assert AUDIO_DIR.parent == DATA_DIR
        assert AUDIO_DIR.name == 'audio'


class TestWALMode:
    """Tests for SQLite WAL mode."""

    @pytest.mark.asyncio
    async def test_connections_open_in_wal_mode(self, test_engine):
        """Every connection from build_engine is switched to WAL with a busy timeout."""
        async with test_engine.connect() as conn:
            mode = (await conn.execute(text('PRAGMA journal_mode'))).scalar()
            timeout = (await conn.execute(text('PRAGMA busy_timeout'))).scalar()

        assert mode.lower() == 'wal'
        assert timeout == BUSY_TIMEOUT_MS


class TestJobModel:
    """Tests for Job SQLAlchemy model."""

    @pytest.mark.asyncio
    async def test_create_job_defaults(self, test_session: AsyncSession):
        """Test a new job starts as a draft with no render state."""
        job = Job(model_id='M1', text='Hello world')
        test_session.add(job)
        await test_session.commit()

        result = await test_session.execute(select(Job).where(Job.id == job.id))
        saved_job = result.scalar_one()

        assert saved_job.status == JobStatus.draft.value
        assert saved_job.progress == 0
        assert saved_job.audio_fixed is False
        assert saved_job.remote_handle is None
        assert saved_job.result_path is None
        assert saved_job.duration is None

    @pytest.mark.asyncio
    async def test_job_has_uuid_id(self, test_session: AsyncSession):
        """Test job gets a UUID ID automatically."""
        job = Job(model_id='M1', text='Test text')
        test_session.add(job)
        await test_session.commit()

        assert job.id is not None
        assert len(job.id) == 36  # UUID format: 8-4-4-4-12

    @pytest.mark.asyncio
    async def test_job_created_at_auto_populates(self, test_session: AsyncSession):
        job = Job(model_id='M1', text='Test text')
        test_session.add(job)
        await test_session.commit()

        assert isinstance(job.created_at, datetime)

    @pytest.mark.asyncio
    async def test_completed_job_round_trips_result(self, test_session: AsyncSession):
        job = Job(
            model_id='M1',
            text='Test text',
            status=JobStatus.completed.value,
            remote_handle='h1',
            result_path='r1.mp4',
            duration=12.3,
            progress=100,
        )
        test_session.add(job)
        await test_session.commit()

        saved_job = (await test_session.execute(select(Job).where(Job.id == job.id))).scalar_one()
        assert saved_job.result_path == 'r1.mp4'
        assert saved_job.duration == pytest.approx(12.3)
        assert saved_job.remote_handle == 'h1'


class TestReferenceModels:

    @pytest.mark.asyncio
    async def test_face_model_and_voice(self, test_session: AsyncSession):
        voice = Voice(name='Narrator', reference_audio='/v.wav', reference_text='hello')
        test_session.add(voice)
        await test_session.commit()

        model = FaceModel(name='Anchor', video_path='/m.mp4', voice_id=voice.id)
        test_session.add(model)
        await test_session.commit()

        saved = await test_session.get(FaceModel, model.id)
        assert saved.voice_id == voice.id
        assert len(voice.id) == 36


class TestJobStatus:
    """Tests for JobStatus enum."""

    def test_job_status_values(self):
        assert [s.value for s in JobStatus] == [
            'draft', 'waiting', 'processing', 'pending', 'completed', 'failed',
        ]

    def test_job_status_is_string(self):
        """Test JobStatus inherits from str for JSON serialization."""
        assert isinstance(JobStatus.waiting, str)
        assert JobStatus.waiting == 'waiting'

    def test_in_flight_statuses(self):
        assert set(IN_FLIGHT_STATUSES) == {JobStatus.processing, JobStatus.pending}
