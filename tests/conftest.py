"""
Pytest fixtures for testing.
"""
import asyncio
from datetime import datetime, timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from faceforge.models.reference import FaceModel, Voice
from faceforge.database import build_engine, build_session_factory, create_tables, get_db
from faceforge.services.job_store import JobStore
from faceforge.services.media_probe import MediaProbe
from faceforge.services.references import ReferenceLookup
from faceforge.services.render_gateway import RenderGateway, SubmitResult
from faceforge.services.scheduler import Scheduler
from faceforge.services.tts_gateway import TTSGateway
from faceforge.services.video_service import VideoService, get_video_service


class FakeClock:
    """Deterministic clock: every reading is one second after the previous one."""

    def __init__(self, start=datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class ManualTicker:
    """Ticker that only fires when a test calls fire()."""

    interval = 0.0

    def __init__(self):
        self._fires = asyncio.Queue()

    async def wait(self):
        await self._fires.get()

    def fire(self):
        self._fires.put_nowait(True)

    def wake(self):
        self.fire()


@pytest.fixture
def test_db_url(tmp_path):
    """Generate a fresh test database URL per test."""
    return f'sqlite+aiosqlite:///{tmp_path / "test.db"}'


@pytest_asyncio.fixture(scope='function')
async def test_engine(test_db_url):
    """Create a test database engine."""
    engine = build_engine(test_db_url)
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)


@pytest_asyncio.fixture(scope='function')
async def test_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(session_factory, clock):
    return JobStore(session_factory, clock=clock)


@pytest.fixture
def references(session_factory):
    return ReferenceLookup(session_factory)


@pytest_asyncio.fixture
async def seeded(session_factory):
    """Face model M1 and voice V1, with V1 as M1's default voice."""
    async with session_factory() as session:
        session.add(Voice(id='V1', name='Narrator', reference_audio='/voices/v1.wav', reference_text='hi'))
        session.add(FaceModel(id='M1', name='Anchor', video_path='/faces/m1.mp4', voice_id='V1'))
        await session.commit()


@pytest.fixture
def mock_tts():
    """TTS gateway returning audio path 'a1'."""
    tts = AsyncMock(spec=TTSGateway)
    tts.synthesize.return_value = 'a1'
    return tts


@pytest.fixture
def mock_render():
    """Render gateway accepting every submit with handle 'h1'."""
    render = AsyncMock(spec=RenderGateway)
    render.submit.return_value = SubmitResult(accepted=True, remote_handle='h1', message='Task submitted successfully')
    return render


@pytest.fixture
def mock_probe():
    probe = AsyncMock(spec=MediaProbe)
    probe.get_duration.return_value = 12.3
    return probe


@pytest.fixture
def ticker():
    return ManualTicker()


@pytest.fixture
def scheduler(store, references, mock_tts, mock_render, mock_probe, ticker):
    return Scheduler(
        store=store,
        references=references,
        tts=mock_tts,
        render=mock_render,
        probe=mock_probe,
        ticker=ticker,
    )


@pytest.fixture
def video_service(store, tmp_path):
    return VideoService(store, result_dir=tmp_path / 'results')


@pytest_asyncio.fixture
async def client(session_factory, video_service, scheduler):
    """Create a test client wired to the test database and mocked gateways."""
    from server import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_video_service] = lambda: video_service
    app.state.scheduler = scheduler

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url='http://test') as client:
        yield client

    # Clean up
    app.dependency_overrides.clear()
    app.state.scheduler = None


@pytest.fixture
def make_job(video_service):
    """Factory creating a draft job, queued unless enqueue=False."""
    async def _make(text='Hello', model_id='M1', voice_id='V1', name='Job', audio_path=None, enqueue=True):
        job_id = await video_service.create_draft_job(
            model_id=model_id,
            voice_id=voice_id,
            text=text,
            name=name,
            audio_path=audio_path,
        )
        if enqueue:
            await video_service.enqueue(job_id)
        return job_id
    return _make
