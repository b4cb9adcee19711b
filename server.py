#!/usr/bin/env python3
"""
FaceForge FastAPI Server

Orchestrates digital human video synthesis: scripts are voiced by a TTS
service, rendered onto a face model by a remote render service, and
tracked through a single-worker job queue.
"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from faceforge.config import APP_NAME, APP_VERSION, LOG_LEVEL, SERVER_HOST, SERVER_PORT, SCHEDULER_INTERVAL
from faceforge.database import init_db, close_db, async_session_factory
from faceforge.services.job_store import JobStore
from faceforge.services.media_probe import MediaProbe
from faceforge.services.references import ReferenceLookup
from faceforge.services.render_gateway import RenderGateway
from faceforge.services.scheduler import IntervalTicker, Scheduler
from faceforge.services.tts_gateway import TTSGateway
from faceforge.services.video_service import VideoService
from faceforge.routers import health_router, videos_router, tasks_router, models_router, voices_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup:
        - Initialize database and create tables
        - Build the job store, gateways and scheduler
        - Start the scheduler loop

    Shutdown:
        - Stop the scheduler (an in-progress tick is allowed to finish)
        - Close gateway HTTP clients
        - Close database connections
    """
    logger.info('Starting %s v%s...', APP_NAME, APP_VERSION)

    await init_db()

    store = JobStore(async_session_factory)
    tts = TTSGateway()
    render = RenderGateway()
    scheduler = Scheduler(
        store=store,
        references=ReferenceLookup(async_session_factory),
        tts=tts,
        render=render,
        probe=MediaProbe(),
        ticker=IntervalTicker(SCHEDULER_INTERVAL),
    )
    app.state.video_service = VideoService(store)
    app.state.scheduler = scheduler

    await scheduler.start()
    logger.info('Server ready at http://%s:%s', SERVER_HOST, SERVER_PORT)

    yield

    logger.info('Shutting down...')
    await scheduler.stop()
    await tts.aclose()
    await render.aclose()
    await close_db()
    logger.info('Shutdown complete.')


# Create FastAPI application
app = FastAPI(
    title=APP_NAME,
    description='Digital human video synthesis orchestrator.',
    version=APP_VERSION,
    lifespan=lifespan,
)

# Register routers
app.include_router(health_router)
app.include_router(videos_router)
app.include_router(tasks_router)
app.include_router(models_router)
app.include_router(voices_router)


if __name__ == '__main__':
    logging.basicConfig(
        level=LOG_LEVEL,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )
    uvicorn.run(
        app,
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=False,
        log_level=LOG_LEVEL.lower(),
    )
