"""
FastAPI routers.
"""
from faceforge.routers.health import router as health_router
from faceforge.routers.videos import router as videos_router
from faceforge.routers.tasks import router as tasks_router
from faceforge.routers.face_models import router as models_router
from faceforge.routers.voices import router as voices_router

__all__ = ['health_router', 'videos_router', 'tasks_router', 'models_router', 'voices_router']
