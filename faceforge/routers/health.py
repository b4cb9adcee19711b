"""
Health check endpoint.
"""
from pydantic import BaseModel
from fastapi import APIRouter, Request

from faceforge.config import APP_VERSION


router = APIRouter(tags=['health'])


class HealthResponse(BaseModel):
    """Health check response schema."""
    status: str
    scheduler_running: bool
    version: str


@router.get('/health', response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Check server health status.

    Fast response - no database queries.
    """
    scheduler = getattr(request.app.state, 'scheduler', None)
    return HealthResponse(
        status='ok',
        scheduler_running=bool(scheduler and scheduler.is_running),
        version=APP_VERSION,
    )
