"""
Pydantic schemas for API request/response validation.
"""
from faceforge.schemas.job import (
    VideoCreate,
    VideoUpdate,
    VideoResponse,
    VideoListResponse,
    VideoStatusResponse,
)
from faceforge.schemas.queue import QueueStats, QueueSnapshotResponse
from faceforge.schemas.reference import (
    FaceModelCreate,
    FaceModelResponse,
    FaceModelListResponse,
    VoiceCreate,
    VoiceResponse,
    VoiceListResponse,
)

__all__ = [
    'VideoCreate',
    'VideoUpdate',
    'VideoResponse',
    'VideoListResponse',
    'VideoStatusResponse',
    'QueueStats',
    'QueueSnapshotResponse',
    'FaceModelCreate',
    'FaceModelResponse',
    'FaceModelListResponse',
    'VoiceCreate',
    'VoiceResponse',
    'VoiceListResponse',
]
