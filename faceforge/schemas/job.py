"""
Pydantic schemas for video job API operations.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class VideoCreate(BaseModel):
    """Schema for creating a draft video job."""
    model_config = ConfigDict(protected_namespaces=())

    name: str = Field(..., min_length=1, max_length=200, description='Display name')
    model_id: str = Field(..., min_length=1, description='Face model to render with')
    text: str = Field(..., min_length=1, description='The script to synthesize')
    voice_id: Optional[str] = Field(None, description="Voice id (null = the model's default voice)")
    audio_path: Optional[str] = Field(None, description='Pre-recorded audio to use instead of TTS')


class VideoUpdate(BaseModel):
    """Schema for editing a draft; omitted fields stay unchanged."""
    model_config = ConfigDict(protected_namespaces=())

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    model_id: Optional[str] = Field(None, min_length=1)
    text: Optional[str] = Field(None, min_length=1)
    voice_id: Optional[str] = None
    audio_path: Optional[str] = None


class VideoResponse(BaseModel):
    """Schema for video job response."""
    model_config = ConfigDict(from_attributes=True, protected_namespaces=())

    id: str
    name: str
    model_id: str
    voice_id: Optional[str]
    text: str
    status: str
    progress: int
    message: Optional[str]
    audio_path: Optional[str]
    result_path: Optional[str]
    duration: Optional[float]
    created_at: datetime
    updated_at: Optional[datetime]
    completed_at: Optional[datetime]
    queue_label: Optional[str] = None


class VideoListResponse(BaseModel):
    """Schema for paginated video list response."""
    videos: List[VideoResponse]
    total: int
    limit: int
    offset: int


class VideoStatusResponse(BaseModel):
    """Status of one job, with its queue position while waiting."""
    id: str
    status: str
    progress: int
    message: Optional[str]
    queue_position: Optional[int] = None
    total_in_queue: Optional[int] = None
    result_path: Optional[str] = None
    duration: Optional[float] = None
