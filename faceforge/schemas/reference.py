"""
Pydantic schemas for face models and voices.
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict


class FaceModelCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    video_path: str = Field(..., min_length=1, description='Face video handed to the render service')
    voice_id: Optional[str] = Field(None, description='Default voice for jobs using this model')


class FaceModelResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    video_path: str
    voice_id: Optional[str]
    created_at: datetime


class FaceModelListResponse(BaseModel):
    models: List[FaceModelResponse]


class VoiceCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    reference_audio: str = Field(..., min_length=1, description='Reference recording to clone')
    reference_text: str = Field('', description='Transcript of the reference recording')


class VoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    reference_audio: str
    reference_text: str
    created_at: datetime


class VoiceListResponse(BaseModel):
    voices: List[VoiceResponse]
