"""
Job model for video synthesis tasks.
"""
import uuid
import enum
from sqlalchemy import Boolean, Column, String, Text, DateTime, Integer, Float

from faceforge.models import Base, utcnow


class JobStatus(str, enum.Enum):
    """Status states for video synthesis jobs."""
    draft = 'draft'
    waiting = 'waiting'
    processing = 'processing'
    pending = 'pending'
    completed = 'completed'
    failed = 'failed'


# At most one job may hold one of these at a time
IN_FLIGHT_STATUSES = (JobStatus.processing, JobStatus.pending)


class Job(Base):
    """
    Represents a video synthesis job.

    Attributes:
        id: Unique job identifier (UUID)
        name: Display name
        model_id: Face model to render with
        voice_id: Voice profile (null = the face model's default voice)
        text: The script to synthesize
        status: Current job status
        audio_path: Generated or caller-supplied audio track
        audio_fixed: Audio was supplied by the caller and survives a retry
        remote_handle: Task code returned by the render service on submit
        progress: Render progress reported by the render service
        message: Latest human-readable status explanation
        result_path: Rendered video, set only once completed
        duration: Rendered video length in seconds, set only once completed
        created_at: Job creation timestamp, drives FIFO ordering
        updated_at: Last time any field changed
        completed_at: When the job reached a terminal status
    """
    __tablename__ = 'jobs'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False, default='')
    model_id = Column(String(36), nullable=False)
    voice_id = Column(String(36), nullable=True)
    text = Column(Text, nullable=False, default='')
    status = Column(String(20), nullable=False, default=JobStatus.draft.value, index=True)
    audio_path = Column(Text, nullable=True)
    audio_fixed = Column(Boolean, nullable=False, default=False)
    remote_handle = Column(String(64), nullable=True)
    progress = Column(Integer, nullable=False, default=0)
    message = Column(Text, nullable=True)
    result_path = Column(Text, nullable=True)
    duration = Column(Float, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    def __repr__(self):
        return f'<Job {self.id} status={self.status}>'
