"""
Face model and voice profile records referenced by jobs.
"""
import uuid
from sqlalchemy import Column, String, Text, DateTime

from faceforge.models import Base, utcnow


class FaceModel(Base):
    """A recorded face video the render service animates."""
    __tablename__ = 'face_models'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    video_path = Column(Text, nullable=False)
    voice_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f'<FaceModel {self.id} name={self.name}>'


class Voice(Base):
    """A cloned voice: reference audio plus its transcript."""
    __tablename__ = 'voices'

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(200), nullable=False)
    reference_audio = Column(Text, nullable=False)
    reference_text = Column(Text, nullable=False, default='')
    created_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f'<Voice {self.id} name={self.name}>'
