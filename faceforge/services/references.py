"""
Read-only lookups of face models and voices for the scheduler.
"""
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from faceforge.models.reference import FaceModel, Voice


class ReferenceLookup:
    """Resolves the model and voice ids a job points at."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def get_model_by_id(self, model_id: Optional[str]) -> Optional[FaceModel]:
        if not model_id:
            return None
        async with self._session_factory() as session:
            result = await session.execute(select(FaceModel).where(FaceModel.id == model_id))
            return result.scalar_one_or_none()

    async def get_voice_by_id(self, voice_id: Optional[str]) -> Optional[Voice]:
        if not voice_id:
            return None
        async with self._session_factory() as session:
            result = await session.execute(select(Voice).where(Voice.id == voice_id))
            return result.scalar_one_or_none()
