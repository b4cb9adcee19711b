"""
Voice endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from faceforge.database import get_db
from faceforge.models.reference import Voice
from faceforge.schemas.reference import VoiceCreate, VoiceResponse, VoiceListResponse


router = APIRouter(prefix='/voices', tags=['voices'])


@router.get('', response_model=VoiceListResponse)
async def list_voices(db: AsyncSession = Depends(get_db)) -> VoiceListResponse:
    result = await db.execute(select(Voice).order_by(Voice.created_at.desc()))
    return VoiceListResponse(
        voices=[VoiceResponse.model_validate(v) for v in result.scalars().all()]
    )


@router.post('', response_model=VoiceResponse, status_code=201)
async def create_voice(data: VoiceCreate, db: AsyncSession = Depends(get_db)) -> VoiceResponse:
    voice = Voice(
        name=data.name,
        reference_audio=data.reference_audio,
        reference_text=data.reference_text,
    )
    db.add(voice)
    await db.commit()
    await db.refresh(voice)
    return VoiceResponse.model_validate(voice)


@router.get('/{voice_id}', response_model=VoiceResponse)
async def get_voice(voice_id: str, db: AsyncSession = Depends(get_db)) -> VoiceResponse:
    """
    Get details for a specific voice.

    Raises:
        404: Voice not found
    """
    voice = await db.get(Voice, voice_id)
    if not voice:
        raise HTTPException(status_code=404, detail=f'Voice not found: {voice_id}')
    return VoiceResponse.model_validate(voice)


@router.delete('/{voice_id}', status_code=204)
async def delete_voice(voice_id: str, db: AsyncSession = Depends(get_db)):
    voice = await db.get(Voice, voice_id)
    if not voice:
        raise HTTPException(status_code=404, detail=f'Voice not found: {voice_id}')
    await db.delete(voice)
    await db.commit()
