"""
Face model endpoints.
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from faceforge.database import get_db
from faceforge.models.reference import FaceModel, Voice
from faceforge.schemas.reference import FaceModelCreate, FaceModelResponse, FaceModelListResponse


router = APIRouter(prefix='/models', tags=['models'])


@router.get('', response_model=FaceModelListResponse)
async def list_models(db: AsyncSession = Depends(get_db)) -> FaceModelListResponse:
    result = await db.execute(select(FaceModel).order_by(FaceModel.created_at.desc()))
    return FaceModelListResponse(
        models=[FaceModelResponse.model_validate(m) for m in result.scalars().all()]
    )


@router.post('', response_model=FaceModelResponse, status_code=201)
async def create_model(
    data: FaceModelCreate,
    db: AsyncSession = Depends(get_db),
) -> FaceModelResponse:
    """Register a face video. The default voice, if given, must exist."""
    if data.voice_id and await db.get(Voice, data.voice_id) is None:
        raise HTTPException(status_code=404, detail=f'Voice not found: {data.voice_id}')

    model = FaceModel(name=data.name, video_path=data.video_path, voice_id=data.voice_id)
    db.add(model)
    await db.commit()
    await db.refresh(model)
    return FaceModelResponse.model_validate(model)


@router.get('/{model_id}', response_model=FaceModelResponse)
async def get_model(model_id: str, db: AsyncSession = Depends(get_db)) -> FaceModelResponse:
    model = await db.get(FaceModel, model_id)
    if not model:
        raise HTTPException(status_code=404, detail=f'Model not found: {model_id}')
    return FaceModelResponse.model_validate(model)


@router.delete('/{model_id}', status_code=204)
async def delete_model(model_id: str, db: AsyncSession = Depends(get_db)):
    """
    Delete a face model.

    Jobs still pointing at it fail with 'Model not found' when the
    scheduler picks them up.
    """
    model = await db.get(FaceModel, model_id)
    if not model:
        raise HTTPException(status_code=404, detail=f'Model not found: {model_id}')
    await db.delete(model)
    await db.commit()
