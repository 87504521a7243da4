import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_actor
from ..database import get_db
from ..domain.auth.repository import DoctorRepository
from ..domain.conversations.repository import ConversationRepository
from ..models import DoctorRating
from ..schemas import envelope
from ..shared.validators import validate_uuid

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ratings", tags=["Ratings"])


class RatingCreate(BaseModel):
    doctorId: str
    conversationId: Optional[str] = None
    score: int = Field(ge=1, le=5)
    comment: Optional[str] = None

    @field_validator("doctorId", "conversationId")
    @classmethod
    def check_uuid(cls, v):
        if v is not None and not validate_uuid(v):
            raise ValueError("must be a UUID")
        return v


class RatingResponse(BaseModel):
    id: str
    doctor_id: str
    patient_external_id: str
    conversation_id: Optional[str] = None
    score: int
    comment: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


def _rating_exists(db: Session, conversation_id: str, patient_external_id: str) -> bool:
    return (
        db.query(DoctorRating.id)
        .filter(
            DoctorRating.conversation_id == conversation_id,
            DoctorRating.patient_external_id == patient_external_id,
        )
        .first()
        is not None
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_rating(
    data: RatingCreate,
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    """Rate a doctor, optionally tied to a concluded conversation (patient only)"""
    if not actor.is_patient:
        raise HTTPException(status_code=403, detail="Only patients can rate doctors")

    if not DoctorRepository.get_by_id(db, data.doctorId):
        raise HTTPException(status_code=404, detail="Doctor not found")

    if data.conversationId:
        conversation = ConversationRepository.get_by_id(db, data.conversationId)
        if not conversation:
            raise HTTPException(status_code=404, detail="Conversation not found")
        if conversation.patient_external_id != actor.id or conversation.doctor_id != data.doctorId:
            raise HTTPException(status_code=403, detail="Conversation does not belong to this patient/doctor")
        if conversation.status != "concluded":
            raise HTTPException(status_code=400, detail="Conversation must be concluded to rate")
        if _rating_exists(db, data.conversationId, actor.id):
            raise HTTPException(status_code=409, detail="Conversation already rated")

    rating = DoctorRating(
        doctor_id=data.doctorId,
        patient_external_id=actor.id,
        conversation_id=data.conversationId,
        score=data.score,
        comment=data.comment,
    )
    db.add(rating)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"⚠️ Duplicate rating for conversation {data.conversationId} by patient {actor.id}")
        raise HTTPException(status_code=409, detail="Conversation already rated") from e
    db.refresh(rating)

    logger.info(f"⭐ Patient {actor.id} rated doctor {data.doctorId}: {data.score}")
    return envelope(RatingResponse.model_validate(rating))


@router.get("/doctor")
async def list_doctor_ratings(
    actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
):
    if not actor.is_doctor:
        raise HTTPException(status_code=403, detail="Only doctors can view their ratings")

    ratings = (
        db.query(DoctorRating)
        .filter(DoctorRating.doctor_id == actor.id)
        .order_by(DoctorRating.created_at.desc())
        .all()
    )
    return envelope([RatingResponse.model_validate(r) for r in ratings])
