import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from ..auth import get_current_doctor
from ..database import get_db
from ..domain.auth.repository import DoctorRepository
from ..models import Doctor
from ..schemas import AvailabilitySlot, DoctorResponse, clean_profile_updates, envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/onboarding", tags=["Onboarding"])

REQUIRED_FIELDS = ["specialty", "country", "city", "timezone"]


class OnboardingRequest(BaseModel):
    specialty: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None
    languages: Optional[Union[list[str], str]] = None
    bio: Optional[str] = None
    consultation_mode: Optional[str] = None
    avatar_url: Optional[str] = None
    availability: Optional[list[AvailabilitySlot]] = None

    @field_validator("avatar_url")
    @classmethod
    def validate_avatar_url(cls, v):
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("avatar_url must be an http(s) URL")
        return v


def missing_required_fields(doctor: Doctor) -> list[str]:
    return [field for field in REQUIRED_FIELDS if not getattr(doctor, field)]


def is_onboarding_complete(doctor: Doctor) -> bool:
    return not missing_required_fields(doctor) and bool(doctor.availability)


@router.get("")
async def get_onboarding(current_doctor: Doctor = Depends(get_current_doctor)):
    """Current onboarding state and the required fields still missing"""
    return envelope(
        {
            "doctor": DoctorResponse.model_validate(current_doctor),
            "requiredFieldsMissing": missing_required_fields(current_doctor),
        }
    )


@router.post("")
async def save_onboarding(
    data: OnboardingRequest,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    updates = data.model_dump(exclude_unset=True)
    updates = clean_profile_updates(updates)

    repo = DoctorRepository()
    doctor = repo.update(db, current_doctor, **updates)

    # Completion is judged on the merged profile, not just this payload
    completed = is_onboarding_complete(doctor)
    if doctor.onboarding_completed != completed:
        doctor = repo.update(db, doctor, onboarding_completed=completed)

    logger.info(f"✅ Onboarding saved for doctor {doctor.id} (completed={completed})")
    return envelope(DoctorResponse.model_validate(doctor))
