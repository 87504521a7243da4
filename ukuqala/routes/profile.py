import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from ..auth import get_current_doctor
from ..database import get_db
from ..domain.auth.repository import DoctorRepository
from ..models import Doctor
from ..schemas import AvailabilitySlot, DoctorResponse, clean_profile_updates, envelope
from ..utils.file_storage import MAX_AVATAR_SIZE_BYTES, save_upload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["Profile"])


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    education: Optional[str] = None
    experience_years: Optional[int] = Field(default=None, ge=0)
    specialty: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None
    languages: Optional[Union[list[str], str]] = None
    bio: Optional[str] = None
    consultation_mode: Optional[str] = None
    availability: Optional[list[AvailabilitySlot]] = None


@router.get("")
async def get_profile(current_doctor: Doctor = Depends(get_current_doctor)):
    return envelope(DoctorResponse.model_validate(current_doctor))


@router.put("")
async def update_profile(
    data: ProfileUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    """Partial update of the signed-in doctor's profile"""
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    updates = clean_profile_updates(updates)

    doctor = DoctorRepository().update(db, current_doctor, **updates)
    logger.info(f"✅ Profile updated for doctor {doctor.id}: {sorted(updates)}")
    return envelope(DoctorResponse.model_validate(doctor))


@router.post("/avatar")
async def upload_avatar(
    avatar: UploadFile = File(...),
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    """Upload a profile picture (images only, max 5MB)"""
    stored = await save_upload(avatar, "avatars", MAX_AVATAR_SIZE_BYTES, image_only=True)
    doctor = DoctorRepository().update(db, current_doctor, avatar_url=stored["url"])
    return envelope(DoctorResponse.model_validate(doctor))
