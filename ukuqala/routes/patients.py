"""
Patient endpoints.

Patients authenticate against Supabase; this API only verifies their app PIN
and reads their Supabase profile. Doctors can look up the profiles of
patients they have appointments with.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from ..auth import Actor, get_current_doctor, get_current_patient
from ..database import get_db
from ..domain.appointments.repository import AppointmentRepository
from ..models import Doctor
from ..rate_limiter import create_rate_limiter
from ..schemas import envelope
from ..security_utils import verify_password_bcrypt
from ..services.supabase_service import SupabaseService, get_supabase_service
from ..shared.validators import validate_email

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/patients", tags=["Patients"])

patient_signin_limiter = create_rate_limiter(limit=20, window_seconds=300, key_prefix="patient_signin")


class PatientSignInRequest(BaseModel):
    email: str
    password: str = Field(min_length=6)
    pin: str = Field(min_length=4)

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return validate_email(v)


@router.post("/auth/signin")
async def patient_signin(
    data: PatientSignInRequest,
    _: None = Depends(patient_signin_limiter),
    supabase: SupabaseService = Depends(get_supabase_service),
):
    """Supabase password sign-in followed by app PIN verification"""
    session = await supabase.sign_in_with_password(data.email, data.password)
    access_token = session["access_token"]
    user = session["user"]
    user_id = user["id"]

    profile = await supabase.get_profile(user_id, access_token)
    pin_hash = await supabase.get_app_pin_hash(user_id, access_token)

    if not pin_hash:
        logger.warning(f"⚠️ Patient {user_id} has no app pin")
        raise HTTPException(status_code=401, detail="App pin not set")
    if not verify_password_bcrypt(data.pin, pin_hash):
        logger.warning(f"❌ Invalid app pin for patient {user_id}")
        raise HTTPException(status_code=401, detail="Invalid app pin")

    logger.info(f"✅ Patient {user_id} signed in")
    return envelope(
        {
            "access_token": access_token,
            "refresh_token": session.get("refresh_token"),
            "user": {"id": user_id, "email": user.get("email"), "profile": profile},
        }
    )


@router.get("/profile")
async def patient_profile(
    patient: Actor = Depends(get_current_patient),
    supabase: SupabaseService = Depends(get_supabase_service),
):
    profile = await supabase.get_profile(patient.id, patient.token)
    records = await supabase.get_medical_records([patient.id], patient.token)
    return envelope({"profile": profile, "medical_records": records or []})


@router.get("/doctor/list")
async def list_doctor_patients(
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    supabase: SupabaseService = Depends(get_supabase_service),
):
    """Supabase profiles of every patient with an appointment with this doctor"""
    ids = AppointmentRepository.distinct_patient_ids(db, current_doctor.id)
    if not ids:
        return envelope([])
    profiles = await supabase.get_profiles(ids)
    return envelope(list(profiles.values()))


@router.get("/doctor/{external_id}")
async def get_doctor_patient(
    external_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
    supabase: SupabaseService = Depends(get_supabase_service),
):
    if not AppointmentRepository.exists_for_pair(db, current_doctor.id, external_id):
        raise HTTPException(status_code=404, detail="Patient not found for this doctor")
    return envelope(await supabase.get_profile(external_id))
