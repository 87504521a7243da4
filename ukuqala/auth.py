import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import Doctor
from .security_utils import decode_doctor_token
from .services.supabase_service import SupabaseError, SupabaseService, get_supabase_service

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


@dataclass
class Actor:
    """Authenticated caller: a doctor (local JWT) or a patient (Supabase token)"""

    type: str  # "doctor" | "patient"
    id: str
    email: Optional[str] = None
    token: Optional[str] = None

    @property
    def is_doctor(self) -> bool:
        return self.type == "doctor"

    @property
    def is_patient(self) -> bool:
        return self.type == "patient"


def _require_token(credentials: Optional[HTTPAuthorizationCredentials]) -> str:
    if credentials is None or not credentials.credentials:
        logger.warning("⚠️ Request without bearer token")
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return credentials.credentials


async def get_current_doctor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Doctor:
    """Resolve the doctor behind a locally-issued JWT"""
    token = _require_token(credentials)
    payload = decode_doctor_token(token)
    if not payload:
        logger.warning("❌ Doctor token rejected")
        raise HTTPException(status_code=401, detail="Invalid token")

    doctor = db.query(Doctor).filter(Doctor.id == payload["id"]).first()
    if not doctor:
        logger.warning(f"❌ Token references unknown doctor {payload['id']}")
        raise HTTPException(status_code=401, detail="Invalid token")
    return doctor


async def _resolve_patient(token: str, supabase: SupabaseService) -> Optional[Actor]:
    try:
        user = await supabase.get_user(token)
    except SupabaseError as e:
        logger.warning(f"❌ Patient token could not be verified: {e.message}")
        raise HTTPException(status_code=401, detail="Unauthorized") from e
    if not user:
        return None
    return Actor(type="patient", id=user["id"], email=user.get("email"), token=token)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    supabase: SupabaseService = Depends(get_supabase_service),
) -> Actor:
    """
    Doctor JWT first, then Supabase patient token.

    Used by endpoints shared by both sides of a consult (appointments,
    conversations, ratings).
    """
    token = _require_token(credentials)

    payload = decode_doctor_token(token)
    if payload:
        return Actor(type="doctor", id=payload["id"], email=payload.get("email"), token=token)

    actor = await _resolve_patient(token, supabase)
    if actor:
        logger.debug(f"🔍 Patient actor resolved: {actor.id}")
        return actor

    logger.warning("❌ Bearer token rejected as doctor and patient")
    raise HTTPException(status_code=401, detail="Invalid token")


async def get_current_patient(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    supabase: SupabaseService = Depends(get_supabase_service),
) -> Actor:
    """Supabase patient token only"""
    token = _require_token(credentials)
    actor = await _resolve_patient(token, supabase)
    if not actor:
        raise HTTPException(status_code=401, detail="Invalid token")
    return actor
