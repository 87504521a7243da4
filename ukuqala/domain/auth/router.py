"""Doctor auth router"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor
from ...rate_limiter import create_rate_limiter
from ...schemas import envelope
from .schemas import ResetPasswordRequest, SignInRequest, SignUpRequest
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

signup_limiter = create_rate_limiter(limit=10, window_seconds=3600, key_prefix="doctor_signup")
signin_limiter = create_rate_limiter(limit=20, window_seconds=300, key_prefix="doctor_signin")


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignUpRequest,
    _: None = Depends(signup_limiter),
    service: AuthService = Depends(get_auth_service),
):
    """Register a doctor account and return a session token"""
    return envelope(service.sign_up(data))


@router.post("/signin")
async def signin(
    data: SignInRequest,
    _: None = Depends(signin_limiter),
    service: AuthService = Depends(get_auth_service),
):
    return envelope(service.sign_in(data))


@router.post("/reset-password")
async def reset_password(
    data: ResetPasswordRequest,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: AuthService = Depends(get_auth_service),
):
    """Change the signed-in doctor's password"""
    service.change_password(current_doctor.id, data)
    return envelope(message="Password updated")
