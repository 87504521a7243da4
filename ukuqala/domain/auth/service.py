"""Doctor auth service - sign up, sign in and password change"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Doctor
from ...schemas import DoctorSummary
from ...security_utils import create_doctor_token, hash_password_bcrypt, verify_password_bcrypt
from .repository import DoctorRepository
from .schemas import ResetPasswordRequest, SignInRequest, SignUpRequest

logger = logging.getLogger(__name__)


class AuthService:
    """Service layer for doctor account authentication"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = DoctorRepository()

    @staticmethod
    def _session(doctor: Doctor) -> dict:
        return {
            "user": DoctorSummary.model_validate(doctor),
            "token": create_doctor_token(doctor.id, doctor.email),
        }

    def sign_up(self, data: SignUpRequest) -> dict:
        logger.info(f"📥 Doctor sign-up for {data.email}")
        if self.repo.get_by_email(self.db, data.email):
            logger.warning(f"⚠️ Sign-up rejected, email already registered: {data.email}")
            raise HTTPException(status_code=409, detail="Email already registered")

        doctor = self.repo.create(
            self.db,
            email=data.email,
            password=hash_password_bcrypt(data.password),
            first_name=data.firstName.strip(),
            last_name=data.lastName.strip(),
            onboarding_completed=False,
        )
        logger.info(f"✅ Doctor account created: {doctor.id}")
        return self._session(doctor)

    def sign_in(self, data: SignInRequest) -> dict:
        doctor = self.repo.get_by_email(self.db, data.email)
        if not doctor or not verify_password_bcrypt(data.password, doctor.password):
            logger.warning(f"❌ Failed doctor sign-in for {data.email}")
            raise HTTPException(status_code=401, detail="Invalid email or password")

        logger.info(f"✅ Doctor signed in: {doctor.id}")
        return self._session(doctor)

    def change_password(self, doctor_id: str, data: ResetPasswordRequest) -> None:
        doctor = self.repo.get_by_id(self.db, doctor_id)
        if not doctor:
            raise HTTPException(status_code=404, detail="Doctor not found")
        if not verify_password_bcrypt(data.currentPassword, doctor.password):
            logger.warning(f"❌ Wrong current password for doctor {doctor_id}")
            raise HTTPException(status_code=401, detail="Current password is incorrect")

        self.repo.update(self.db, doctor, password=hash_password_bcrypt(data.newPassword))
        logger.info(f"✅ Password updated for doctor {doctor_id}")
