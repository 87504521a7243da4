"""
Create and onboard a doctor account from the command line
Usage: python create_doctor.py [email] [password]
"""
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from ukuqala import models  # noqa: F401
from ukuqala.database import Base, SessionLocal, engine
from ukuqala.domain.auth.repository import DoctorRepository
from ukuqala.domain.auth.schemas import SignUpRequest
from ukuqala.domain.auth.service import AuthService
from ukuqala.routes.onboarding import is_onboarding_complete

logging.basicConfig(level=logging.INFO, format='%(message)s')
logger = logging.getLogger(__name__)

ONBOARDING_PROFILE = {
    "specialty": "General Practitioner",
    "country": "USA",
    "city": "Austin",
    "timezone": "UTC-5 (EST)",
    "languages": ["English"],
    "bio": "Experienced GP focused on preventative care.",
    "consultation_mode": "both",
    "availability": [
        {"day": "Mon", "start": "09:00", "end": "17:00"},
        {"day": "Tue", "start": "09:00", "end": "17:00"},
    ],
}


def create_doctor(email: str, password: str):
    """Sign up a doctor and fill in a complete onboarding profile"""
    Base.metadata.create_all(bind=engine, checkfirst=True)

    db = SessionLocal()
    try:
        session = AuthService(db).sign_up(
            SignUpRequest(email=email, password=password, firstName="Onboard", lastName="Doctor")
        )
        repo = DoctorRepository()
        doctor = repo.update(db, repo.get_by_id(db, session["user"].id), **ONBOARDING_PROFILE)
        doctor = repo.update(db, doctor, onboarding_completed=is_onboarding_complete(doctor))

        logger.info("✅ Doctor created and onboarded:")
        logger.info(f"   email: {doctor.email}")
        logger.info(f"   id: {doctor.id}")
        logger.info(f"   onboarding_completed: {doctor.onboarding_completed}")
        logger.info(f"   token: {session['token']}")
    finally:
        db.close()


if __name__ == "__main__":
    email = sys.argv[1] if len(sys.argv) > 1 else f"doctor_{int(time.time())}@example.com"
    password = sys.argv[2] if len(sys.argv) > 2 else "Secret123!"

    try:
        create_doctor(email, password)
    except Exception as e:
        logger.error(f"❌ Failed to create doctor: {e}")
        sys.exit(1)
