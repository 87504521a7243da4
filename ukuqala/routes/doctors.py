from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..domain.auth.repository import DoctorRepository
from ..models import Doctor
from ..schemas import DoctorListItem, DoctorResponse, envelope

router = APIRouter(prefix="/doctors", tags=["Doctors"])


def _with_rating(doctor: Doctor, avg_rating, rating_count) -> DoctorListItem:
    base = DoctorResponse.model_validate(doctor).model_dump()
    return DoctorListItem(
        **base,
        rating=round(float(avg_rating or 0), 2),
        rating_count=int(rating_count or 0),
    )


@router.get("")
async def list_doctors(
    onboardingCompleted: Optional[bool] = Query(None),
    db: Session = Depends(get_db),
):
    """Public doctor directory with average rating"""
    rows = DoctorRepository.list_with_ratings(db, onboardingCompleted)
    return envelope([_with_rating(*row) for row in rows])


@router.get("/{doctor_id}")
async def get_doctor(doctor_id: str, db: Session = Depends(get_db)):
    row = DoctorRepository.get_with_rating(db, doctor_id)
    if not row:
        raise HTTPException(status_code=404, detail="Doctor not found")
    return envelope(_with_rating(*row))
