"""Doctor repository - Database operations for doctor accounts"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ...models import Doctor, DoctorRating


class DoctorRepository:
    """Repository for doctor database operations"""

    @staticmethod
    def get_by_email(db: Session, email: str) -> Optional[Doctor]:
        return db.query(Doctor).filter(func.lower(Doctor.email) == email.lower()).first()

    @staticmethod
    def get_by_id(db: Session, doctor_id: str) -> Optional[Doctor]:
        return db.query(Doctor).filter(Doctor.id == doctor_id).first()

    @staticmethod
    def create(db: Session, **doctor_data) -> Doctor:
        doctor = Doctor(**doctor_data)
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def update(db: Session, doctor: Doctor, **updates) -> Doctor:
        """Apply updates; None values are written too so fields can be cleared"""
        for key, value in updates.items():
            if hasattr(doctor, key):
                setattr(doctor, key, value)
        db.commit()
        db.refresh(doctor)
        return doctor

    @staticmethod
    def list_with_ratings(db: Session, onboarding_completed: Optional[bool] = None) -> list[tuple]:
        """(Doctor, avg score, rating count), newest first"""
        ratings = (
            db.query(
                DoctorRating.doctor_id.label("doctor_id"),
                func.avg(DoctorRating.score).label("avg_rating"),
                func.count(DoctorRating.id).label("rating_count"),
            )
            .group_by(DoctorRating.doctor_id)
            .subquery()
        )
        query = db.query(Doctor, ratings.c.avg_rating, ratings.c.rating_count).outerjoin(
            ratings, ratings.c.doctor_id == Doctor.id
        )
        if onboarding_completed is not None:
            query = query.filter(Doctor.onboarding_completed == onboarding_completed)
        return query.order_by(Doctor.created_at.desc()).all()

    @staticmethod
    def get_with_rating(db: Session, doctor_id: str) -> Optional[tuple]:
        row = (
            db.query(func.avg(DoctorRating.score), func.count(DoctorRating.id))
            .filter(DoctorRating.doctor_id == doctor_id)
            .one()
        )
        doctor = db.query(Doctor).filter(Doctor.id == doctor_id).first()
        if not doctor:
            return None
        return doctor, row[0], row[1]
