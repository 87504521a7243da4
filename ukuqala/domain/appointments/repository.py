"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Appointment


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_by_id(db: Session, appointment_id: str) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def list_for_actor(
        db: Session,
        doctor_id: Optional[str] = None,
        patient_external_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Appointment]:
        """Appointments for one doctor or one patient, latest scheduled first"""
        query = db.query(Appointment)
        if doctor_id:
            query = query.filter(Appointment.doctor_id == doctor_id)
        if patient_external_id:
            query = query.filter(Appointment.patient_external_id == patient_external_id)
        if status:
            query = query.filter(Appointment.status == status)
        return query.order_by(Appointment.scheduled_at.desc()).all()

    @staticmethod
    def create(db: Session, **appointment_data) -> Appointment:
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def update(db: Session, appointment: Appointment, **updates) -> Appointment:
        for key, value in updates.items():
            if value is not None and hasattr(appointment, key):
                setattr(appointment, key, value)
        db.commit()
        db.refresh(appointment)
        return appointment

    @staticmethod
    def distinct_patient_ids(db: Session, doctor_id: str) -> list[str]:
        rows = (
            db.query(Appointment.patient_external_id)
            .filter(Appointment.doctor_id == doctor_id)
            .distinct()
            .all()
        )
        return [row[0] for row in rows if row[0]]

    @staticmethod
    def exists_for_pair(db: Session, doctor_id: str, patient_external_id: str) -> bool:
        return (
            db.query(Appointment.id)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.patient_external_id == patient_external_id,
            )
            .first()
            is not None
        )

    @staticmethod
    def upcoming_for_doctor(db: Session, doctor_id: str, since: datetime) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.status.in_(["pending", "confirmed"]),
                Appointment.scheduled_at >= since,
            )
            .order_by(Appointment.scheduled_at.asc())
            .all()
        )

    @staticmethod
    def past_for_doctor(db: Session, doctor_id: str, before: datetime, limit: int = 50) -> list[Appointment]:
        return (
            db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor_id,
                Appointment.status.in_(["completed", "canceled"]),
                Appointment.scheduled_at < before,
            )
            .order_by(Appointment.scheduled_at.desc())
            .limit(limit)
            .all()
        )
