"""Patient record repository - Database operations for patient records"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import PatientRecord


class RecordRepository:
    """Repository for patient record database operations"""

    @staticmethod
    def list_for_doctor(db: Session, doctor_id: str) -> list[PatientRecord]:
        return (
            db.query(PatientRecord)
            .filter(PatientRecord.doctor_id == doctor_id)
            .order_by(PatientRecord.updated_at.desc())
            .all()
        )

    @staticmethod
    def get_for_doctor(db: Session, record_id: str, doctor_id: str) -> Optional[PatientRecord]:
        return (
            db.query(PatientRecord)
            .filter(PatientRecord.id == record_id, PatientRecord.doctor_id == doctor_id)
            .first()
        )

    @staticmethod
    def get_by_patient(db: Session, doctor_id: str, patient_external_id: str) -> Optional[PatientRecord]:
        return (
            db.query(PatientRecord)
            .filter(
                PatientRecord.doctor_id == doctor_id,
                PatientRecord.patient_external_id == patient_external_id,
            )
            .first()
        )

    @staticmethod
    def get_by_id_or_qr(db: Session, id_or_qr: str) -> Optional[PatientRecord]:
        return (
            db.query(PatientRecord)
            .filter(or_(PatientRecord.id == id_or_qr, PatientRecord.qr_code == id_or_qr))
            .first()
        )

    @staticmethod
    def create(db: Session, doctor_id: str, **record_data) -> PatientRecord:
        record = PatientRecord(doctor_id=doctor_id, **record_data)
        db.add(record)
        db.commit()
        db.refresh(record)
        return record

    @staticmethod
    def update(db: Session, record: PatientRecord, **updates) -> PatientRecord:
        for key, value in updates.items():
            if hasattr(record, key):
                setattr(record, key, value)
        db.commit()
        db.refresh(record)
        return record
