"""Appointment service - booking and status lifecycle for doctors and patients"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import Actor
from ...models import Appointment
from ...services.supabase_service import SupabaseService
from ..auth.repository import DoctorRepository
from ..records.service import RecordService
from .repository import AppointmentRepository
from .schemas import TERMINAL_STATUSES, AppointmentCreate, AppointmentStatusUpdate

logger = logging.getLogger(__name__)

REASON_FIELD_BY_STATUS = {
    "canceled": "cancel_reason",
    "rescheduled": "reschedule_reason",
}


class AppointmentService:
    """Service layer for appointment business logic"""

    def __init__(self, db: Session, supabase: SupabaseService):
        self.db = db
        self.repo = AppointmentRepository()
        self.records = RecordService(db, supabase)

    @staticmethod
    def _ensure_participant(appointment: Appointment, actor: Actor):
        if actor.is_doctor and appointment.doctor_id != actor.id:
            raise HTTPException(status_code=403, detail="Forbidden")
        if actor.is_patient and appointment.patient_external_id != actor.id:
            raise HTTPException(status_code=403, detail="Forbidden")

    def create_appointment(self, data: AppointmentCreate, actor: Actor) -> Appointment:
        if actor.is_patient:
            patient_external_id = actor.id
        else:
            if not data.patientExternalId:
                raise HTTPException(status_code=400, detail="patientExternalId required")
            if data.doctorId != actor.id:
                raise HTTPException(status_code=403, detail="Doctors can only book their own appointments")
            patient_external_id = data.patientExternalId

        if not DoctorRepository.get_by_id(self.db, data.doctorId):
            raise HTTPException(status_code=404, detail="Doctor not found")

        appointment = self.repo.create(
            self.db,
            doctor_id=data.doctorId,
            patient_external_id=patient_external_id,
            scheduled_at=data.scheduledAt,
            duration_minutes=data.durationMinutes,
            type=data.type,
            status="pending",
            location=data.location,
            meeting_url=data.meetingUrl,
            reason=data.reason,
            attachments=[a.model_dump() for a in data.attachments],
        )
        logger.info(f"📅 Appointment {appointment.id} booked by {actor.type} {actor.id}")
        return appointment

    def list_appointments(self, actor: Actor, status: Optional[str] = None) -> list[Appointment]:
        if actor.is_doctor:
            return self.repo.list_for_actor(self.db, doctor_id=actor.id, status=status)
        return self.repo.list_for_actor(self.db, patient_external_id=actor.id, status=status)

    def get_appointment(self, appointment_id: str, actor: Actor) -> Appointment:
        appointment = self.repo.get_by_id(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        self._ensure_participant(appointment, actor)
        return appointment

    async def update_status(
        self, appointment_id: str, data: AppointmentStatusUpdate, actor: Actor
    ) -> Appointment:
        appointment = self.get_appointment(appointment_id, actor)

        if actor.is_patient and data.status != "canceled":
            raise HTTPException(status_code=403, detail="Patients can only cancel appointments")
        if appointment.status in TERMINAL_STATUSES:
            raise HTTPException(status_code=400, detail=f"Appointment is already {appointment.status}")

        updates = {
            "status": data.status,
            "duration_minutes": data.durationMinutes,
            "meeting_url": data.meetingUrl,
        }
        if data.status == "rescheduled" and data.scheduledAt:
            updates["scheduled_at"] = data.scheduledAt
        if data.reason:
            updates[REASON_FIELD_BY_STATUS.get(data.status, "reason")] = data.reason

        appointment = self.repo.update(self.db, appointment, **updates)
        logger.info(f"🔄 Appointment {appointment.id} -> {data.status} by {actor.type} {actor.id}")

        if data.status in ("confirmed", "completed"):
            await self.records.record_consultation(appointment.doctor_id, appointment.patient_external_id)

        return appointment
