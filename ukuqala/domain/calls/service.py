"""
Video call service - Agora channels for appointments, instant meetings and
the shared doctor lounge.

Calls are rows in ``video_calls``; the channel name is what Agora sees.
Token issuing is delegated to AgoraService, which raises AgoraNotConfigured
when the app id or certificate is missing.
"""

import logging
from datetime import timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...database import utcnow
from ...models import Appointment, VideoCall, VideoCallParticipant, generate_id
from ...services.agora_service import AgoraService
from ..appointments.repository import AppointmentRepository
from .repository import CallRepository
from .schemas import CallTokenRequest, ParticipantJoin, ParticipantLeave, ParticipantResponse

logger = logging.getLogger(__name__)

LOUNGE_CHANNEL = "doctor-lounge"
UPCOMING_GRACE = timedelta(hours=1)
PAST_LIMIT = 50


class CallService:
    """Service layer for video call business logic"""

    def __init__(self, db: Session, agora: AgoraService):
        self.db = db
        self.agora = agora
        self.repo = CallRepository()

    def get_call(self, call_id: str) -> VideoCall:
        call = self.repo.get_by_id(self.db, call_id)
        if not call:
            raise HTTPException(status_code=404, detail="Call not found")
        return call

    # ------------------------------------------------------------------
    # Schedule
    # ------------------------------------------------------------------

    def ensure_doctor_lounge(self, doctor_id: str) -> VideoCall:
        """The lounge is one shared live call, created on first use"""
        lounge = self.repo.get_by_channel(self.db, LOUNGE_CHANNEL)
        if lounge:
            return lounge

        now = utcnow()
        try:
            lounge = self.repo.create(
                self.db,
                channel_name=LOUNGE_CHANNEL,
                type="doctor_lounge",
                status="live",
                doctor_id=doctor_id,
                title="Doctor Lounge",
                scheduled_at=now,
                started_at=now,
            )
        except IntegrityError:
            # Another request created it first
            self.db.rollback()
            return self.repo.get_by_channel(self.db, LOUNGE_CHANNEL)

        logger.info(f"🛋️ Doctor lounge created by doctor {doctor_id}")
        return lounge

    def get_schedule(self, doctor_id: str) -> dict:
        now = utcnow()
        upcoming = AppointmentRepository.upcoming_for_doctor(self.db, doctor_id, now - UPCOMING_GRACE)
        past = AppointmentRepository.past_for_doctor(self.db, doctor_id, now, limit=PAST_LIMIT)
        lounge = self.ensure_doctor_lounge(doctor_id)
        logger.debug(f"📅 Schedule for doctor {doctor_id}: {len(upcoming)} upcoming, {len(past)} past")
        return {"upcoming": upcoming, "past": past, "lounge": lounge}

    # ------------------------------------------------------------------
    # Starting calls
    # ------------------------------------------------------------------

    def start_instant(self, doctor_id: str, title: Optional[str] = None) -> VideoCall:
        self.agora.ensure_configured()
        call_id = generate_id()
        now = utcnow()
        call = self.repo.create(
            self.db,
            id=call_id,
            channel_name=f"instant-{call_id[:8]}",
            type="instant",
            status="live",
            doctor_id=doctor_id,
            title=title or "Instant meeting",
            scheduled_at=now,
            started_at=now,
        )
        logger.info(f"🎥 Instant call {call.id} started on {call.channel_name}")
        return call

    def start_for_appointment(self, appointment_id: str, doctor_id: str, title: Optional[str] = None) -> VideoCall:
        """Start the appointment's call, or bring an existing one back to live"""
        self.agora.ensure_configured()
        appointment: Optional[Appointment] = AppointmentRepository.get_by_id(self.db, appointment_id)
        if not appointment or appointment.doctor_id != doctor_id:
            raise HTTPException(status_code=404, detail="Appointment not found")

        now = utcnow()
        existing = self.repo.get_for_appointment(self.db, appointment.id)
        if existing:
            call = self.repo.update(
                self.db, existing, status="live", started_at=existing.started_at or now, updated_at=now
            )
            logger.info(f"🔁 Appointment call {call.id} restarted")
            return call

        call = self.repo.create(
            self.db,
            channel_name=f"appt-{appointment.id[:8]}",
            type="appointment",
            status="live",
            doctor_id=doctor_id,
            patient_external_id=appointment.patient_external_id,
            appointment_id=appointment.id,
            title=title or "Appointment",
            scheduled_at=appointment.scheduled_at,
            started_at=now,
        )
        logger.info(f"🎥 Appointment call {call.id} started on {call.channel_name}")
        return call

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, call_id: str, data: CallTokenRequest) -> dict:
        self.agora.ensure_configured()
        call = self.get_call(call_id)
        token = self.agora.build_rtc_token(call.channel_name, data.uid, data.role, data.expireSeconds)
        return {
            "token": token,
            "appId": self.agora.app_id,
            "channelName": call.channel_name,
            "uid": str(data.uid),
        }

    # ------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------

    def join(self, call_id: str, data: ParticipantJoin) -> VideoCallParticipant:
        """Record a join; rejoining resets the participant's leave data"""
        call = self.get_call(call_id)
        participant = self.repo.get_participant(self.db, call.id, data.participantType, data.participantId)
        if participant is None:
            participant = VideoCallParticipant(
                call_id=call.id,
                participant_type=data.participantType,
                participant_id=data.participantId,
            )
        participant.uid = str(data.uid) if data.uid is not None else None
        participant.role = data.role
        participant.joined_at = utcnow()
        participant.left_at = None
        participant.duration_seconds = None
        participant = self.repo.save_participant(self.db, participant)

        logger.info(f"👋 {data.participantType} {data.participantId} joined call {call.id}")
        return participant

    def leave(self, call_id: str, data: ParticipantLeave) -> Optional[VideoCallParticipant]:
        participant = self.repo.get_participant(self.db, call_id, data.participantType, data.participantId)
        if participant is None:
            return None

        now = utcnow()
        participant.left_at = now
        if participant.joined_at:
            participant.duration_seconds = max(0, int((now - participant.joined_at).total_seconds()))
        participant = self.repo.save_participant(self.db, participant)

        logger.info(f"🚪 {data.participantType} {data.participantId} left call {call_id}")
        return participant

    def list_participants(self, call_id: str) -> list[ParticipantResponse]:
        call = self.get_call(call_id)
        result = []
        for participant, doctor in self.repo.list_participants(self.db, call.id):
            item = ParticipantResponse.model_validate(participant)
            if doctor and doctor.first_name and doctor.last_name:
                item.display_name = f"{doctor.first_name} {doctor.last_name}"
            else:
                item.display_name = participant.participant_id
            if doctor:
                item.avatar_url = doctor.avatar_url
                item.email = doctor.email
            result.append(item)
        return result

    def end(self, call_id: str, duration_seconds: Optional[int] = None) -> VideoCall:
        call = self.get_call(call_id)
        now = utcnow()
        started_at = call.started_at or now
        duration = duration_seconds or max(0, int((now - started_at).total_seconds()))
        call = self.repo.update(self.db, call, status="ended", ended_at=now, duration_seconds=duration, updated_at=now)
        logger.info(f"📴 Call {call.id} ended after {duration}s")
        return call
