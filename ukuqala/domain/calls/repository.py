"""Video call repository - Database operations for calls and participants"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Doctor, VideoCall, VideoCallParticipant


class CallRepository:
    """Repository for video call database operations"""

    @staticmethod
    def get_by_id(db: Session, call_id: str) -> Optional[VideoCall]:
        return db.query(VideoCall).filter(VideoCall.id == call_id).first()

    @staticmethod
    def get_by_channel(db: Session, channel_name: str) -> Optional[VideoCall]:
        return db.query(VideoCall).filter(VideoCall.channel_name == channel_name).first()

    @staticmethod
    def get_for_appointment(db: Session, appointment_id: str) -> Optional[VideoCall]:
        return db.query(VideoCall).filter(VideoCall.appointment_id == appointment_id).first()

    @staticmethod
    def create(db: Session, **call_data) -> VideoCall:
        call = VideoCall(**call_data)
        db.add(call)
        db.commit()
        db.refresh(call)
        return call

    @staticmethod
    def update(db: Session, call: VideoCall, **updates) -> VideoCall:
        for key, value in updates.items():
            setattr(call, key, value)
        db.commit()
        db.refresh(call)
        return call

    @staticmethod
    def get_participant(
        db: Session, call_id: str, participant_type: str, participant_id: str
    ) -> Optional[VideoCallParticipant]:
        return (
            db.query(VideoCallParticipant)
            .filter(
                VideoCallParticipant.call_id == call_id,
                VideoCallParticipant.participant_type == participant_type,
                VideoCallParticipant.participant_id == participant_id,
            )
            .first()
        )

    @staticmethod
    def save_participant(db: Session, participant: VideoCallParticipant) -> VideoCallParticipant:
        db.add(participant)
        db.commit()
        db.refresh(participant)
        return participant

    @staticmethod
    def list_participants(db: Session, call_id: str) -> list[tuple[VideoCallParticipant, Optional[Doctor]]]:
        """Participants oldest join first, with the matching doctor row for doctor participants"""
        return (
            db.query(VideoCallParticipant, Doctor)
            .outerjoin(
                Doctor,
                (VideoCallParticipant.participant_type == "doctor")
                & (VideoCallParticipant.participant_id == Doctor.id),
            )
            .filter(VideoCallParticipant.call_id == call_id)
            .order_by(VideoCallParticipant.joined_at.asc())
            .all()
        )
