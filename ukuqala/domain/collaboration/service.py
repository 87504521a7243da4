"""
Collaboration service - doctor to doctor case discussion.

One thread exists per pair of doctors. The pair is stored with the smaller
id in ``doctor_id`` so either doctor starting the chat finds the same row.
"""

import logging
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...database import utcnow
from ...models import CollabConversation, CollabMessage
from ...services.supabase_service import SupabaseService, profile_display_name
from ..auth.repository import DoctorRepository
from .repository import CollaborationRepository
from .schemas import CollabMessageCreate

logger = logging.getLogger(__name__)


def ordered_pair(doctor_id: str, peer_doctor_id: str) -> tuple[str, str]:
    return (doctor_id, peer_doctor_id) if doctor_id < peer_doctor_id else (peer_doctor_id, doctor_id)


def card_from_profile(profile: dict[str, Any]) -> dict[str, Any]:
    """Patient card fields built from a Supabase profile row"""
    return {
        "patientName": profile_display_name(profile),
        "patientAge": profile.get("age") or profile.get("dob") or "",
        "bloodGroup": profile.get("blood_group") or "N/A",
        "medicalCondition": profile.get("primary_condition") or "N/A",
        "height": profile.get("height") or "N/A",
        "weight": profile.get("weight") or "N/A",
        "avatar": profile.get("avatar_url") or "",
        "medicalFileUrl": profile.get("medical_file_url") or "",
    }


class CollaborationService:
    """Service layer for collaboration business logic"""

    def __init__(self, db: Session, supabase: SupabaseService):
        self.db = db
        self.supabase = supabase
        self.repo = CollaborationRepository()

    def start_chat(self, doctor_id: str, peer_doctor_id: str) -> CollabConversation:
        """Find or create the thread between two doctors"""
        if peer_doctor_id == doctor_id:
            raise HTTPException(status_code=400, detail="Cannot start a collaboration with yourself")
        if not DoctorRepository.get_by_id(self.db, peer_doctor_id):
            raise HTTPException(status_code=404, detail="Doctor not found")

        first, second = ordered_pair(doctor_id, peer_doctor_id)
        conversation = self.repo.get_pair(self.db, first, second)
        if conversation:
            return conversation

        conversation = self.repo.create(self.db, first, second, utcnow())
        logger.info(f"🤝 Collaboration {conversation.id} started between {first} and {second}")
        return conversation

    def list_chats(self, doctor_id: str) -> list[CollabConversation]:
        return self.repo.list_for_doctor(self.db, doctor_id)

    def _get_member_chat(self, conversation_id: str, doctor_id: str) -> CollabConversation:
        conversation = self.repo.get_by_id(self.db, conversation_id)
        if not conversation:
            raise HTTPException(status_code=404, detail="Conversation not found")
        if doctor_id not in (conversation.doctor_id, conversation.peer_doctor_id):
            raise HTTPException(status_code=403, detail="Forbidden")
        return conversation

    def list_messages(self, conversation_id: str, doctor_id: str) -> list[CollabMessage]:
        conversation = self._get_member_chat(conversation_id, doctor_id)
        return self.repo.list_messages(self.db, conversation.id)

    async def _patient_card(self, data: CollabMessageCreate) -> Optional[dict[str, Any]]:
        if data.patientPayload:
            return data.patientPayload.model_dump()
        if data.patientId and self.supabase.configured:
            profile = await self.supabase.get_profile(data.patientId)
            if profile:
                return card_from_profile(profile)
        return None

    async def send_message(self, conversation_id: str, doctor_id: str, data: CollabMessageCreate) -> CollabMessage:
        conversation = self._get_member_chat(conversation_id, doctor_id)

        meta: dict[str, Any] = {}
        if data.type == "patient_card":
            meta = {"patient": await self._patient_card(data), "notes": data.notes or ""}

        message = self.repo.add_message(
            self.db,
            conversation,
            utcnow(),
            doctor_id=doctor_id,
            type=data.type,
            content=data.content or "",
            meta=meta,
        )
        logger.info(f"💬 Collaboration message {message.id} ({data.type}) in {conversation.id}")
        return message
