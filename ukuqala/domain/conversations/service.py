"""
Conversation service - doctor/patient messaging.

A conversation is ``active``, ``concluded`` or ``blocked``. Only the
owning doctor moves it between states:

    active    --conclude--> concluded
    active    --block-----> blocked
    concluded --block-----> blocked
    concluded --reopen----> active
    blocked   --reopen----> active

Messages can only be sent while the conversation is active. Message
content and attachments are stored encrypted; the plaintext columns hold
a placeholder.
"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import Actor
from ...database import utcnow
from ...models import Conversation, Message
from ...utils.crypto import PayloadDecryptionError, decrypt_payload, encrypt_payload
from ..auth.repository import DoctorRepository
from .repository import ConversationRepository
from .schemas import ConversationCreate, MessageCreate, MessageResponse

logger = logging.getLogger(__name__)

ENCRYPTED_PLACEHOLDER = "[encrypted]"

# target status -> (verb, statuses it may be entered from)
TRANSITIONS = {
    "concluded": ("conclude", {"active"}),
    "blocked": ("block", {"active", "concluded"}),
    "active": ("reopen", {"concluded", "blocked"}),
}


class ConversationService:
    """Service layer for conversation business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ConversationRepository()

    @staticmethod
    def _ensure_member(conversation: Conversation, actor: Actor):
        if actor.is_doctor and conversation.doctor_id != actor.id:
            raise HTTPException(status_code=403, detail="Forbidden")
        if actor.is_patient and conversation.patient_external_id != actor.id:
            raise HTTPException(status_code=403, detail="Forbidden")

    def _get_member_conversation(self, conversation_id: str, actor: Actor) -> Conversation:
        conversation = self.repo.get_by_id(self.db, conversation_id)
        if not conversation:
            raise HTTPException(status_code=404, detail="Conversation not found")
        self._ensure_member(conversation, actor)
        return conversation

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def create_conversation(self, data: ConversationCreate, actor: Actor) -> Conversation:
        if actor.is_patient:
            if not data.doctorId:
                raise HTTPException(status_code=400, detail="doctorId required")
            doctor_id, patient_external_id = data.doctorId, actor.id
            if not DoctorRepository.get_by_id(self.db, doctor_id):
                raise HTTPException(status_code=404, detail="Doctor not found")
        else:
            if not data.patientExternalId:
                raise HTTPException(status_code=400, detail="patientExternalId required")
            doctor_id, patient_external_id = actor.id, data.patientExternalId

        now = utcnow()
        conversation = self.repo.create(
            self.db,
            doctor_id=doctor_id,
            patient_external_id=patient_external_id,
            status="active",
            created_at=now,
            updated_at=now,
        )
        logger.info(f"💬 Conversation {conversation.id} opened by {actor.type} {actor.id}")
        return conversation

    def list_conversations(self, actor: Actor, status: Optional[str] = None) -> list[Conversation]:
        if actor.is_doctor:
            return self.repo.list_for_actor(self.db, doctor_id=actor.id, status=status)
        return self.repo.list_for_actor(self.db, patient_external_id=actor.id, status=status)

    def transition(
        self, conversation_id: str, target: str, actor: Actor, reason: Optional[str] = None
    ) -> Conversation:
        """Move a conversation to ``target`` status; doctor-only"""
        verb, allowed_from = TRANSITIONS[target]
        if not actor.is_doctor:
            raise HTTPException(status_code=403, detail=f"Only doctors can {verb} conversations")

        conversation = self.repo.get_for_doctor(self.db, conversation_id, actor.id)
        if not conversation:
            raise HTTPException(status_code=404, detail="Conversation not found")

        if conversation.status not in allowed_from:
            if conversation.status == target:
                detail = f"Conversation is already {target}"
            else:
                detail = f"Cannot {verb} a {conversation.status} conversation"
            raise HTTPException(status_code=400, detail=detail)

        now = utcnow()
        if target == "active":
            conversation = self.repo.set_status(self.db, conversation, "active", None, None, now)
        else:
            conversation = self.repo.set_status(self.db, conversation, target, reason, now, now)

        logger.info(f"🔄 Conversation {conversation.id} -> {target} by doctor {actor.id}")
        return conversation

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    @staticmethod
    def to_response(message: Message) -> MessageResponse:
        """Decrypt a stored message, falling back to its plaintext columns"""
        try:
            payload = decrypt_payload(message.encrypted_payload) or {}
        except PayloadDecryptionError as e:
            logger.warning(f"⚠️ Could not decrypt message {message.id}: {e}")
            payload = {}
        return MessageResponse(
            id=message.id,
            conversation_id=message.conversation_id,
            sender_type=message.sender_type,
            sender_id=message.sender_id,
            content=payload.get("content") or message.content,
            attachments=payload.get("attachments") or message.attachments or [],
            delivered_at=message.delivered_at,
            read_at=message.read_at,
            created_at=message.created_at,
        )

    def list_messages(self, conversation_id: str, actor: Actor) -> list[MessageResponse]:
        conversation = self._get_member_conversation(conversation_id, actor)
        self.repo.mark_read(self.db, conversation.id, actor.type, utcnow())
        return [self.to_response(m) for m in self.repo.list_messages(self.db, conversation.id)]

    def send_message(self, conversation_id: str, data: MessageCreate, actor: Actor) -> MessageResponse:
        conversation = self._get_member_conversation(conversation_id, actor)
        if conversation.status != "active":
            raise HTTPException(status_code=400, detail="Conversation is not active")

        payload = encrypt_payload(
            {"content": data.content, "attachments": [a.model_dump() for a in data.attachments]}
        )
        now = utcnow()
        message = self.repo.add_message(
            self.db,
            conversation,
            now,
            sender_type=actor.type,
            sender_id=actor.id,
            content=ENCRYPTED_PLACEHOLDER,
            attachments=[],
            encrypted_payload=payload,
            delivered_at=now,
        )
        logger.info(f"✉️ Message {message.id} sent in conversation {conversation.id} by {actor.type}")
        return self.to_response(message)
