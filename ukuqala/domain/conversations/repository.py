"""Conversation repository - Database operations for conversations and messages"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Conversation, Message


class ConversationRepository:
    """Repository for conversation database operations"""

    @staticmethod
    def get_by_id(db: Session, conversation_id: str) -> Optional[Conversation]:
        return db.query(Conversation).filter(Conversation.id == conversation_id).first()

    @staticmethod
    def get_for_doctor(db: Session, conversation_id: str, doctor_id: str) -> Optional[Conversation]:
        return (
            db.query(Conversation)
            .filter(Conversation.id == conversation_id, Conversation.doctor_id == doctor_id)
            .first()
        )

    @staticmethod
    def list_for_actor(
        db: Session,
        doctor_id: Optional[str] = None,
        patient_external_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Conversation]:
        query = db.query(Conversation)
        if doctor_id:
            query = query.filter(Conversation.doctor_id == doctor_id)
        if patient_external_id:
            query = query.filter(Conversation.patient_external_id == patient_external_id)
        if status:
            query = query.filter(Conversation.status == status)
        return query.order_by(Conversation.updated_at.desc()).all()

    @staticmethod
    def create(db: Session, **conversation_data) -> Conversation:
        conversation = Conversation(**conversation_data)
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        return conversation

    @staticmethod
    def set_status(
        db: Session,
        conversation: Conversation,
        status: str,
        reason: Optional[str],
        closed_at: Optional[datetime],
        now: datetime,
    ) -> Conversation:
        conversation.status = status
        conversation.reason = reason
        conversation.closed_at = closed_at
        conversation.updated_at = now
        db.commit()
        db.refresh(conversation)
        return conversation

    @staticmethod
    def list_messages(db: Session, conversation_id: str) -> list[Message]:
        return (
            db.query(Message)
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc())
            .all()
        )

    @staticmethod
    def mark_read(db: Session, conversation_id: str, reader_type: str, now: datetime) -> int:
        """Stamp read_at on the other party's unread messages"""
        updated = (
            db.query(Message)
            .filter(
                Message.conversation_id == conversation_id,
                Message.sender_type != reader_type,
                Message.read_at.is_(None),
            )
            .update({Message.read_at: now}, synchronize_session="fetch")
        )
        db.commit()
        return updated

    @staticmethod
    def add_message(db: Session, conversation: Conversation, now: datetime, **message_data) -> Message:
        """Insert a message and bump the conversation's updated_at in one commit"""
        message = Message(conversation_id=conversation.id, created_at=now, **message_data)
        db.add(message)
        conversation.updated_at = now
        db.commit()
        db.refresh(message)
        return message
