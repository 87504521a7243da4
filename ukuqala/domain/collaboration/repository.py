"""Collaboration repository - Database operations for doctor to doctor chats"""

from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from ...models import CollabConversation, CollabMessage


class CollaborationRepository:
    """Repository for collaboration database operations"""

    @staticmethod
    def get_by_id(db: Session, conversation_id: str) -> Optional[CollabConversation]:
        return db.query(CollabConversation).filter(CollabConversation.id == conversation_id).first()

    @staticmethod
    def get_pair(db: Session, doctor_id: str, peer_doctor_id: str) -> Optional[CollabConversation]:
        return (
            db.query(CollabConversation)
            .filter(CollabConversation.doctor_id == doctor_id, CollabConversation.peer_doctor_id == peer_doctor_id)
            .first()
        )

    @staticmethod
    def create(db: Session, doctor_id: str, peer_doctor_id: str, now: datetime) -> CollabConversation:
        conversation = CollabConversation(
            doctor_id=doctor_id, peer_doctor_id=peer_doctor_id, created_at=now, updated_at=now
        )
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        return conversation

    @staticmethod
    def list_for_doctor(db: Session, doctor_id: str) -> list[CollabConversation]:
        return (
            db.query(CollabConversation)
            .options(joinedload(CollabConversation.doctor), joinedload(CollabConversation.peer_doctor))
            .filter(or_(CollabConversation.doctor_id == doctor_id, CollabConversation.peer_doctor_id == doctor_id))
            .order_by(CollabConversation.updated_at.desc())
            .all()
        )

    @staticmethod
    def list_messages(db: Session, conversation_id: str) -> list[CollabMessage]:
        return (
            db.query(CollabMessage)
            .filter(CollabMessage.conversation_id == conversation_id)
            .order_by(CollabMessage.created_at.asc())
            .all()
        )

    @staticmethod
    def add_message(db: Session, conversation: CollabConversation, now: datetime, **message_data) -> CollabMessage:
        message = CollabMessage(conversation_id=conversation.id, created_at=now, **message_data)
        db.add(message)
        conversation.updated_at = now
        db.commit()
        db.refresh(message)
        return message
