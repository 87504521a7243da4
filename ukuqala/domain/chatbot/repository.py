"""Chatbot repository - Database operations for assistant conversations"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ChatbotConversation, ChatbotMessage, ChatbotMessageReaction


class ChatbotRepository:
    """Repository for chatbot database operations"""

    @staticmethod
    def create_conversation(db: Session, doctor_id: str, title: str, now: datetime) -> ChatbotConversation:
        conversation = ChatbotConversation(doctor_id=doctor_id, title=title, created_at=now, updated_at=now)
        db.add(conversation)
        db.commit()
        db.refresh(conversation)
        return conversation

    @staticmethod
    def list_conversations(db: Session, doctor_id: str) -> list[ChatbotConversation]:
        return (
            db.query(ChatbotConversation)
            .filter(ChatbotConversation.doctor_id == doctor_id)
            .order_by(ChatbotConversation.created_at.desc())
            .all()
        )

    @staticmethod
    def get_conversation(db: Session, conversation_id: str, doctor_id: str) -> Optional[ChatbotConversation]:
        return (
            db.query(ChatbotConversation)
            .filter(ChatbotConversation.id == conversation_id, ChatbotConversation.doctor_id == doctor_id)
            .first()
        )

    @staticmethod
    def list_messages(db: Session, conversation_id: str) -> list[ChatbotMessage]:
        return (
            db.query(ChatbotMessage)
            .filter(ChatbotMessage.conversation_id == conversation_id)
            .order_by(ChatbotMessage.created_at.asc())
            .all()
        )

    @staticmethod
    def recent_messages(db: Session, conversation_id: str, limit: int) -> list[ChatbotMessage]:
        """Latest ``limit`` messages, returned oldest first"""
        rows = (
            db.query(ChatbotMessage)
            .filter(ChatbotMessage.conversation_id == conversation_id)
            .order_by(ChatbotMessage.created_at.desc())
            .limit(limit)
            .all()
        )
        return list(reversed(rows))

    @staticmethod
    def add_message(
        db: Session, conversation: ChatbotConversation, role: str, content: str, meta: dict, now: datetime
    ) -> ChatbotMessage:
        message = ChatbotMessage(
            conversation_id=conversation.id, role=role, content=content, meta=meta, created_at=now
        )
        db.add(message)
        conversation.updated_at = now
        db.commit()
        db.refresh(message)
        return message

    @staticmethod
    def get_message_for_doctor(db: Session, message_id: str, doctor_id: str) -> Optional[ChatbotMessage]:
        return (
            db.query(ChatbotMessage)
            .join(ChatbotConversation, ChatbotMessage.conversation_id == ChatbotConversation.id)
            .filter(ChatbotMessage.id == message_id, ChatbotConversation.doctor_id == doctor_id)
            .first()
        )

    @staticmethod
    def get_reaction(db: Session, message_id: str, doctor_id: str, reaction: str) -> Optional[ChatbotMessageReaction]:
        return (
            db.query(ChatbotMessageReaction)
            .filter(
                ChatbotMessageReaction.message_id == message_id,
                ChatbotMessageReaction.doctor_id == doctor_id,
                ChatbotMessageReaction.reaction == reaction,
            )
            .first()
        )

    @staticmethod
    def add_reaction(db: Session, message_id: str, doctor_id: str, reaction: str) -> ChatbotMessageReaction:
        row = ChatbotMessageReaction(message_id=message_id, doctor_id=doctor_id, reaction=reaction)
        db.add(row)
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def delete_reaction(db: Session, row: ChatbotMessageReaction):
        db.delete(row)
        db.commit()
