"""
Chatbot service - doctor conversations with the Mistral medical assistant.

Each user message is stored before the completion request, so a failed
request leaves the question in the thread and the doctor can retry.
"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...database import utcnow
from ...models import ChatbotConversation, ChatbotMessage
from ...services.mistral_service import MistralError, MistralService
from .repository import ChatbotRepository

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 30


class ChatbotService:
    """Service layer for chatbot business logic"""

    def __init__(self, db: Session, mistral: MistralService):
        self.db = db
        self.mistral = mistral
        self.repo = ChatbotRepository()

    def create_conversation(self, doctor_id: str, title: str) -> ChatbotConversation:
        conversation = self.repo.create_conversation(self.db, doctor_id, title, utcnow())
        logger.info(f"🤖 Chatbot conversation {conversation.id} created for doctor {doctor_id}")
        return conversation

    def list_conversations(self, doctor_id: str) -> list[ChatbotConversation]:
        return self.repo.list_conversations(self.db, doctor_id)

    def get_conversation(self, conversation_id: str, doctor_id: str) -> ChatbotConversation:
        conversation = self.repo.get_conversation(self.db, conversation_id, doctor_id)
        if not conversation:
            raise HTTPException(status_code=404, detail="Conversation not found")
        return conversation

    def list_messages(self, conversation_id: str, doctor_id: str) -> list[ChatbotMessage]:
        conversation = self.get_conversation(conversation_id, doctor_id)
        return self.repo.list_messages(self.db, conversation.id)

    async def send_message(self, conversation_id: str, doctor_id: str, content: str) -> list[ChatbotMessage]:
        """Store the question, ask the assistant, store the reply; returns the whole thread"""
        conversation = self.get_conversation(conversation_id, doctor_id)
        self.repo.add_message(self.db, conversation, "user", content, {}, utcnow())

        history = [
            {"role": "assistant" if m.role == "assistant" else "user", "content": m.content}
            for m in self.repo.recent_messages(self.db, conversation.id, HISTORY_LIMIT)
        ]

        try:
            reply = await self.mistral.chat(history)
        except MistralError as e:
            logger.error(f"❌ Assistant reply failed for conversation {conversation.id}: {e}")
            raise HTTPException(status_code=502, detail=str(e)) from e

        self.repo.add_message(
            self.db, conversation, "assistant", reply["content"], {"model": reply["model"]}, utcnow()
        )
        logger.info(f"✅ Assistant replied in conversation {conversation.id}")
        return self.repo.list_messages(self.db, conversation.id)

    def set_reaction(self, message_id: str, doctor_id: str, reaction: str, active: bool) -> bool:
        """Idempotently add or remove a reaction; returns whether it is now set"""
        message = self.repo.get_message_for_doctor(self.db, message_id, doctor_id)
        if not message:
            raise HTTPException(status_code=404, detail="Message not found")

        existing = self.repo.get_reaction(self.db, message.id, doctor_id, reaction)
        if active and not existing:
            self.repo.add_reaction(self.db, message.id, doctor_id, reaction)
        elif not active and existing:
            self.repo.delete_reaction(self.db, existing)
        return active
