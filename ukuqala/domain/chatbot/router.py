"""Chatbot router - Mistral assistant for doctors"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor
from ...schemas import envelope
from ...services.mistral_service import MistralService, get_mistral_service
from .schemas import (
    DEFAULT_TITLE,
    ChatbotConversationCreate,
    ChatbotConversationResponse,
    ChatbotMessageCreate,
    ChatbotMessageResponse,
    ReactionUpdate,
)
from .service import ChatbotService

router = APIRouter(prefix="/chatbot", tags=["Chatbot"])


def get_chatbot_service(
    db: Session = Depends(get_db),
    mistral: MistralService = Depends(get_mistral_service),
) -> ChatbotService:
    """Dependency injection for ChatbotService"""
    return ChatbotService(db, mistral)


@router.post("/conversations", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: Optional[ChatbotConversationCreate] = Body(None),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: ChatbotService = Depends(get_chatbot_service),
):
    title = data.title if data and data.title else DEFAULT_TITLE
    conversation = service.create_conversation(current_doctor.id, title)
    return envelope(ChatbotConversationResponse.model_validate(conversation))


@router.get("/conversations")
async def list_conversations(
    current_doctor: Doctor = Depends(get_current_doctor),
    service: ChatbotService = Depends(get_chatbot_service),
):
    conversations = service.list_conversations(current_doctor.id)
    return envelope([ChatbotConversationResponse.model_validate(c) for c in conversations])


@router.get("/conversations/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: ChatbotService = Depends(get_chatbot_service),
):
    messages = service.list_messages(conversation_id, current_doctor.id)
    return envelope([ChatbotMessageResponse.model_validate(m) for m in messages])


@router.post("/conversations/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    data: ChatbotMessageCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: ChatbotService = Depends(get_chatbot_service),
):
    """Ask the assistant; responds with the full thread including the reply"""
    messages = await service.send_message(conversation_id, current_doctor.id, data.content)
    return envelope([ChatbotMessageResponse.model_validate(m) for m in messages])


@router.post("/messages/{message_id}/reaction")
async def react_to_message(
    message_id: str,
    data: ReactionUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: ChatbotService = Depends(get_chatbot_service),
):
    active = service.set_reaction(message_id, current_doctor.id, data.reaction, data.active)
    return envelope({"messageId": message_id, "reaction": data.reaction, "active": active})
