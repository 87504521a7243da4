"""Conversation router - doctor/patient messaging"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...schemas import envelope
from .schemas import ConversationClose, ConversationCreate, ConversationResponse, ConversationStatus, MessageCreate
from .service import ConversationService

router = APIRouter(prefix="/conversations", tags=["Conversations"])


def get_conversation_service(db: Session = Depends(get_db)) -> ConversationService:
    """Dependency injection for ConversationService"""
    return ConversationService(db)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_conversation(
    data: ConversationCreate,
    actor: Actor = Depends(get_current_actor),
    service: ConversationService = Depends(get_conversation_service),
):
    conversation = service.create_conversation(data, actor)
    return envelope(ConversationResponse.model_validate(conversation))


@router.get("")
async def list_conversations(
    status: Optional[ConversationStatus] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: ConversationService = Depends(get_conversation_service),
):
    """Caller's conversations, most recently active first"""
    conversations = service.list_conversations(actor, status)
    return envelope([ConversationResponse.model_validate(c) for c in conversations])


@router.post("/{conversation_id}/conclude")
async def conclude_conversation(
    conversation_id: str,
    data: Optional[ConversationClose] = Body(None),
    actor: Actor = Depends(get_current_actor),
    service: ConversationService = Depends(get_conversation_service),
):
    reason = data.reason if data else None
    conversation = service.transition(conversation_id, "concluded", actor, reason)
    return envelope(ConversationResponse.model_validate(conversation))


@router.post("/{conversation_id}/block")
async def block_conversation(
    conversation_id: str,
    data: Optional[ConversationClose] = Body(None),
    actor: Actor = Depends(get_current_actor),
    service: ConversationService = Depends(get_conversation_service),
):
    reason = data.reason if data else None
    conversation = service.transition(conversation_id, "blocked", actor, reason)
    return envelope(ConversationResponse.model_validate(conversation))


@router.post("/{conversation_id}/reopen")
async def reopen_conversation(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ConversationService = Depends(get_conversation_service),
):
    conversation = service.transition(conversation_id, "active", actor)
    return envelope(ConversationResponse.model_validate(conversation))


@router.get("/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    actor: Actor = Depends(get_current_actor),
    service: ConversationService = Depends(get_conversation_service),
):
    """Decrypted messages, oldest first"""
    return envelope(service.list_messages(conversation_id, actor))


@router.post("/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    data: MessageCreate,
    actor: Actor = Depends(get_current_actor),
    service: ConversationService = Depends(get_conversation_service),
):
    return envelope(service.send_message(conversation_id, data, actor))
