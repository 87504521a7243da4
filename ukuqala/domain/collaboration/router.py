"""Collaboration router - doctor to doctor chats"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor
from ...schemas import envelope
from ...services.supabase_service import SupabaseService, get_supabase_service
from .schemas import CollabChatCreate, CollabChatResponse, CollabMessageCreate, CollabMessageResponse
from .service import CollaborationService

router = APIRouter(prefix="/collaboration", tags=["Collaboration"])


def get_collaboration_service(
    db: Session = Depends(get_db),
    supabase: SupabaseService = Depends(get_supabase_service),
) -> CollaborationService:
    """Dependency injection for CollaborationService"""
    return CollaborationService(db, supabase)


@router.post("/chats", status_code=status.HTTP_201_CREATED)
async def start_chat(
    data: CollabChatCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CollaborationService = Depends(get_collaboration_service),
):
    conversation = service.start_chat(current_doctor.id, data.peerDoctorId)
    return envelope(CollabChatResponse.model_validate(conversation))


@router.get("/chats")
async def list_chats(
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CollaborationService = Depends(get_collaboration_service),
):
    """Threads the doctor belongs to, with both doctors' names and avatars"""
    chats = service.list_chats(current_doctor.id)
    return envelope([CollabChatResponse.model_validate(c) for c in chats])


@router.get("/chats/{conversation_id}/messages")
async def list_messages(
    conversation_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CollaborationService = Depends(get_collaboration_service),
):
    messages = service.list_messages(conversation_id, current_doctor.id)
    return envelope([CollabMessageResponse.model_validate(m) for m in messages])


@router.post("/chats/{conversation_id}/messages", status_code=status.HTTP_201_CREATED)
async def send_message(
    conversation_id: str,
    data: CollabMessageCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CollaborationService = Depends(get_collaboration_service),
):
    message = await service.send_message(conversation_id, current_doctor.id, data)
    return envelope(CollabMessageResponse.model_validate(message))
