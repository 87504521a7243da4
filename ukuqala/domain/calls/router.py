"""Video call router - schedule, call lifecycle and Agora tokens"""

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor
from ...schemas import envelope
from ...services.agora_service import AgoraService, get_agora_service
from .schemas import (
    CallEnd,
    CallTitle,
    CallTokenRequest,
    ParticipantJoin,
    ParticipantLeave,
    ParticipantResponse,
    ScheduledAppointment,
    VideoCallResponse,
)
from .service import CallService

router = APIRouter(prefix="/calls", tags=["Calls"])


def get_call_service(
    db: Session = Depends(get_db),
    agora: AgoraService = Depends(get_agora_service),
) -> CallService:
    """Dependency injection for CallService"""
    return CallService(db, agora)


@router.get("/schedule")
async def get_schedule(
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    """Upcoming and past appointments with their calls, plus the doctor lounge"""
    schedule = service.get_schedule(current_doctor.id)
    return envelope(
        {
            "upcoming": [ScheduledAppointment.model_validate(a) for a in schedule["upcoming"]],
            "past": [ScheduledAppointment.model_validate(a) for a in schedule["past"]],
            "lounge": VideoCallResponse.model_validate(schedule["lounge"]),
        }
    )


@router.post("/instant")
async def start_instant_call(
    data: Optional[CallTitle] = Body(None),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    call = service.start_instant(current_doctor.id, data.title if data else None)
    return envelope(VideoCallResponse.model_validate(call))


@router.post("/appointment/{appointment_id}/start")
async def start_appointment_call(
    appointment_id: str,
    data: Optional[CallTitle] = Body(None),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    call = service.start_for_appointment(appointment_id, current_doctor.id, data.title if data else None)
    return envelope(VideoCallResponse.model_validate(call))


@router.post("/{call_id}/token")
async def get_call_token(
    call_id: str,
    data: CallTokenRequest,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    """RTC token for the call's channel"""
    return envelope(**service.issue_token(call_id, data))


@router.post("/{call_id}/participants/join")
async def join_call(
    call_id: str,
    data: ParticipantJoin,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    participant = service.join(call_id, data)
    return envelope(ParticipantResponse.model_validate(participant))


@router.post("/{call_id}/participants/leave")
async def leave_call(
    call_id: str,
    data: ParticipantLeave,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    participant = service.leave(call_id, data)
    return {"success": True, "data": ParticipantResponse.model_validate(participant) if participant else None}


@router.get("/{call_id}/participants")
async def list_participants(
    call_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    return envelope(service.list_participants(call_id))


@router.post("/{call_id}/end")
async def end_call(
    call_id: str,
    data: Optional[CallEnd] = Body(None),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: CallService = Depends(get_call_service),
):
    call = service.end(call_id, data.durationSeconds if data else None)
    return envelope(VideoCallResponse.model_validate(call))
