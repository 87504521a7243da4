"""Video call schemas"""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, Field

from ...services.agora_service import DEFAULT_EXPIRE_SECONDS, MAX_EXPIRE_SECONDS
from ..appointments.schemas import AppointmentResponse

ParticipantType = Literal["doctor", "patient"]
TokenRole = Literal["publisher", "subscriber"]


class CallTitle(BaseModel):
    title: Optional[str] = None


class CallTokenRequest(BaseModel):
    uid: Union[int, str]
    role: TokenRole = "publisher"
    expireSeconds: int = Field(default=DEFAULT_EXPIRE_SECONDS, gt=0, le=MAX_EXPIRE_SECONDS)


class RtcTokenRequest(CallTokenRequest):
    channelName: str = Field(min_length=1)


class RtmTokenRequest(BaseModel):
    account: str = Field(min_length=1)
    expireSeconds: int = Field(default=DEFAULT_EXPIRE_SECONDS, gt=0, le=MAX_EXPIRE_SECONDS)


class ParticipantJoin(BaseModel):
    participantType: ParticipantType
    participantId: str = Field(min_length=1)
    uid: Optional[Union[int, str]] = None
    role: Optional[str] = None


class ParticipantLeave(BaseModel):
    participantType: ParticipantType
    participantId: str = Field(min_length=1)


class CallEnd(BaseModel):
    durationSeconds: Optional[int] = Field(default=None, ge=0)


class VideoCallResponse(BaseModel):
    id: str
    channel_name: str
    type: str
    status: str
    doctor_id: Optional[str] = None
    patient_external_id: Optional[str] = None
    appointment_id: Optional[str] = None
    title: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ScheduledAppointment(AppointmentResponse):
    """Appointment with its video call, when one was started"""

    call: Optional[VideoCallResponse] = Field(default=None, validation_alias="video_call")


class ParticipantResponse(BaseModel):
    id: str
    call_id: str
    participant_type: str
    participant_id: str
    uid: Optional[str] = None
    role: Optional[str] = None
    joined_at: Optional[datetime] = None
    left_at: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None

    class Config:
        from_attributes = True
