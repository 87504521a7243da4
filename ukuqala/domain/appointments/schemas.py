"""Appointment schemas"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import to_naive_utc, validate_uuid

AppointmentType = Literal["physical", "virtual", "follow-up"]
AppointmentStatus = Literal["pending", "confirmed", "rescheduled", "canceled", "completed"]
TERMINAL_STATUSES = {"canceled", "completed"}


class AppointmentAttachment(BaseModel):
    name: str
    url: str


class AppointmentCreate(BaseModel):
    doctorId: str
    patientExternalId: Optional[str] = None
    scheduledAt: datetime
    durationMinutes: int = Field(gt=0)
    type: AppointmentType
    location: Optional[str] = None
    meetingUrl: Optional[str] = None
    reason: Optional[str] = None
    attachments: list[AppointmentAttachment] = []

    @field_validator("doctorId", "patientExternalId")
    @classmethod
    def check_uuid(cls, v):
        if v is not None and not validate_uuid(v):
            raise ValueError("must be a UUID")
        return v

    @field_validator("scheduledAt")
    @classmethod
    def normalize_time(cls, v):
        return to_naive_utc(v)


class AppointmentStatusUpdate(BaseModel):
    status: Literal["confirmed", "rescheduled", "canceled", "completed"]
    scheduledAt: Optional[datetime] = None
    durationMinutes: Optional[int] = Field(default=None, gt=0)
    meetingUrl: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("scheduledAt")
    @classmethod
    def normalize_time(cls, v):
        return to_naive_utc(v) if v else v


class AppointmentResponse(BaseModel):
    id: str
    doctor_id: str
    patient_external_id: str
    scheduled_at: datetime
    duration_minutes: int
    type: str
    status: str
    location: Optional[str] = None
    meeting_url: Optional[str] = None
    reason: Optional[str] = None
    attachments: list[dict] = []
    reschedule_reason: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
