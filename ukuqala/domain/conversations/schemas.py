"""Conversation schemas"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_uuid

ConversationStatus = Literal["active", "concluded", "blocked"]


class ConversationCreate(BaseModel):
    doctorId: Optional[str] = None
    patientExternalId: Optional[str] = None

    @field_validator("doctorId", "patientExternalId")
    @classmethod
    def check_uuid(cls, v):
        if v is not None and not validate_uuid(v):
            raise ValueError("must be a UUID")
        return v


class ConversationClose(BaseModel):
    reason: Optional[str] = None


class MessageAttachment(BaseModel):
    name: str
    url: str


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)
    attachments: list[MessageAttachment] = []


class ConversationResponse(BaseModel):
    id: str
    doctor_id: str
    patient_external_id: str
    status: str
    reason: Optional[str] = None
    closed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageResponse(BaseModel):
    """Message with content and attachments already decrypted"""

    id: str
    conversation_id: str
    sender_type: str
    sender_id: str
    content: str
    attachments: list[Any] = []
    delivered_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
