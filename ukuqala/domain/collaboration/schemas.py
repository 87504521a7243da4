"""Collaboration schemas - doctor to doctor chat"""

from datetime import datetime
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_uuid


class CollabChatCreate(BaseModel):
    peerDoctorId: str

    @field_validator("peerDoctorId")
    @classmethod
    def check_uuid(cls, v):
        if not validate_uuid(v):
            raise ValueError("must be a UUID")
        return v


class PatientCard(BaseModel):
    """Case summary shared between doctors"""

    patientName: str
    patientAge: Union[int, float, str] = ""
    bloodGroup: str = "N/A"
    medicalCondition: str = "N/A"
    height: Union[str, float] = "N/A"
    weight: Union[str, float] = "N/A"
    avatar: str = ""
    medicalFileUrl: Optional[str] = None


class CollabMessageCreate(BaseModel):
    type: Literal["text", "patient_card"]
    content: Optional[str] = None
    patientId: Optional[str] = None
    patientPayload: Optional[PatientCard] = None
    notes: Optional[str] = None


class PeerSummary(BaseModel):
    id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: str
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class CollabChatResponse(BaseModel):
    id: str
    doctor_id: str
    peer_doctor_id: str
    doctor: Optional[PeerSummary] = None
    peer_doctor: Optional[PeerSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class CollabMessageResponse(BaseModel):
    id: str
    conversation_id: str
    doctor_id: str
    type: str
    content: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
