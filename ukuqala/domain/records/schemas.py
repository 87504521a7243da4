"""Patient record schemas"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class RecordAttachment(BaseModel):
    name: str
    size: Optional[str] = None
    url: str


class RecordCreate(BaseModel):
    """Schema for creating a patient record (snake_case, as stored)"""

    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_address: Optional[str] = None
    avatar_url: Optional[str] = None
    patient_external_id: Optional[str] = None
    on_platform: bool = False
    qr_code: Optional[str] = None
    consultations: int = Field(default=0, ge=0)
    treatments: list[Any] = []
    prescriptions: list[Any] = []
    attachments: list[RecordAttachment] = []
    notes: Optional[str] = None
    blood_group: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None


class RecordUpdate(BaseModel):
    patient_name: Optional[str] = None
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_address: Optional[str] = None
    avatar_url: Optional[str] = None
    patient_external_id: Optional[str] = None
    on_platform: Optional[bool] = None
    qr_code: Optional[str] = None
    consultations: Optional[int] = Field(default=None, ge=0)
    treatments: Optional[list[Any]] = None
    prescriptions: Optional[list[Any]] = None
    attachments: Optional[list[RecordAttachment]] = None
    notes: Optional[str] = None
    blood_group: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None


class RecordResponse(BaseModel):
    id: str
    doctor_id: str
    patient_name: str
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_address: Optional[str] = None
    avatar_url: Optional[str] = None
    patient_external_id: Optional[str] = None
    on_platform: bool = False
    qr_code: Optional[str] = None
    consultations: int = 0
    treatments: list[Any] = []
    prescriptions: list[Any] = []
    attachments: list[Any] = []
    notes: Optional[str] = None
    blood_group: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HydratedRecordResponse(RecordResponse):
    """Record merged with the patient's Supabase profile and medical record"""

    age: Optional[Any] = None
    gender: Optional[str] = None
    bmi: Optional[Any] = None


class PublicProfile(BaseModel):
    full_name: Optional[str] = None
    age: Optional[Any] = None
    gender: Optional[str] = None
    blood_group: Optional[str] = None
    height: Optional[Any] = None
    weight: Optional[Any] = None
    avatar_url: Optional[str] = None
    primary_condition: Optional[str] = None
    medical_file_url: Optional[str] = None


class PublicRecordResponse(BaseModel):
    id: str
    qr_code: Optional[str] = None
    patient_name: str
    patient_email: Optional[str] = None
    patient_phone: Optional[str] = None
    patient_address: Optional[str] = None
    avatar_url: Optional[str] = None
    patient_external_id: Optional[str] = None
    on_platform: bool = False
    consultations: int = 0
    treatments: list[Any] = []
    prescriptions: list[Any] = []
    attachments: list[Any] = []
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    blood_group: Optional[str] = None
    height: Optional[Any] = None
    weight: Optional[Any] = None
    profile: Optional[PublicProfile] = None
