"""Shared response schemas and the JSON envelope"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


def envelope(data: Any = None, **extra) -> dict:
    """{"success": true, "data": ...} plus any flattened extras"""
    body: dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


class AvailabilitySlot(BaseModel):
    day: str
    start: str
    end: str


class DoctorResponse(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    education: Optional[str] = None
    experience_years: Optional[int] = None
    specialty: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    timezone: Optional[str] = None
    languages: list[str] = []
    bio: Optional[str] = None
    consultation_mode: Optional[str] = None
    availability: list[dict] = []
    onboarding_completed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DoctorSummary(BaseModel):
    """Doctor fields returned with auth tokens"""

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    onboarding_completed: bool = False

    class Config:
        from_attributes = True


class DoctorListItem(DoctorResponse):
    rating: float = 0.0
    rating_count: int = 0


def normalize_languages(value: Any) -> list[str]:
    """Accept a list or a comma separated string"""
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(part).strip() for part in value if str(part).strip()]


def clean_profile_updates(updates: dict) -> dict:
    """Normalize languages/availability and drop nulls for non-nullable columns"""
    if "languages" in updates:
        updates["languages"] = normalize_languages(updates["languages"])
    if "availability" in updates:
        updates["availability"] = [
            slot if isinstance(slot, dict) else slot.model_dump() for slot in updates["availability"] or []
        ]
    if updates.get("consultation_mode") is None:
        updates.pop("consultation_mode", None)
    return updates
