"""Appointment router - shared by doctors (JWT) and patients (Supabase token)"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ...auth import Actor, get_current_actor
from ...database import get_db
from ...schemas import envelope
from ...services.supabase_service import SupabaseService, get_supabase_service
from .schemas import AppointmentCreate, AppointmentResponse, AppointmentStatus, AppointmentStatusUpdate
from .service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(
    db: Session = Depends(get_db),
    supabase: SupabaseService = Depends(get_supabase_service),
) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db, supabase)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    data: AppointmentCreate,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment; patients book for themselves, doctors name the patient"""
    appointment = service.create_appointment(data, actor)
    return envelope(AppointmentResponse.model_validate(appointment))


@router.get("")
async def list_appointments(
    status: Optional[AppointmentStatus] = Query(None),
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    appointments = service.list_appointments(actor, status)
    return envelope([AppointmentResponse.model_validate(a) for a in appointments])


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    return envelope(AppointmentResponse.model_validate(service.get_appointment(appointment_id, actor)))


@router.post("/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: str,
    data: AppointmentStatusUpdate,
    actor: Actor = Depends(get_current_actor),
    service: AppointmentService = Depends(get_appointment_service),
):
    """Confirm, reschedule, cancel or complete; patients may only cancel"""
    appointment = await service.update_status(appointment_id, data, actor)
    return envelope(AppointmentResponse.model_validate(appointment))
