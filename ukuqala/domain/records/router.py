"""Patient record router - doctor-scoped CRUD plus the public QR lookup"""

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from ...auth import get_current_doctor
from ...database import get_db
from ...models import Doctor
from ...schemas import envelope
from ...services.supabase_service import SupabaseService, get_supabase_service
from .schemas import RecordCreate, RecordUpdate
from .service import RecordService

router = APIRouter(prefix="/records", tags=["Records"])
public_router = APIRouter(prefix="/public/records", tags=["Public Records"])


def get_record_service(
    db: Session = Depends(get_db),
    supabase: SupabaseService = Depends(get_supabase_service),
) -> RecordService:
    """Dependency injection for RecordService"""
    return RecordService(db, supabase)


@router.get("")
async def list_records(
    current_doctor: Doctor = Depends(get_current_doctor),
    service: RecordService = Depends(get_record_service),
):
    """Doctor's patient records, most recently updated first"""
    return envelope(await service.list_records(current_doctor.id))


@router.get("/{record_id}")
async def get_record(
    record_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: RecordService = Depends(get_record_service),
):
    return envelope(await service.get_hydrated(record_id, current_doctor.id))


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_record(
    data: RecordCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: RecordService = Depends(get_record_service),
):
    return envelope(service.create_record(current_doctor.id, data))


@router.put("/{record_id}")
async def update_record(
    record_id: str,
    data: RecordUpdate,
    current_doctor: Doctor = Depends(get_current_doctor),
    service: RecordService = Depends(get_record_service),
):
    return envelope(service.update_record(record_id, current_doctor.id, data))


@router.post("/{record_id}/attachments")
async def upload_attachment(
    record_id: str,
    file: UploadFile = File(...),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: RecordService = Depends(get_record_service),
):
    """Attach a file (max 10MB) to a record"""
    return envelope(await service.add_attachment(record_id, current_doctor.id, file))


@router.post("/{record_id}/avatar")
async def upload_record_avatar(
    record_id: str,
    avatar: UploadFile = File(...),
    current_doctor: Doctor = Depends(get_current_doctor),
    service: RecordService = Depends(get_record_service),
):
    return envelope(await service.set_avatar(record_id, current_doctor.id, avatar))


@public_router.get("/{id_or_qr}")
async def get_public_record(id_or_qr: str, service: RecordService = Depends(get_record_service)):
    """Unauthenticated lookup by record id or QR code"""
    return envelope(await service.public_lookup(id_or_qr))
