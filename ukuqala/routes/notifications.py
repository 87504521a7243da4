import logging
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_doctor
from ..database import get_db
from ..models import Doctor, Notification
from ..schemas import envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])

MAX_NOTIFICATIONS = 100


class NotificationCreate(BaseModel):
    type: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    meta: Optional[dict[str, Any]] = None


class NotificationResponse(BaseModel):
    id: str
    doctor_id: str
    type: str
    title: str
    message: Optional[str] = None
    unread: bool
    meta: dict[str, Any] = {}
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


@router.get("")
async def list_notifications(
    unread: Optional[bool] = Query(None),
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    """Newest notifications first; ``unread=true`` limits to unread ones"""
    query = db.query(Notification).filter(Notification.doctor_id == current_doctor.id)
    if unread:
        query = query.filter(Notification.unread.is_(True))
    notifications = query.order_by(Notification.created_at.desc()).limit(MAX_NOTIFICATIONS).all()
    return envelope([NotificationResponse.model_validate(n) for n in notifications])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_notification(
    data: NotificationCreate,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    if not data.type or not data.title:
        raise HTTPException(status_code=400, detail="type and title required")

    notification = Notification(
        doctor_id=current_doctor.id,
        type=data.type,
        title=data.title,
        message=data.message,
        meta=data.meta or {},
    )
    db.add(notification)
    db.commit()
    db.refresh(notification)

    logger.info(f"🔔 Notification {notification.id} ({notification.type}) created for doctor {current_doctor.id}")
    return envelope(NotificationResponse.model_validate(notification))


@router.patch("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.doctor_id == current_doctor.id)
        .first()
    )
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.unread = False
    db.commit()
    db.refresh(notification)
    return envelope(NotificationResponse.model_validate(notification))
