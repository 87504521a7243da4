"""
Dashboard statistics for the signed-in doctor.

Aggregation happens in Python over the doctor's own rows so the same code
runs on PostgreSQL and SQLite.
"""

import logging
from datetime import date, datetime

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_doctor
from ..database import get_db
from ..models import Appointment, Conversation, Doctor, DoctorRating
from ..schemas import envelope

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/stats", tags=["Stats"])

DAILY_BUCKETS = 14
MONTHLY_BUCKETS = 6


def _month_start(value: datetime) -> date:
    return date(value.year, value.month, 1)


def daily_counts(scheduled: list[datetime], buckets: int = DAILY_BUCKETS) -> list[dict]:
    """Appointment counts for the most recent ``buckets`` days that have any, oldest first"""
    counts: dict[date, int] = {}
    for value in scheduled:
        counts[value.date()] = counts.get(value.date(), 0) + 1
    days = sorted(counts, reverse=True)[:buckets]
    return [{"day": day.isoformat(), "count": counts[day]} for day in sorted(days)]


def monthly_distinct(rows: list[tuple[datetime, str]], key: str, buckets: int = MONTHLY_BUCKETS) -> list[dict]:
    """Distinct values per month for the most recent ``buckets`` months, labelled ``Mon``"""
    months: dict[date, set] = {}
    for value, item in rows:
        months.setdefault(_month_start(value), set()).add(item)
    recent = sorted(months, reverse=True)[:buckets]
    return [{"month": month.strftime("%b"), key: len(months[month])} for month in sorted(recent)]


def monthly_counts(values: list[datetime], key: str, buckets: int = MONTHLY_BUCKETS) -> list[dict]:
    months: dict[date, int] = {}
    for value in sorted(values):
        month = _month_start(value)
        months[month] = months.get(month, 0) + 1
    recent = list(months.items())[-buckets:]
    return [{"month": month.strftime("%b"), key: count} for month, count in recent]


@router.get("/doctor")
async def doctor_stats(
    current_doctor: Doctor = Depends(get_current_doctor),
    db: Session = Depends(get_db),
):
    doctor_id = current_doctor.id

    appointments = (
        db.query(Appointment.scheduled_at, Appointment.patient_external_id, Appointment.status)
        .filter(Appointment.doctor_id == doctor_id)
        .all()
    )
    concluded = (
        db.query(Conversation.created_at)
        .filter(Conversation.doctor_id == doctor_id, Conversation.status == "concluded")
        .all()
    )
    scores = [row[0] for row in db.query(DoctorRating.score).filter(DoctorRating.doctor_id == doctor_id).all()]

    monthly_concluded = monthly_counts([row[0] for row in concluded], "concluded")

    stats = {
        "totalAppointments": len(appointments),
        "confirmedAppointments": sum(1 for a in appointments if a.status == "confirmed"),
        "totalPatients": len({a.patient_external_id for a in appointments}),
        "concludedConversations": sum(row["concluded"] for row in monthly_concluded),
        "ratingsCount": len(scores),
        "avgRating": round(sum(scores) / len(scores), 2) if scores else 0,
        "dailyAppointments": daily_counts([a.scheduled_at for a in appointments]),
        "monthlyPatients": monthly_distinct(
            [(a.scheduled_at, a.patient_external_id) for a in appointments], "patients"
        ),
        "monthlyConcluded": monthly_concluded,
    }

    logger.debug(f"📊 Stats computed for doctor {doctor_id}")
    return envelope(stats)
