"""
Appointment reminder sweep
Sends one-day and five-hour reminders for confirmed appointments, exactly once
per threshold per appointment as tracked by the appointment's reminder flags
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from .. import email_service
from ..domain.appointments.repository import AppointmentRepository
from ..domain.appointments.views import DATE_FORMAT, TIME_FORMAT, participant_name
from ..models import Appointment

logger = logging.getLogger(__name__)

FIVE_HOUR_LEAD = timedelta(hours=5)
FIVE_HOUR_BAND = timedelta(minutes=15)


def one_day_window(now: datetime) -> tuple[datetime, datetime]:
    """Tomorrow's calendar day: [midnight + 1 day, midnight + 2 days)"""
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return midnight + timedelta(days=1), midnight + timedelta(days=2)


def five_hour_window(now: datetime) -> tuple[datetime, datetime]:
    """30-minute band centered five hours from now, both ends inclusive"""
    target = now + FIVE_HOUR_LEAD
    return target - FIVE_HOUR_BAND, target + FIVE_HOUR_BAND


async def _remind(db: Session, appointment: Appointment, flag: str, summary: dict, sent_key: str):
    recipient = appointment.recipient_email
    clinic_name = appointment.clinic.name if appointment.clinic else None

    if not recipient or not clinic_name:
        logger.warning(
            f"⚠️ Appointment {appointment.id} missing recipient email or clinic name, skipping reminder"
        )
        summary["skipped"] += 1
        return

    try:
        await email_service.send_appointment_reminder(
            to=recipient,
            pet_owner_name=participant_name(appointment),
            clinic_name=clinic_name,
            appointment_date=appointment.date.strftime(DATE_FORMAT),
            appointment_time=appointment.date.strftime(TIME_FORMAT),
        )
    except Exception as e:
        logger.error(f"❌ Reminder email failed for appointment {appointment.id}: {e}")
        summary["failed"] += 1
        return

    # Flag committed per appointment so a crash mid-sweep never re-sends earlier ones
    setattr(appointment, flag, True)
    db.commit()
    summary[sent_key] += 1
    logger.info(f"✅ {flag} set for appointment {appointment.id} ({recipient})")


async def send_appointment_reminders(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Run one reminder sweep
    Should be run as a scheduled job (every minute)

    Returns:
        dict: Summary of reminders sent, skipped and failed
    """
    now = now or datetime.now()
    repo = AppointmentRepository()
    summary = {"one_day_sent": 0, "five_hour_sent": 0, "skipped": 0, "failed": 0}

    start, end = one_day_window(now)
    for appointment in repo.due_for_reminder(
        db, start, end, Appointment.reminder_1day_sent
    ):
        await _remind(db, appointment, "reminder_1day_sent", summary, "one_day_sent")

    start, end = five_hour_window(now)
    for appointment in repo.due_for_reminder(
        db, start, end, Appointment.reminder_5hour_sent, inclusive_end=True
    ):
        await _remind(db, appointment, "reminder_5hour_sent", summary, "five_hour_sent")

    if any(summary.values()):
        logger.info(f"📊 Reminder sweep complete: {summary}")
    return summary
