"""Appointment repository - Database operations for appointments"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from ...models import STATUS_CONFIRMED, Appointment, Guest

# Relationships needed by the display projection and notification bundles
_RELATED = (
    joinedload(Appointment.owner),
    joinedload(Appointment.guest).joinedload(Guest.pets),
    joinedload(Appointment.pet),
    joinedload(Appointment.guest_pet),
    joinedload(Appointment.clinic),
    joinedload(Appointment.service),
)


class AppointmentRepository:
    """Repository for appointment database operations"""

    @staticmethod
    def get_appointment(db: Session, appointment_id: int) -> Optional[Appointment]:
        """Get an appointment with its related records loaded"""
        return (
            db.query(Appointment)
            .options(*_RELATED)
            .filter(Appointment.id == appointment_id)
            .first()
        )

    @staticmethod
    def list_appointments(db: Session) -> list[Appointment]:
        return db.query(Appointment).options(*_RELATED).order_by(Appointment.date.desc()).all()

    @staticmethod
    def list_by_owner(db: Session, owner_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(*_RELATED)
            .filter(Appointment.owner_id == owner_id)
            .order_by(Appointment.date.desc())
            .all()
        )

    @staticmethod
    def list_by_clinic(db: Session, clinic_id: int) -> list[Appointment]:
        return (
            db.query(Appointment)
            .options(*_RELATED)
            .filter(Appointment.clinic_id == clinic_id)
            .order_by(Appointment.date.desc())
            .all()
        )

    @staticmethod
    def list_owner_appointments_in_clinic(db: Session, clinic_id: int) -> list[Appointment]:
        """Registered-owner appointments at a clinic (guests excluded)"""
        return (
            db.query(Appointment)
            .options(*_RELATED)
            .filter(Appointment.clinic_id == clinic_id, Appointment.owner_id.isnot(None))
            .order_by(Appointment.date.desc())
            .all()
        )

    @staticmethod
    def add_appointment(db: Session, **appointment_data) -> Appointment:
        """Stage a new appointment; the caller commits"""
        appointment = Appointment(**appointment_data)
        db.add(appointment)
        db.flush()
        return appointment

    @staticmethod
    def delete_appointment(db: Session, appointment: Appointment) -> None:
        db.delete(appointment)
        db.commit()

    @staticmethod
    def due_for_reminder(
        db: Session, start: datetime, end: datetime, flag_column, inclusive_end: bool = False
    ) -> list[Appointment]:
        """Confirmed appointments dated in [start, end) (or [start, end]) whose flag is unset"""
        end_clause = Appointment.date <= end if inclusive_end else Appointment.date < end
        return (
            db.query(Appointment)
            .options(*_RELATED)
            .filter(
                Appointment.status == STATUS_CONFIRMED,
                Appointment.date >= start,
                end_clause,
                flag_column.is_(False),
            )
            .order_by(Appointment.date)
            .all()
        )
