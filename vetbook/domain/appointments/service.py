"""Appointment service - Booking paths, status lifecycle and notification fan-out"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ... import email_service
from ...config import FOLLOW_UP_DAYS
from ...models import (
    APPOINTMENT_STATUSES,
    STATUS_CANCELED,
    STATUS_COMPLETED,
    STATUS_CONFIRMED,
    STATUS_IN_PROGRESS,
    STATUS_PENDING,
    STATUS_READY_FOR_PICKUP,
    Appointment,
    Pet,
)
from ...otp_broker import OTPBroker, OTPError, PendingEntryNotFound, get_booking_broker
from ...services.document_service import (
    DocumentGenerationError,
    build_verify_url,
    create_receipt_pdf,
    generate_qr_code,
)
from ...shared.validators import parse_time_of_day
from ..directory.repository import DirectoryRepository
from .repository import AppointmentRepository
from .schemas import (
    AppointmentUpdate,
    AppointmentView,
    ClinicBookingCreate,
    ClinicOwnerSummary,
    GuestBookingCreate,
    GuestBookingVerify,
    OwnerPetSummary,
    OwnerServiceSummary,
    RegisteredBookingCreate,
)
from .views import DATE_FORMAT, TIME_FORMAT, build_appointment_view, build_notification_details

logger = logging.getLogger(__name__)

# Lowercased input -> canonical stored status
STATUS_LOOKUP = {status.lower(): status for status in APPOINTMENT_STATUSES}
STATUS_LOOKUP["cancelled"] = STATUS_CANCELED


def resolve_status(value: str) -> Optional[str]:
    """Case-insensitive match against the known statuses; None when unknown"""
    key = value.strip().lower().replace("_", "-")
    return STATUS_LOOKUP.get(key)


def normalize_booking_date(requested: datetime, now: Optional[datetime] = None) -> datetime:
    """Keep the requested calendar day, substitute the current time of day"""
    now = now or datetime.now()
    return datetime.combine(requested.date(), now.time()).replace(microsecond=0)


def apply_status_transition(appointment: Appointment, status: str, now: datetime) -> None:
    """Set status and its timestamp; at most one timestamp survives, matching the state"""
    appointment.status = status

    if status == STATUS_COMPLETED:
        appointment.confirmed_at = None
        appointment.completed_at = now
        appointment.rejected_at = None
    elif status == STATUS_CANCELED:
        appointment.confirmed_at = None
        appointment.completed_at = None
        appointment.rejected_at = now
    elif status == STATUS_CONFIRMED:
        appointment.confirmed_at = now
        appointment.completed_at = None
        appointment.rejected_at = None
    elif status in (STATUS_IN_PROGRESS, STATUS_READY_FOR_PICKUP):
        appointment.confirmed_at = appointment.confirmed_at or now
        appointment.completed_at = None
        appointment.rejected_at = None
    elif status == STATUS_PENDING:
        appointment.confirmed_at = None
        appointment.completed_at = None
        appointment.rejected_at = None


def add_medical_history(pet: Pet, concern: str) -> bool:
    """Append concern to the pet's history unless already present"""
    concern = concern.strip()
    history = list(pet.medical_history or [])
    if not concern or concern in history:
        return False
    # Reassign so the JSON column is flagged dirty
    pet.medical_history = history + [concern]
    return True


class AppointmentService:
    """Service layer for the appointment lifecycle"""

    def __init__(self, db: Session, broker: Optional[OTPBroker] = None):
        self.db = db
        self.repo = AppointmentRepository()
        self.directory = DirectoryRepository()
        self.broker = broker or get_booking_broker()

    # ============================================================================
    # LOOKUPS
    # ============================================================================

    def get_appointment(self, appointment_id: int) -> Appointment:
        appointment = self.repo.get_appointment(self.db, appointment_id)
        if not appointment:
            raise HTTPException(status_code=404, detail="Appointment not found")
        return appointment

    def _require_catalog(self, clinic_id: int, service_id: int, vet_id: Optional[int] = None):
        clinic = self.directory.get_clinic(self.db, clinic_id)
        if not clinic:
            raise HTTPException(status_code=404, detail="Clinic not found")
        service = self.directory.get_service(self.db, service_id)
        if not service:
            raise HTTPException(status_code=404, detail="Service not found")
        if vet_id is not None and not self.directory.get_vet(self.db, vet_id):
            raise HTTPException(status_code=404, detail="Veterinarian not found")
        return clinic, service

    def _commit(self, appointment: Appointment) -> Appointment:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return self.get_appointment(appointment.id)

    # ============================================================================
    # BOOKING PATHS
    # ============================================================================

    async def book_for_owner(
        self, data: RegisteredBookingCreate, now: Optional[datetime] = None
    ) -> Appointment:
        """Registered owner booking: no OTP gate, verified immediately"""
        logger.info(f"📥 Booking appointment for owner_id: {data.owner_id}")

        owner = self.directory.get_owner(self.db, data.owner_id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner not found")
        self._require_catalog(data.clinic_id, data.service_id, data.vet_id)

        pet = self.directory.find_pet(self.db, owner.id, data.pet_name, data.pet_type)
        if pet:
            logger.info(f"✅ Existing pet found, using pet_id: {pet.id}")
        else:
            pet = self.directory.add_pet(
                self.db,
                owner,
                name=data.pet_name,
                type=data.pet_type,
                breed=data.pet_breed,
                gender=data.pet_gender,
                age=data.pet_age,
            )
            logger.info(f"🆕 New pet created, pet_id: {pet.id}")

        appointment = self.repo.add_appointment(
            self.db,
            owner_id=owner.id,
            pet_id=pet.id,
            clinic_id=data.clinic_id,
            service_id=data.service_id,
            vet_id=data.vet_id,
            date=normalize_booking_date(data.date, now),
            notes=data.notes,
            medical_concern=data.medical_concern,
            status=STATUS_PENDING,
            is_verified=True,
        )
        appointment = self._commit(appointment)
        logger.info(f"✅ Appointment {appointment.id} booked for owner {owner.id}")

        await self._send_confirmation(appointment, owner.email)
        return appointment

    async def request_guest_booking(
        self, data: GuestBookingCreate, now: Optional[datetime] = None
    ) -> dict:
        """Stage a guest booking and email the OTP; nothing is persisted yet"""
        if self.directory.get_guest_by_email(self.db, data.email):
            raise HTTPException(
                status_code=400,
                detail="A guest account with this email already exists. Please verify your OTP.",
            )
        self._require_catalog(data.clinic_id, data.service_id, data.vet_id)

        otp = self.broker.stage(data.email, data.model_dump(mode="json"), now=now)

        try:
            await email_service.send_otp_email(data.email, otp)
        except Exception as e:
            logger.error(f"❌ Failed to send booking OTP to {data.email}: {e}")
            self.broker.discard(data.email)
            raise HTTPException(
                status_code=502, detail="Failed to send OTP email. Please try again."
            ) from e

        logger.info(f"📧 Booking OTP sent to {data.email}")
        return {"message": "OTP sent to your email. Please verify to complete your booking."}

    async def verify_guest_booking(
        self, data: GuestBookingVerify, now: Optional[datetime] = None
    ) -> Appointment:
        """Confirm a staged guest booking, creating the guest and its appointment"""
        try:
            payload = self.broker.verify(data.email, data.otp, now=now)
        except PendingEntryNotFound as e:
            raise HTTPException(
                status_code=400, detail="No pending appointment found. Please request a new OTP."
            ) from e
        except OTPError as e:
            raise HTTPException(status_code=400, detail=e.message) from e

        booking = GuestBookingCreate.model_validate(payload)

        if self.directory.get_guest_by_email(self.db, booking.email):
            self.broker.discard(booking.email)
            raise HTTPException(status_code=400, detail="A guest account with this email already exists.")

        try:
            guest, guest_pet = self.directory.add_guest(
                self.db,
                pet_data={
                    "name": booking.pet_name,
                    "type": booking.pet_type,
                    "breed": booking.pet_breed,
                    "gender": booking.pet_gender,
                    "age": booking.pet_age,
                },
                first_name=booking.first_name,
                last_name=booking.last_name,
                email=booking.email,
                phone=booking.phone,
            )
            appointment = self.repo.add_appointment(
                self.db,
                guest_id=guest.id,
                guest_pet_id=guest_pet.id,
                clinic_id=booking.clinic_id,
                service_id=booking.service_id,
                vet_id=booking.vet_id,
                date=normalize_booking_date(booking.date, now),
                notes=booking.notes,
                medical_concern=booking.medical_concern,
                status=STATUS_PENDING,
                is_verified=True,
            )
            guest.appointments.append(appointment)
        except Exception:
            self.db.rollback()
            raise
        appointment = self._commit(appointment)
        logger.info(f"✅ Guest {guest.id} verified, appointment {appointment.id} booked")

        await self._send_confirmation(appointment, booking.email)

        # Only after the guest and appointment are durable
        self.broker.discard(booking.email)
        return appointment

    async def book_for_clinic(
        self, data: ClinicBookingCreate, now: Optional[datetime] = None
    ) -> Appointment:
        """Clinic books directly for an existing owner and pet; confirmed on creation"""
        now = now or datetime.now()

        owner = self.directory.get_owner(self.db, data.owner_id)
        if not owner:
            raise HTTPException(status_code=404, detail="Owner not found")
        pet = self.directory.get_pet(self.db, data.pet_id)
        if not pet:
            raise HTTPException(status_code=404, detail="Pet not found")
        if pet.owner_id != owner.id:
            raise HTTPException(status_code=400, detail="Pet does not belong to this owner")
        self._require_catalog(data.clinic_id, data.service_id, data.vet_id)

        appointment = self.repo.add_appointment(
            self.db,
            owner_id=owner.id,
            pet_id=pet.id,
            clinic_id=data.clinic_id,
            service_id=data.service_id,
            vet_id=data.vet_id,
            date=normalize_booking_date(data.date, now),
            notes=data.notes,
            medical_concern=data.medical_concern,
            status=STATUS_CONFIRMED,
            confirmed_at=now,
            is_verified=True,
        )
        appointment = self._commit(appointment)
        logger.info(f"✅ Clinic {data.clinic_id} booked appointment {appointment.id}")

        await self._send_clinic_follow_up(appointment)
        return appointment

    # ============================================================================
    # LIFECYCLE
    # ============================================================================

    async def update_appointment(
        self, appointment_id: int, data: AppointmentUpdate, now: Optional[datetime] = None
    ) -> Appointment:
        """Apply a status transition and/or detail changes in one commit, then notify"""
        now = now or datetime.now()
        appointment = self.get_appointment(appointment_id)

        status = None
        if data.status:
            status = resolve_status(data.status)
            if status is None:
                raise HTTPException(status_code=400, detail="Invalid status value")

        try:
            if status:
                apply_status_transition(appointment, status, now)
                if status == STATUS_COMPLETED and data.medical_concern:
                    if appointment.pet is not None:
                        if add_medical_history(appointment.pet, data.medical_concern):
                            logger.info(f"🩺 Medical history updated for pet {appointment.pet.id}")
                    else:
                        logger.info(
                            f"ℹ️ Appointment {appointment.id} has no registered pet, medical history not updated"
                        )

            if data.notes:
                appointment.notes = data.notes

            if data.date:
                updated_date = data.date
                if data.time:
                    hours, minutes = parse_time_of_day(data.time)
                    updated_date = updated_date.replace(hour=hours, minute=minutes)
                appointment.date = updated_date

            if data.price:
                appointment.price = data.price
        except Exception:
            self.db.rollback()
            raise

        appointment = self._commit(appointment)
        logger.info(f"✅ Appointment {appointment.id} updated (status: {appointment.status})")

        if status and status != STATUS_PENDING:
            await self._send_status_update(appointment, status)
        return appointment

    def delete_appointment(self, appointment_id: int) -> None:
        appointment = self.get_appointment(appointment_id)
        self.repo.delete_appointment(self.db, appointment)
        logger.info(f"🗑️ Appointment {appointment_id} deleted")

    # ============================================================================
    # QUERIES
    # ============================================================================

    def get_appointment_view(self, appointment_id: int) -> AppointmentView:
        return build_appointment_view(self.get_appointment(appointment_id))

    def list_appointments(self) -> list[AppointmentView]:
        return [build_appointment_view(a) for a in self.repo.list_appointments(self.db)]

    def list_by_owner(self, owner_id: int) -> list[AppointmentView]:
        appointments = self.repo.list_by_owner(self.db, owner_id)
        if not appointments:
            raise HTTPException(status_code=404, detail="No appointments found for this owner.")
        return [build_appointment_view(a) for a in appointments]

    def list_by_clinic(self, clinic_id: int) -> list[AppointmentView]:
        appointments = self.repo.list_by_clinic(self.db, clinic_id)
        if not appointments:
            raise HTTPException(status_code=404, detail="No appointments found for this clinic.")
        return [build_appointment_view(a) for a in appointments]

    def list_clinic_owners(self, clinic_id: int) -> list[ClinicOwnerSummary]:
        """Owners with appointments at a clinic, with their distinct pets and services"""
        appointments = self.repo.list_owner_appointments_in_clinic(self.db, clinic_id)
        if not appointments:
            raise HTTPException(status_code=404, detail="No appointments found for this clinic.")

        owners: dict[int, ClinicOwnerSummary] = {}
        for appointment in appointments:
            owner = appointment.owner
            summary = owners.get(owner.id)
            if summary is None:
                summary = ClinicOwnerSummary(
                    id=owner.id,
                    first_name=owner.first_name,
                    last_name=owner.last_name,
                    email=owner.email,
                )
                owners[owner.id] = summary

            pet = appointment.pet
            if pet is not None and all(p.id != pet.id for p in summary.pets):
                summary.pets.append(
                    OwnerPetSummary(
                        id=pet.id,
                        name=pet.name,
                        type=pet.type,
                        breed=pet.breed,
                        age=pet.age,
                        gender=pet.gender,
                        avatar=pet.avatar,
                    )
                )

            service = appointment.service
            if service is not None and all(s.id != service.id for s in summary.services):
                summary.services.append(OwnerServiceSummary(id=service.id, name=service.name))

        return list(owners.values())

    # ============================================================================
    # FAN-OUT (best-effort, after commit)
    # ============================================================================

    def _build_receipt(self, appointment: Appointment, details: dict) -> Optional[bytes]:
        qr_png = generate_qr_code(build_verify_url(appointment.id))
        try:
            return create_receipt_pdf(details, qr_png)
        except DocumentGenerationError as e:
            logger.error(f"❌ Receipt generation failed for appointment {appointment.id}: {e}")
            return None

    async def _send_confirmation(self, appointment: Appointment, to: Optional[str]) -> None:
        if not to:
            logger.warning(f"⚠️ No recipient email for appointment {appointment.id}, skipping confirmation")
            return
        try:
            details = build_notification_details(appointment)
            receipt = self._build_receipt(appointment, details)
            await email_service.send_appointment_confirmation(to, details, receipt)
            logger.info(f"📧 Confirmation sent to {to} for appointment {appointment.id}")
        except Exception as e:
            logger.error(f"❌ Confirmation email failed for appointment {appointment.id}: {e}")

    async def _send_clinic_follow_up(self, appointment: Appointment) -> None:
        clinic = appointment.clinic
        if not clinic or not clinic.email:
            logger.error("No clinic email found. Skipping follow-up email.")
            return
        try:
            details = build_notification_details(appointment)
            follow_up = appointment.date + timedelta(days=FOLLOW_UP_DAYS)
            details["follow_up_date"] = follow_up.strftime(f"{DATE_FORMAT} {TIME_FORMAT}")
            receipt = self._build_receipt(appointment, details)
            await email_service.send_clinic_follow_up_email(clinic.email, details, receipt)
            logger.info(f"📧 Follow-up reminder sent to clinic {clinic.id} for appointment {appointment.id}")
        except Exception as e:
            logger.error(f"❌ Follow-up email failed for appointment {appointment.id}: {e}")

    async def _send_status_update(self, appointment: Appointment, status: str) -> None:
        recipient = appointment.recipient_email
        if not recipient:
            logger.warning("No recipient email found, skipping email sending.")
            return
        try:
            details = build_notification_details(appointment)
            receipt = None
            if status == STATUS_COMPLETED:
                receipt = self._build_receipt(appointment, details)
            await email_service.send_status_update_email(recipient, status, details, receipt)
            logger.info(f"📧 Status email ({status}) sent to {recipient}")
        except Exception as e:
            logger.error(f"❌ Error sending status email for appointment {appointment.id}: {e}")
