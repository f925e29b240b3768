"""Appointment router - FastAPI endpoints for booking and the appointment lifecycle"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    AppointmentUpdate,
    AppointmentUpdateResponse,
    AppointmentView,
    BookingResponse,
    ClinicBookingCreate,
    ClinicOwnerSummary,
    GuestBookingCreate,
    GuestBookingVerify,
    MessageResponse,
    RegisteredBookingCreate,
)
from .service import AppointmentService

logger = logging.getLogger(__name__)

booking_router = APIRouter(prefix="/booking", tags=["Booking"])
router = APIRouter(prefix="/appointments", tags=["Appointments"])


def get_appointment_service(db: Session = Depends(get_db)) -> AppointmentService:
    """Dependency injection for AppointmentService"""
    return AppointmentService(db)


def _internal_error(action: str, e: Exception) -> HTTPException:
    logger.error(f"❌ Unexpected error while {action}: {str(e)}")
    logger.exception("Full error traceback:")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


# ============================================================================
# BOOKING
# ============================================================================


@booking_router.post("/registered", response_model=BookingResponse, status_code=201)
async def book_registered(
    data: RegisteredBookingCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Book an appointment for a registered owner"""
    try:
        appointment = await service.book_for_owner(data)
        return {"message": "Appointment booked successfully.", "appointment": appointment}
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("booking appointment", e) from e


@booking_router.post("/guest", response_model=MessageResponse)
async def book_guest(
    data: GuestBookingCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Stage a guest booking and send the OTP"""
    try:
        return await service.request_guest_booking(data)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("requesting guest booking", e) from e


@booking_router.post("/verify-otp", response_model=BookingResponse, status_code=201)
async def verify_guest_booking(
    data: GuestBookingVerify,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Confirm a guest booking with the emailed OTP"""
    try:
        appointment = await service.verify_guest_booking(data)
        return {"message": "Appointment booked successfully.", "appointment": appointment}
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("verifying OTP", e) from e


@booking_router.post("/clinic-initiated", response_model=BookingResponse, status_code=201)
async def book_for_clinic(
    data: ClinicBookingCreate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Clinic books on behalf of an existing owner and pet"""
    try:
        appointment = await service.book_for_clinic(data)
        return {"message": "Appointment booked successfully.", "appointment": appointment}
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("booking appointment for clinic", e) from e


# ============================================================================
# APPOINTMENTS
# ============================================================================


@router.get("", response_model=list[AppointmentView])
async def get_appointments(service: AppointmentService = Depends(get_appointment_service)):
    """Get all appointments, newest first"""
    try:
        return service.list_appointments()
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("listing appointments", e) from e


@router.get("/owner/{owner_id}", response_model=list[AppointmentView])
async def get_appointments_by_owner(
    owner_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.list_by_owner(owner_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("listing owner appointments", e) from e


@router.get("/clinic/{clinic_id}", response_model=list[AppointmentView])
async def get_appointments_by_clinic(
    clinic_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.list_by_clinic(clinic_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("listing clinic appointments", e) from e


@router.get("/clinic/{clinic_id}/owners", response_model=list[ClinicOwnerSummary])
async def get_clinic_owners(
    clinic_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Owners with appointments at this clinic, with their pets and services"""
    try:
        return service.list_clinic_owners(clinic_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("listing clinic owners", e) from e


@router.get("/{appointment_id}", response_model=AppointmentView)
async def get_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        return service.get_appointment_view(appointment_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("fetching appointment", e) from e


@router.put("/{appointment_id}", response_model=AppointmentUpdateResponse)
async def update_appointment(
    appointment_id: int,
    data: AppointmentUpdate,
    service: AppointmentService = Depends(get_appointment_service),
):
    """Update status, notes, schedule or price"""
    try:
        await service.update_appointment(appointment_id, data)
        return {
            "message": "Appointment updated successfully.",
            "appointment": service.get_appointment_view(appointment_id),
        }
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("updating appointment", e) from e


@router.delete("/{appointment_id}", status_code=204)
async def delete_appointment(
    appointment_id: int,
    service: AppointmentService = Depends(get_appointment_service),
):
    try:
        service.delete_appointment(appointment_id)
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error("deleting appointment", e) from e
    return Response(status_code=204)
