"""Display projections assembled from an appointment and its resolved references"""

from ...config import CURRENCY_SYMBOL
from ...models import Appointment
from .schemas import AppointmentResponse, AppointmentView

DATE_FORMAT = "%B %d, %Y"
TIME_FORMAT = "%I:%M %p"


def participant_name(appointment: Appointment) -> str:
    if appointment.owner is not None:
        return appointment.owner.full_name or "Unknown Owner"
    if appointment.guest is not None:
        return appointment.guest.full_name
    return "Unknown Owner"


def participant_first_name(appointment: Appointment, default: str = "Valued Customer") -> str:
    if appointment.owner is not None and appointment.owner.first_name:
        return appointment.owner.first_name
    if appointment.guest is not None and appointment.guest.first_name:
        return appointment.guest.first_name
    return default


def subject_pet(appointment: Appointment):
    """Registered pet, else the guest pet snapshot, else the guest's first pet"""
    if appointment.pet is not None:
        return appointment.pet
    if appointment.guest_pet is not None:
        return appointment.guest_pet
    if appointment.guest is not None and appointment.guest.pets:
        return appointment.guest.pets[0]
    return None


def format_price(price) -> str:
    if not price:
        return "Not specified"
    price = str(price)
    return price if price.startswith(CURRENCY_SYMBOL) else f"{CURRENCY_SYMBOL}{price}"


def build_appointment_view(appointment: Appointment) -> AppointmentView:
    """Project an appointment into its display shape"""
    pet = subject_pet(appointment)
    pet_details = f"{pet.name} ({pet.type})" if pet is not None else "No Pet"

    base = AppointmentResponse.model_validate(appointment).model_dump()
    return AppointmentView(
        **base,
        owner_name=participant_name(appointment),
        owner_email=appointment.recipient_email,
        pet_details=pet_details,
        pet_name=pet.name if pet is not None else None,
        pet_type=pet.type if pet is not None else None,
        pet_avatar=getattr(pet, "avatar", None),
        pet_age=pet.age if pet is not None else None,
        pet_gender=pet.gender if pet is not None else None,
        pet_medical_history=list(getattr(pet, "medical_history", None) or []),
        clinic_name=appointment.clinic.name if appointment.clinic else None,
        service_name=appointment.service.name if appointment.service else None,
        formatted_date=appointment.date.strftime(DATE_FORMAT),
        formatted_time=appointment.date.strftime(TIME_FORMAT),
    )


def build_notification_details(appointment: Appointment) -> dict:
    """Detail bundle shared by confirmation, status, receipt and follow-up emails"""
    pet = subject_pet(appointment)
    clinic = appointment.clinic
    service = appointment.service
    return {
        "appointment_id": appointment.id,
        "first_name": participant_first_name(appointment),
        "last_name": (
            appointment.owner.last_name
            if appointment.owner is not None
            else appointment.guest.last_name if appointment.guest is not None else "Unknown"
        ),
        "owner_name": participant_name(appointment),
        "clinic_name": (clinic.name if clinic else None) or "Unknown Clinic",
        "clinic_address": (clinic.address if clinic else None) or "Unknown Address",
        "clinic_email": (clinic.email if clinic else None) or "No email provided",
        "date": appointment.date.strftime(f"{DATE_FORMAT} {TIME_FORMAT}"),
        "service_name": (service.name if service else None) or "Unknown Service",
        "pet_name": (pet.name if pet is not None else None) or "Your Pet",
        "pet_type": pet.type if pet is not None else None,
        "notes": appointment.notes or "No additional notes provided.",
        "medical_concern": appointment.medical_concern or "No medical concern",
        "price": format_price(appointment.price),
    }
