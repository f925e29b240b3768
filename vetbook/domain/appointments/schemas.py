"""Appointment domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import parse_datetime, parse_time_of_day, validate_email


def _required_text(v):
    if v is None or not str(v).strip():
        raise ValueError("Field is required")
    return str(v).strip()


class PetDescriptor(BaseModel):
    """Pet fields supplied with a booking; the web client sends them camelCased"""

    pet_name: str = Field(alias="petName")
    pet_type: str = Field(alias="petType")
    pet_breed: Optional[str] = Field(default=None, alias="petBreed")
    pet_gender: Optional[str] = Field(default=None, alias="petGender")
    pet_age: Optional[int] = Field(default=None, alias="petAge")

    class Config:
        populate_by_name = True

    @field_validator("pet_name", "pet_type")
    @classmethod
    def validate_required(cls, v):
        return _required_text(v)


class RegisteredBookingCreate(PetDescriptor):
    """Schema for a registered owner booking"""

    owner_id: int
    service_id: int
    clinic_id: int
    date: datetime
    vet_id: Optional[int] = None
    notes: Optional[str] = None
    medical_concern: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_datetime(v)


class GuestBookingCreate(PetDescriptor):
    """Schema for a guest booking request (step 1, sends OTP)"""

    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    phone: Optional[str] = None
    service_id: int
    clinic_id: int
    date: datetime
    vet_id: Optional[int] = None
    notes: Optional[str] = None
    medical_concern: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_names(cls, v):
        return _required_text(v)

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(_required_text(v))

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_datetime(v)


class GuestBookingVerify(BaseModel):
    """Schema for confirming a guest booking with the emailed OTP"""

    email: str
    otp: str

    @field_validator("email")
    @classmethod
    def validate_email_field(cls, v):
        return validate_email(_required_text(v))

    @field_validator("otp", mode="before")
    @classmethod
    def validate_otp(cls, v):
        return _required_text(v)


class ClinicBookingCreate(BaseModel):
    """Schema for a clinic booking on behalf of an existing owner and pet"""

    owner_id: int
    pet_id: int
    clinic_id: int
    service_id: int
    date: datetime
    vet_id: Optional[int] = None
    notes: Optional[str] = None
    medical_concern: Optional[Union[str, list[str]]] = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        return parse_datetime(v)

    @field_validator("medical_concern")
    @classmethod
    def join_concerns(cls, v):
        if isinstance(v, list):
            return ", ".join(item.strip() for item in v if item and item.strip())
        return v


class AppointmentUpdate(BaseModel):
    """Schema for a status transition and/or detail update"""

    status: Optional[str] = None
    notes: Optional[str] = None
    date: Optional[datetime] = None
    time: Optional[str] = None
    price: Optional[str] = None
    medical_concern: Optional[str] = None

    @field_validator("date", mode="before")
    @classmethod
    def validate_date(cls, v):
        if v in (None, ""):
            return None
        return parse_datetime(v)

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        if v in (None, ""):
            return None
        parse_time_of_day(v)
        return v.strip()

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v):
        # Clinics send either a number or a free-text amount
        if v is None or v == "":
            return None
        return str(v)


class AppointmentResponse(BaseModel):
    """Schema for the persisted appointment record"""

    id: int
    owner_id: Optional[int] = None
    guest_id: Optional[int] = None
    pet_id: Optional[int] = None
    guest_pet_id: Optional[int] = None
    clinic_id: int
    service_id: int
    vet_id: Optional[int] = None
    date: datetime
    notes: Optional[str] = None
    medical_concern: Optional[str] = None
    price: Optional[str] = None
    status: str
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    is_verified: bool
    reminder_1day_sent: bool
    reminder_5hour_sent: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingResponse(BaseModel):
    message: str
    appointment: AppointmentResponse


class MessageResponse(BaseModel):
    message: str


class AppointmentView(AppointmentResponse):
    """Display projection with resolved participant, pet, clinic and service"""

    owner_name: str
    owner_email: Optional[str] = None
    pet_details: str
    pet_name: Optional[str] = None
    pet_type: Optional[str] = None
    pet_avatar: Optional[str] = None
    pet_age: Optional[int] = None
    pet_gender: Optional[str] = None
    pet_medical_history: list[str] = []
    clinic_name: Optional[str] = None
    service_name: Optional[str] = None
    formatted_date: str
    formatted_time: str


class AppointmentUpdateResponse(BaseModel):
    message: str
    appointment: AppointmentView


class OwnerPetSummary(BaseModel):
    id: int
    name: Optional[str] = None
    type: Optional[str] = None
    breed: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    avatar: Optional[str] = None


class OwnerServiceSummary(BaseModel):
    id: int
    name: Optional[str] = None


class ClinicOwnerSummary(BaseModel):
    """Owner with the distinct pets and services seen at one clinic"""

    id: int
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    pets: list[OwnerPetSummary] = []
    services: list[OwnerServiceSummary] = []
