from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

# Appointment lifecycle states
STATUS_PENDING = "Pending"
STATUS_CONFIRMED = "Confirmed"
STATUS_IN_PROGRESS = "In-progress"
STATUS_READY_FOR_PICKUP = "Ready-for-pickup"
STATUS_COMPLETED = "Completed"
STATUS_CANCELED = "Canceled"

APPOINTMENT_STATUSES = (
    STATUS_PENDING,
    STATUS_CONFIRMED,
    STATUS_IN_PROGRESS,
    STATUS_READY_FOR_PICKUP,
    STATUS_COMPLETED,
    STATUS_CANCELED,
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    role = Column(String(20), default="owner", nullable=False)  # admin, clinic, owner
    address = Column(String(500), nullable=True)
    status = Column(String(20), default="Inactive", nullable=False)  # Active, Inactive
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("Owner", back_populates="user", uselist=False)
    clinic = relationship("Clinic", back_populates="user", uselist=False)


class Owner(Base):
    __tablename__ = "owners"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    email = Column(String(255), index=True, nullable=True)
    address = Column(String(500), nullable=True)
    phone = Column(String(50), nullable=True)
    pet_count = Column(Integer, default=0, nullable=False)
    is_guest = Column(Boolean, default=False, nullable=False)  # Ad hoc owner for direct booking
    avatar = Column(String(500), default="/images/owner-default.jpg")

    user = relationship("User", back_populates="owner")
    pets = relationship("Pet", back_populates="owner", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="owner")

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)


class Clinic(Base):
    __tablename__ = "clinics"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    name = Column(String(255), nullable=True)
    address = Column(String(500), nullable=True)
    contact_number = Column(String(50), nullable=True)
    email = Column(String(255), unique=True, nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), default="Inactive", nullable=False)  # Active, Inactive
    days = Column(String(100), nullable=True)
    open_time = Column(String(10), nullable=True)
    close_time = Column(String(10), nullable=True)
    image = Column(String(500), default="https://cdn-icons-png.flaticon.com/512/616/616408.png")
    logo = Column(String(500), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    user = relationship("User", back_populates="clinic")
    services = relationship("Service", back_populates="clinic", cascade="all, delete-orphan")
    veterinarians = relationship("Veterinarian", back_populates="clinic")
    appointments = relationship("Appointment", back_populates="clinic")


class Service(Base):
    __tablename__ = "services"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=True)
    name = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)
    estimated_duration = Column(Integer, nullable=True)  # Minutes
    rate = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    clinic = relationship("Clinic", back_populates="services")


class Veterinarian(Base):
    __tablename__ = "veterinarians"

    id = Column(Integer, primary_key=True, index=True)
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False)
    name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    license_number = Column(String(100), unique=True, nullable=False)
    specialties = Column(JSON, default=list, nullable=True)  # e.g. ["surgery", "dentistry"]
    bio = Column(Text, nullable=True)
    years_of_experience = Column(Integer, default=0)

    clinic = relationship("Clinic", back_populates="veterinarians")


class Pet(Base):
    __tablename__ = "pets"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("owners.id"), nullable=False, index=True)
    name = Column(String(255), nullable=True)
    type = Column(String(100), nullable=True)  # e.g. Dog, Cat
    breed = Column(String(255), nullable=True)
    age = Column(Integer, nullable=True)
    gender = Column(String(20), nullable=True)
    avatar = Column(String(500), default="/images/pet-default.jpg")
    # Append-only and duplicate-free; always reassign a new list so the JSON column is flagged dirty
    medical_history = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("Owner", back_populates="pets")
    appointments = relationship("Appointment", back_populates="pet")


class Guest(Base):
    """Unauthenticated participant created only through OTP-verified guest booking"""

    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(50), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    pets = relationship("GuestPet", back_populates="guest", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="guest")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class GuestPet(Base):
    """Pet snapshot embedded under a guest"""

    __tablename__ = "guest_pets"

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False)
    breed = Column(String(255), nullable=True)
    gender = Column(String(20), nullable=True)
    age = Column(Integer, nullable=True)

    guest = relationship("Guest", back_populates="pets")


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        # Exactly one participant: registered owner or guest
        CheckConstraint(
            "(owner_id IS NULL) <> (guest_id IS NULL)", name="ck_appointment_single_participant"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Participant
    owner_id = Column(Integer, ForeignKey("owners.id"), nullable=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=True, index=True)

    # Subject
    pet_id = Column(Integer, ForeignKey("pets.id"), nullable=True)
    guest_pet_id = Column(Integer, ForeignKey("guest_pets.id"), nullable=True)

    # Context
    clinic_id = Column(Integer, ForeignKey("clinics.id"), nullable=False, index=True)
    service_id = Column(Integer, ForeignKey("services.id"), nullable=False)
    vet_id = Column(Integer, ForeignKey("veterinarians.id"), nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    notes = Column(Text, nullable=True)
    medical_concern = Column(Text, nullable=True)
    price = Column(String(50), nullable=True)

    # Lifecycle: Pending → Confirmed → In-progress → Ready-for-pickup → Completed / Canceled
    status = Column(String(30), default=STATUS_PENDING, nullable=False, index=True)
    confirmed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    rejected_at = Column(DateTime, nullable=True)

    is_verified = Column(Boolean, default=False, nullable=False)

    # Reminder flags only ever go False → True
    reminder_1day_sent = Column(Boolean, default=False, nullable=False)
    reminder_5hour_sent = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    owner = relationship("Owner", back_populates="appointments")
    guest = relationship("Guest", back_populates="appointments")
    pet = relationship("Pet", back_populates="appointments")
    guest_pet = relationship("GuestPet")
    clinic = relationship("Clinic", back_populates="appointments")
    service = relationship("Service")
    vet = relationship("Veterinarian")

    @property
    def recipient_email(self):
        """Owner email takes priority over guest email"""
        if self.owner and self.owner.email:
            return self.owner.email
        if self.guest and self.guest.email:
            return self.guest.email
        return None
