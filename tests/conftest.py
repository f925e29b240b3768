"""Shared fixtures: in-memory database, recorded email delivery, isolated OTP brokers."""

import os
from datetime import datetime
from types import SimpleNamespace

# Must be set before vetbook.config is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["OTP_STORE_BACKEND"] = "memory"
os.environ["DB_LOG_SLOW_QUERIES"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from vetbook import email_service
from vetbook.database import Base, build_engine, get_db
from vetbook.domain.appointments.router import get_appointment_service
from vetbook.domain.appointments.service import AppointmentService
from vetbook.domain.owners.router import get_owner_service
from vetbook.domain.owners.service import OwnerService
from vetbook.main import app
from vetbook.models import STATUS_CONFIRMED, Appointment, Clinic, Owner, Pet, Service
from vetbook.otp_broker import InMemoryOTPStore, OTPBroker


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()


@pytest.fixture
def sent_emails(monkeypatch):
    """Replace Resend delivery with a recorder; templates are still rendered."""
    sent = []

    async def fake_send_email(to, subject, mjml_content, from_address=None, attachments=None):
        sent.append(
            {
                "to": to,
                "subject": subject,
                "mjml": mjml_content,
                "attachments": attachments or [],
            }
        )
        return {"id": f"test-{len(sent)}"}

    monkeypatch.setattr(email_service, "send_email", fake_send_email)
    return sent


@pytest.fixture
def failing_email(monkeypatch):
    """Every delivery attempt raises, like a provider outage."""
    attempts = []

    async def broken_send_email(to, subject, mjml_content, from_address=None, attachments=None):
        attempts.append(to)
        raise email_service.EmailDeliveryError("provider unavailable")

    monkeypatch.setattr(email_service, "send_email", broken_send_email)
    return attempts


@pytest.fixture
def booking_broker():
    return OTPBroker(InMemoryOTPStore())


@pytest.fixture
def registration_broker():
    return OTPBroker(InMemoryOTPStore())


@pytest.fixture
def appointment_service(db, booking_broker):
    return AppointmentService(db, broker=booking_broker)


@pytest.fixture
def owner_service(db, registration_broker):
    return OwnerService(db, broker=registration_broker)


@pytest.fixture
def catalog(db):
    """A clinic with one service and a registered owner."""
    clinic = Clinic(
        name="Happy Paws Clinic",
        address="123 Mabini St, Manila",
        email="frontdesk@happypaws.test",
        status="Active",
    )
    db.add(clinic)
    db.flush()
    service = Service(clinic_id=clinic.id, name="General Checkup", rate="500")
    owner = Owner(first_name="Maria", last_name="Santos", email="maria@example.com")
    db.add_all([service, owner])
    db.commit()
    return SimpleNamespace(clinic_id=clinic.id, service_id=service.id, owner_id=owner.id)


@pytest.fixture
def make_appointment(db, catalog):
    """Insert an appointment for the catalog owner with a registered pet."""

    def _make(date=None, status=STATUS_CONFIRMED, pet_name="Rex", pet_id=None, **overrides):
        if pet_id is None:
            pet = Pet(owner_id=catalog.owner_id, name=pet_name, type="Dog", medical_history=[])
            db.add(pet)
            db.flush()
            pet_id = pet.id
        appointment = Appointment(
            owner_id=catalog.owner_id,
            pet_id=pet_id,
            clinic_id=catalog.clinic_id,
            service_id=catalog.service_id,
            date=date or datetime(2025, 3, 1, 10, 0),
            status=status,
            is_verified=True,
            **overrides,
        )
        db.add(appointment)
        db.commit()
        return appointment

    return _make


@pytest.fixture
def client(db, sent_emails, booking_broker, registration_broker):
    """Test client wired to the in-memory database and isolated brokers."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_appointment_service] = lambda: AppointmentService(
        db, broker=booking_broker
    )
    app.dependency_overrides[get_owner_service] = lambda: OwnerService(
        db, broker=registration_broker
    )
    yield TestClient(app)
    app.dependency_overrides.clear()
