"""Tests for OTP-gated owner registration and guest owners."""

from vetbook.domain.owners.service import OwnerService
from vetbook.models import Owner, User


def registration_payload(**overrides):
    payload = {
        "first_name": "Paolo",
        "last_name": "Garcia",
        "email": "paolo@example.com",
        "phone": "09181234567",
        "address": "45 Rizal Ave, Quezon City",
    }
    payload.update(overrides)
    return payload


class TestRegistration:
    def test_register_then_verify(self, client, db, registration_broker, sent_emails):
        response = client.post("/owners/register", json=registration_payload())

        assert response.status_code == 200
        assert response.json() == {"message": "OTP sent to your email for verification."}
        assert sent_emails[0]["subject"] == "Your OTP Code - VetBook"
        assert "verify your account" in sent_emails[0]["mjml"]
        assert db.query(User).count() == 0

        otp = registration_broker.store.get("paolo@example.com").otp
        response = client.post("/owners/verify-otp", json={"email": "paolo@example.com", "otp": otp})

        assert response.status_code == 201
        owner = response.json()
        assert owner["first_name"] == "Paolo"
        assert owner["is_guest"] is False

        user = db.query(User).one()
        assert user.is_verified is True
        assert user.role == "owner"
        assert owner["user_id"] == user.id
        assert registration_broker.store.get("paolo@example.com") is None
        assert sent_emails[-1]["subject"] == "Welcome to VetBook"
        assert "/login" in sent_emails[-1]["mjml"]

    def test_wrong_otp(self, client, registration_broker, sent_emails):
        client.post("/owners/register", json=registration_payload())
        otp = registration_broker.store.get("paolo@example.com").otp
        wrong = "100000" if otp != "100000" else "100001"

        response = client.post("/owners/verify-otp", json={"email": "paolo@example.com", "otp": wrong})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid OTP."

    def test_verify_without_registration(self, client):
        response = client.post("/owners/verify-otp", json={"email": "ghost@example.com", "otp": "123456"})

        assert response.status_code == 400
        assert response.json()["detail"] == "No registration found for this email."

    def test_duplicate_email(self, client, db, sent_emails):
        db.add(User(email="paolo@example.com", role="owner", is_verified=True))
        db.commit()

        response = client.post("/owners/register", json=registration_payload(email="Paolo@Example.com"))

        assert response.status_code == 400
        assert "already registered" in response.json()["detail"]
        assert sent_emails == []

    def test_otp_delivery_failure(self, client, registration_broker, failing_email):
        response = client.post("/owners/register", json=registration_payload())

        assert response.status_code == 502
        assert registration_broker.store.get("paolo@example.com") is None

    def test_guest_owner_is_promoted(self, client, db, registration_broker, sent_emails):
        guest = Owner(first_name="Paolo", last_name="G", email="paolo@example.com", is_guest=True)
        db.add(guest)
        db.commit()
        guest_id = guest.id

        client.post("/owners/register", json=registration_payload())
        otp = registration_broker.store.get("paolo@example.com").otp
        response = client.post("/owners/verify-otp", json={"email": "paolo@example.com", "otp": otp})

        assert response.status_code == 201
        assert response.json()["id"] == guest_id
        assert response.json()["last_name"] == "Garcia"
        assert response.json()["is_guest"] is False
        assert db.query(Owner).count() == 1


class TestGuestOwner:
    def test_created_then_reused(self, client, db):
        payload = {"first_name": "Lea", "last_name": "Tan", "email": "lea@example.com"}

        first = client.post("/owners/guest", json=payload)
        second = client.post("/owners/guest", json=payload)

        assert first.status_code == 201
        assert first.json()["is_guest"] is True
        assert second.status_code == 200
        assert second.json()["id"] == first.json()["id"]
        assert db.query(Owner).count() == 1

    def test_registered_owner_email_rejected(self, client, catalog):
        response = client.post(
            "/owners/guest",
            json={"first_name": "Maria", "last_name": "Santos", "email": "maria@example.com"},
        )

        assert response.status_code == 400

    def test_invalid_email(self, client):
        response = client.post(
            "/owners/guest", json={"first_name": "Lea", "last_name": "Tan", "email": "lea"}
        )
        assert response.status_code == 400

    def test_unexpected_failure_returns_generic_500(self, client, monkeypatch):
        def explode(self, data):
            raise RuntimeError("database is locked")

        monkeypatch.setattr(OwnerService, "create_guest_owner", explode)

        response = client.post(
            "/owners/guest",
            json={"first_name": "Lea", "last_name": "Tan", "email": "lea@example.com"},
        )

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}
