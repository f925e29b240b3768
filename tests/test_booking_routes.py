"""HTTP tests for the booking and appointment endpoints."""

from datetime import datetime

import pytest

from vetbook.domain.appointments.service import AppointmentService
from vetbook.models import STATUS_COMPLETED, Appointment, Guest, Pet


def guest_payload(catalog, **overrides):
    payload = {
        "firstName": "Gina",
        "lastName": "Reyes",
        "email": "G@X.com",
        "phone": "09171234567",
        "petName": "Mochi",
        "petType": "Cat",
        "clinic_id": catalog.clinic_id,
        "service_id": catalog.service_id,
        "date": "2025-03-02",
    }
    payload.update(overrides)
    return payload


def registered_payload(catalog, **overrides):
    payload = {
        "owner_id": catalog.owner_id,
        "petName": "Rex",
        "petType": "Dog",
        "clinic_id": catalog.clinic_id,
        "service_id": catalog.service_id,
        "date": "2025-03-01",
    }
    payload.update(overrides)
    return payload


class TestGuestBookingFlow:
    def test_request_verify_and_replay(self, client, db, catalog, booking_broker, sent_emails):
        response = client.post("/booking/guest", json=guest_payload(catalog))
        assert response.status_code == 200
        assert response.json()["message"].startswith("OTP sent")
        assert sent_emails[0]["to"] == "g@x.com"
        assert db.query(Appointment).count() == 0

        otp = booking_broker.store.get("g@x.com").otp
        wrong = "100000" if otp != "100000" else "100001"

        response = client.post("/booking/verify-otp", json={"email": "g@x.com", "otp": wrong})
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid OTP."

        response = client.post("/booking/verify-otp", json={"email": "g@x.com", "otp": int(otp)})
        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Appointment booked successfully."
        assert body["appointment"]["status"] == "Pending"
        assert body["appointment"]["is_verified"] is True
        assert body["appointment"]["owner_id"] is None
        assert body["appointment"]["date"].startswith("2025-03-02T")

        guest = db.query(Guest).one()
        assert body["appointment"]["guest_id"] == guest.id

        response = client.post("/booking/verify-otp", json={"email": "g@x.com", "otp": otp})
        assert response.status_code == 400
        assert "No pending appointment" in response.json()["detail"]
        assert db.query(Appointment).count() == 1

    def test_guest_name_and_pet_persisted_from_wire_keys(
        self, client, db, catalog, booking_broker, sent_emails
    ):
        client.post(
            "/booking/guest",
            json=guest_payload(catalog, petBreed="Persian", petGender="Female", petAge=2),
        )
        otp = booking_broker.store.get("g@x.com").otp

        response = client.post("/booking/verify-otp", json={"email": "g@x.com", "otp": otp})

        assert response.status_code == 201
        guest = db.query(Guest).one()
        assert (guest.first_name, guest.last_name) == ("Gina", "Reyes")
        pet = guest.pets[0]
        assert (pet.name, pet.type, pet.breed, pet.gender, pet.age) == (
            "Mochi",
            "Cat",
            "Persian",
            "Female",
            2,
        )

    def test_missing_first_name(self, client, catalog, sent_emails):
        payload = guest_payload(catalog)
        del payload["firstName"]

        response = client.post("/booking/guest", json=payload)

        assert response.status_code == 400
        assert "firstName" in response.json()["detail"]

    def test_existing_guest_email_rejected(self, client, db, catalog, sent_emails):
        db.add(Guest(first_name="Gina", last_name="Reyes", email="g@x.com"))
        db.commit()

        response = client.post("/booking/guest", json=guest_payload(catalog))

        assert response.status_code == 400
        assert "already exists" in response.json()["detail"]
        assert sent_emails == []

    def test_otp_delivery_failure(self, client, catalog, booking_broker, failing_email):
        response = client.post("/booking/guest", json=guest_payload(catalog))

        assert response.status_code == 502
        assert booking_broker.store.get("g@x.com") is None

    def test_missing_pet_name(self, client, catalog, sent_emails):
        response = client.post("/booking/guest", json=guest_payload(catalog, petName="  "))

        assert response.status_code == 400
        assert "petName" in response.json()["detail"]
        assert sent_emails == []

    def test_invalid_email(self, client, catalog, sent_emails):
        response = client.post("/booking/guest", json=guest_payload(catalog, email="not-an-email"))
        assert response.status_code == 400

    def test_verify_without_request(self, client, catalog):
        response = client.post("/booking/verify-otp", json={"email": "nobody@x.com", "otp": "123456"})
        assert response.status_code == 400


class TestRegisteredBooking:
    def test_books_and_returns_201(self, client, db, catalog, sent_emails):
        response = client.post("/booking/registered", json=registered_payload(catalog))

        assert response.status_code == 201
        appointment = response.json()["appointment"]
        assert appointment["status"] == "Pending"
        assert appointment["is_verified"] is True
        assert appointment["owner_id"] == catalog.owner_id
        assert appointment["date"].startswith("2025-03-01T")
        assert db.query(Pet).count() == 1
        assert sent_emails[0]["attachments"][0]["filename"] == "receipt.pdf"

    def test_repeat_booking_reuses_pet_regardless_of_case(self, client, db, catalog, sent_emails):
        first = client.post("/booking/registered", json=registered_payload(catalog))
        second = client.post("/booking/registered", json=registered_payload(catalog, petName="rex"))

        assert first.status_code == 201
        assert second.status_code == 201
        assert first.json()["appointment"]["pet_id"] == second.json()["appointment"]["pet_id"]
        pet = db.query(Pet).one()
        assert (pet.name, pet.type, pet.owner_id) == ("Rex", "Dog", catalog.owner_id)

    def test_snake_case_pet_fields_accepted(self, client, db, catalog, sent_emails):
        payload = registered_payload(catalog)
        payload["pet_name"] = payload.pop("petName")
        payload["pet_type"] = payload.pop("petType")
        payload["pet_breed"] = "Aspin"

        response = client.post("/booking/registered", json=payload)

        assert response.status_code == 201
        assert db.query(Pet).one().breed == "Aspin"

    def test_optional_pet_details(self, client, db, catalog, sent_emails):
        response = client.post(
            "/booking/registered",
            json=registered_payload(catalog, petBreed="Labrador", petGender="Male", petAge=3),
        )

        assert response.status_code == 201
        pet = db.query(Pet).one()
        assert (pet.breed, pet.gender, pet.age) == ("Labrador", "Male", 3)

    def test_missing_pet_type(self, client, catalog):
        payload = registered_payload(catalog)
        del payload["petType"]

        response = client.post("/booking/registered", json=payload)

        assert response.status_code == 400
        assert "petType" in response.json()["detail"]

    def test_missing_fields(self, client, catalog):
        payload = registered_payload(catalog)
        del payload["service_id"]

        response = client.post("/booking/registered", json=payload)

        assert response.status_code == 400
        assert "service_id" in response.json()["detail"]

    def test_malformed_date(self, client, catalog):
        response = client.post("/booking/registered", json=registered_payload(catalog, date="someday"))
        assert response.status_code == 400

    def test_unknown_owner(self, client, catalog, sent_emails):
        response = client.post("/booking/registered", json=registered_payload(catalog, owner_id=404))
        assert response.status_code == 404


class TestClinicInitiatedBooking:
    def test_confirmed_on_creation(self, client, db, catalog, sent_emails):
        pet = Pet(owner_id=catalog.owner_id, name="Rex", type="Dog", medical_history=[])
        db.add(pet)
        db.commit()

        response = client.post(
            "/booking/clinic-initiated",
            json={
                "owner_id": catalog.owner_id,
                "pet_id": pet.id,
                "clinic_id": catalog.clinic_id,
                "service_id": catalog.service_id,
                "date": "2025-03-01",
                "medical_concern": ["vaccination"],
            },
        )

        assert response.status_code == 201
        appointment = response.json()["appointment"]
        assert appointment["status"] == "Confirmed"
        assert appointment["confirmed_at"] is not None
        assert sent_emails[0]["to"] == "frontdesk@happypaws.test"
        assert sent_emails[0]["attachments"][0]["filename"] == "appointment.pdf"


class TestAppointmentEndpoints:
    def test_get_view(self, client, make_appointment):
        appointment = make_appointment(date=datetime(2025, 3, 1, 14, 5), price="500")

        response = client.get(f"/appointments/{appointment.id}")

        assert response.status_code == 200
        view = response.json()
        assert view["owner_name"] == "Maria Santos"
        assert view["owner_email"] == "maria@example.com"
        assert view["pet_details"] == "Rex (Dog)"
        assert view["clinic_name"] == "Happy Paws Clinic"
        assert view["service_name"] == "General Checkup"
        assert view["formatted_date"] == "March 01, 2025"
        assert view["formatted_time"] == "02:05 PM"

    def test_get_missing(self, client, catalog):
        assert client.get("/appointments/999").status_code == 404

    def test_non_numeric_id(self, client, catalog):
        assert client.get("/appointments/abc").status_code == 400

    def test_update_completes_and_notifies(self, client, db, make_appointment, sent_emails):
        appointment = make_appointment()

        response = client.put(
            f"/appointments/{appointment.id}",
            json={"status": "completed", "medical_concern": "ear infection", "price": 800},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Appointment updated successfully."
        assert body["appointment"]["status"] == STATUS_COMPLETED
        assert body["appointment"]["completed_at"] is not None
        assert body["appointment"]["price"] == "800"
        assert body["appointment"]["pet_medical_history"] == ["ear infection"]
        assert sent_emails[-1]["subject"] == "Service Completed - VetBook"

    def test_update_invalid_status(self, client, make_appointment, sent_emails):
        appointment = make_appointment()

        response = client.put(f"/appointments/{appointment.id}", json={"status": "archived"})

        assert response.status_code == 400
        assert sent_emails == []

    def test_update_bad_time(self, client, make_appointment):
        appointment = make_appointment()

        response = client.put(
            f"/appointments/{appointment.id}", json={"date": "2025-03-05", "time": "25:99"}
        )

        assert response.status_code == 400

    def test_update_missing(self, client, catalog):
        response = client.put("/appointments/999", json={"status": "confirmed"})
        assert response.status_code == 404

    def test_delete_then_gone(self, client, make_appointment):
        appointment = make_appointment()

        assert client.delete(f"/appointments/{appointment.id}").status_code == 204
        assert client.get(f"/appointments/{appointment.id}").status_code == 404
        assert client.delete(f"/appointments/{appointment.id}").status_code == 404


class TestListings:
    def test_all_appointments_empty_is_ok(self, client, catalog):
        response = client.get("/appointments")
        assert response.status_code == 200
        assert response.json() == []

    def test_all_appointments_newest_first(self, client, make_appointment):
        make_appointment(date=datetime(2025, 3, 1, 10, 0))
        make_appointment(date=datetime(2025, 4, 1, 10, 0), pet_name="Max")

        dates = [a["date"] for a in client.get("/appointments").json()]

        assert dates == ["2025-04-01T10:00:00", "2025-03-01T10:00:00"]

    def test_owner_listing(self, client, catalog, make_appointment):
        assert client.get(f"/appointments/owner/{catalog.owner_id}").status_code == 404

        make_appointment()
        response = client.get(f"/appointments/owner/{catalog.owner_id}")

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_clinic_listing_empty(self, client, catalog):
        response = client.get(f"/appointments/clinic/{catalog.clinic_id}")
        assert response.status_code == 404
        assert response.json()["detail"] == "No appointments found for this clinic."

    def test_clinic_owners_summary(self, client, make_appointment, catalog):
        first = make_appointment()
        make_appointment(pet_name="Max")
        make_appointment(date=datetime(2025, 5, 1, 9, 0), pet_id=first.pet_id)

        response = client.get(f"/appointments/clinic/{catalog.clinic_id}/owners")

        assert response.status_code == 200
        owners = response.json()
        assert len(owners) == 1
        assert owners[0]["email"] == "maria@example.com"
        assert sorted(p["name"] for p in owners[0]["pets"]) == ["Max", "Rex"]
        assert [s["name"] for s in owners[0]["services"]] == ["General Checkup"]


class TestUnexpectedErrors:
    @pytest.mark.parametrize(
        "method, path, service_method",
        [
            ("get", "/appointments", "list_appointments"),
            ("get", "/appointments/owner/1", "list_by_owner"),
            ("get", "/appointments/clinic/1", "list_by_clinic"),
            ("get", "/appointments/clinic/1/owners", "list_clinic_owners"),
            ("get", "/appointments/1", "get_appointment_view"),
            ("delete", "/appointments/1", "delete_appointment"),
        ],
    )
    def test_service_failure_becomes_generic_500(
        self, client, catalog, monkeypatch, method, path, service_method
    ):
        def explode(self, *args, **kwargs):
            raise RuntimeError("connection reset by peer")

        monkeypatch.setattr(AppointmentService, service_method, explode)

        response = getattr(client, method)(path)

        assert response.status_code == 500
        assert response.json() == {"detail": "Internal server error"}


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "healthy"}
