"""
HTTP tests for the booking API, run against in-memory adapters.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from massage_booking.domain.entities.profile import ClientProfile
from massage_booking.domain.entities.step import BookingStep
from massage_booking.main import app
from massage_booking.wiring import dependencies


@pytest.fixture
def client(persistence, eligibility, wizard, intake_use_case, payment_use_case):
    app.dependency_overrides[dependencies.get_persistence] = lambda: persistence
    app.dependency_overrides[dependencies.get_eligibility_resolver] = lambda: eligibility
    app.dependency_overrides[dependencies.get_booking_wizard] = lambda: wizard
    app.dependency_overrides[dependencies.get_intake_form_use_case] = lambda: intake_use_case
    app.dependency_overrides[dependencies.get_payment_step_use_case] = lambda: payment_use_case
    yield TestClient(app)
    app.dependency_overrides.clear()


CLIENT_INFO = {
    "first_name": "Jamie",
    "last_name": "Rivera",
    "email": "jamie@example.com",
    "phone": "+15550102030",
}


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_list_services(client):
    response = client.get("/api/v1/services")
    assert response.status_code == 200
    names = [s["name"] for s in response.json()]
    assert "Swedish Massage" in names
    assert "Free Consultation" in names


def test_client_lookups(client):
    eligibility = client.get("/api/v1/clients/client-1/consultation-eligibility").json()
    assert eligibility["is_eligible"] is True

    requirement = client.get("/api/v1/clients/client-1/intake-requirement", params={"date": "2030-05-06"}).json()
    assert requirement == {
        "required": True,
        "form_type": "new_client",
        "last_form_date": None,
        "days_since_last_form": None,
    }


def test_guest_pay_cash_booking_flow(client, notifier):
    response = client.post("/api/v1/bookings", json={})
    assert response.status_code == 201
    sid = response.json()["session_id"]

    response = client.put(f"/api/v1/bookings/{sid}/service", json={"service_id": "svc-swedish-60"})
    assert response.json()["draft"]["service"]["price_cents"] == 9000

    response = client.post(f"/api/v1/bookings/{sid}/next")
    assert response.json()["step_name"] == "date_time"
    assert response.json()["progress"]["current"] == 2
    assert response.json()["progress"]["total"] == 6

    response = client.patch(
        f"/api/v1/bookings/{sid}",
        json={
            "date": "2030-05-06",
            "time_slot": {"start": "14:00:00", "end": "15:00:00"},
            "client_info": CLIENT_INFO,
        },
    )
    assert response.status_code == 200

    assert client.post(f"/api/v1/bookings/{sid}/next").json()["step_name"] == "client_info"
    assert client.post(f"/api/v1/bookings/{sid}/next").json()["step_name"] == "intake_form"

    blocked = client.post(f"/api/v1/bookings/{sid}/next").json()
    assert blocked["moved"] is False

    intake = client.post(f"/api/v1/bookings/{sid}/intake-form").json()
    assert intake["session"]["draft"]["intake_complete"] is True

    assert client.post(f"/api/v1/bookings/{sid}/next").json()["step_name"] == "payment_preference"
    client.patch(f"/api/v1/bookings/{sid}", json={"payment_preference": "pay_cash"})

    confirmation_step = client.post(f"/api/v1/bookings/{sid}/next").json()
    assert confirmation_step["step_name"] == "confirmation"
    assert confirmation_step["progress"]["current"] == 6

    response = client.post(f"/api/v1/bookings/{sid}/commit")
    assert response.status_code == 200
    body = response.json()
    assert body["already_committed"] is False
    assert body["warnings"] == []

    again = client.post(f"/api/v1/bookings/{sid}/commit").json()
    assert again["already_committed"] is True
    assert again["confirmation_number"] == body["confirmation_number"]
    assert len(notifier.sent) == 1

    session = client.get(f"/api/v1/bookings/{sid}").json()
    assert session["step_name"] == "confirmation"
    assert session["draft"]["confirmation_number"] == body["confirmation_number"]


def test_unknown_session_is_404(client):
    assert client.get("/api/v1/bookings/missing").status_code == 404
    assert client.post("/api/v1/bookings/missing/commit").status_code == 404


def test_invalid_update_is_400(client):
    sid = client.post("/api/v1/bookings", json={"service_id": "svc-free-consultation"}).json()["session_id"]

    response = client.patch(f"/api/v1/bookings/{sid}", json={"payment_preference": "pay_now"})

    assert response.status_code == 400


def test_incomplete_commit_is_400(client):
    sid = client.post("/api/v1/bookings", json={}).json()["session_id"]
    assert client.post(f"/api/v1/bookings/{sid}/commit").status_code == 400


def test_commit_skipping_steps_is_400(client, persistence):
    sid = client.post("/api/v1/bookings", json={"service_id": "svc-swedish-60"}).json()["session_id"]
    client.patch(
        f"/api/v1/bookings/{sid}",
        json={
            "date": "2030-05-06",
            "time_slot": {"start": "14:00:00", "end": "15:00:00"},
            "client_info": CLIENT_INFO,
            "payment_preference": "pay_cash",
        },
    )

    response = client.post(f"/api/v1/bookings/{sid}/commit")

    assert response.status_code == 400
    assert persistence.appointments == {}
    assert client.get(f"/api/v1/bookings/{sid}").json()["step_name"] == "service"


def test_commit_failure_is_502_with_retry_hint(client, store_session, massage_draft, persistence):
    sid = store_session(massage_draft, step=BookingStep.PAYMENT_PREFERENCE)
    persistence.fail_on.add("create_appointment")

    response = client.post(f"/api/v1/bookings/{sid}/commit")

    assert response.status_code == 502
    assert response.json()["detail"]["retryable"] is True
    assert response.json()["detail"]["retry_step"] == 1


def test_identity_header_prefills_profile(client, persistence):
    persistence.add_profile(
        ClientProfile(id="client-1", email="pat@example.com", first_name="Pat", last_name="Kim", phone="5550001111")
    )

    body = client.post("/api/v1/bookings", json={}, headers={"X-Client-Id": "client-1"}).json()

    assert body["draft"]["client_id"] == "client-1"
    assert body["draft"]["is_guest"] is False
    assert body["draft"]["client_info"]["email"] == "pat@example.com"


def test_discard_booking(client):
    sid = client.post("/api/v1/bookings", json={}).json()["session_id"]
    assert client.delete(f"/api/v1/bookings/{sid}").status_code == 204
    assert client.get(f"/api/v1/bookings/{sid}").status_code == 404
