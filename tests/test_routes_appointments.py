"""Tests for slot, booking and appointment API routes."""

from datetime import timedelta

import pytest


@pytest.fixture
def booked(client, clinic, booking_date):
    """One appointment at 10:00 on the booking date."""
    response = client.post(
        f"/clinics/{clinic.id}/appointments",
        json={
            "patient": {"name": "Ravi Kumar", "phone": "9123456780"},
            "appointment_date": booking_date.isoformat(),
            "appointment_time": "10:00",
            "booking_source": "phone",
        },
    )
    assert response.status_code == 201
    return response.json()


class TestSlotRoutes:
    def test_slots_for_open_day(self, client, clinic, booking_date, booked):
        response = client.get(f"/clinics/{clinic.id}/slots", params={"date": booking_date.isoformat()})

        assert response.status_code == 200
        data = response.json()
        assert data["slot_duration"] == 15
        assert data["slots"][0] == "09:00"
        assert data["slots"][-1] == "17:45"
        assert data["booked"] == ["10:00"]
        assert "10:00" not in data["available"]

    def test_slots_for_closed_day(self, client, clinic, booking_date):
        sunday = booking_date + timedelta(days=6)

        response = client.get(f"/clinics/{clinic.id}/slots", params={"date": sunday.isoformat()})

        assert response.json()["slots"] == []
        assert response.json()["available"] == []

    def test_exclude_own_appointment(self, client, clinic, booking_date, booked):
        response = client.get(
            f"/clinics/{clinic.id}/slots",
            params={"date": booking_date.isoformat(), "exclude_appointment_id": booked["id"]},
        )

        assert "10:00" in response.json()["available"]

    def test_unknown_clinic(self, client, booking_date):
        response = client.get("/clinics/999/slots", params={"date": booking_date.isoformat()})

        assert response.status_code == 404


class TestBookingRoutes:
    def test_booking_response_and_confirmation_queued(self, booked, notice_queue):
        assert booked["token_number"] == 1
        assert booked["status"] == "scheduled"
        assert booked["booking_source"] == "phone"
        assert booked["appointment_time"] == "10:00:00"
        assert booked["patient"]["phone"] == "+919123456780"
        notice_queue.assert_awaited_once_with(booked["id"], "confirmation")

    def test_double_booking_is_409(self, client, clinic, booking_date, booked):
        response = client.post(
            f"/clinics/{clinic.id}/appointments",
            json={
                "patient": {"name": "Meena", "phone": "9000000001"},
                "appointment_date": booking_date.isoformat(),
                "appointment_time": "10:00",
            },
        )

        assert response.status_code == 409

    def test_off_grid_time_is_400(self, client, clinic, booking_date):
        response = client.post(
            f"/clinics/{clinic.id}/appointments",
            json={
                "patient": {"name": "Meena", "phone": "9000000001"},
                "appointment_date": booking_date.isoformat(),
                "appointment_time": "10:05",
            },
        )

        assert response.status_code == 400

    def test_invalid_patient_phone_is_422(self, client, clinic, booking_date):
        response = client.post(
            f"/clinics/{clinic.id}/appointments",
            json={
                "patient": {"name": "Meena", "phone": "555"},
                "appointment_date": booking_date.isoformat(),
                "appointment_time": "10:00",
            },
        )

        assert response.status_code == 422

    def test_list_by_date_in_token_order(self, client, clinic, booking_date, booked):
        client.post(
            f"/clinics/{clinic.id}/appointments",
            json={
                "patient": {"name": "Meena", "phone": "9000000001"},
                "appointment_date": booking_date.isoformat(),
                "appointment_time": "09:00",
            },
        )

        response = client.get(
            f"/clinics/{clinic.id}/appointments", params={"date": booking_date.isoformat()}
        )

        assert response.status_code == 200
        assert [a["token_number"] for a in response.json()] == [1, 2]


class TestAppointmentRoutes:
    def test_reschedule_queues_notice(self, client, booked, notice_queue):
        response = client.patch(f"/appointments/{booked['id']}", json={"appointment_time": "11:00"})

        assert response.status_code == 200
        assert response.json()["appointment_time"] == "11:00:00"
        notice_queue.assert_awaited_with(booked["id"], "reschedule")

    def test_notes_edit_does_not_queue_notice(self, client, booked, notice_queue):
        notice_queue.reset_mock()

        response = client.patch(f"/appointments/{booked['id']}", json={"notes": "Bring X-ray"})

        assert response.status_code == 200
        assert response.json()["booking_notes"] == "Bring X-ray"
        notice_queue.assert_not_awaited()

    def test_status_change_and_cancellation_notice(self, client, booked, notice_queue):
        confirmed = client.post(f"/appointments/{booked['id']}/status", json={"status": "confirmed"})
        cancelled = client.post(
            f"/appointments/{booked['id']}/status",
            json={"status": "cancelled", "reason": "Unwell"},
        )

        assert confirmed.json()["status"] == "confirmed"
        assert cancelled.json()["status"] == "cancelled"
        assert cancelled.json()["cancellation_reason"] == "Unwell"
        notice_queue.assert_awaited_with(booked["id"], "cancellation")

    def test_invalid_transition_is_400(self, client, booked):
        response = client.post(f"/appointments/{booked['id']}/status", json={"status": "completed"})

        assert response.status_code == 400

    def test_unknown_status_is_422(self, client, booked):
        response = client.post(f"/appointments/{booked['id']}/status", json={"status": "lost"})

        assert response.status_code == 422

    def test_delete(self, client, booked):
        assert client.delete(f"/appointments/{booked['id']}").status_code == 200
        assert client.get(f"/appointments/{booked['id']}").status_code == 404


class TestPublicBooking:
    def test_public_slots_and_booking(self, client, clinic, booking_date, notice_queue):
        slots = client.get(
            f"/public/clinics/{clinic.slug}/slots", params={"date": booking_date.isoformat()}
        )
        first_free = slots.json()["available"][0]

        response = client.post(
            f"/public/clinics/{clinic.slug}/book",
            json={
                "name": "Priya Singh",
                "phone": "+91 99887 66554",
                "appointment_date": booking_date.isoformat(),
                "appointment_time": first_free,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["token_number"] == 1
        assert data["appointment_time"] == first_free
        assert data["clinic_name"] == "Sharma Family Clinic"
        notice_queue.assert_awaited_once_with(data["appointment_id"], "confirmation")

    def test_online_booking_disabled(self, client, db, clinic, booking_date):
        clinic.allow_online_booking = False
        db.commit()

        response = client.post(
            f"/public/clinics/{clinic.slug}/book",
            json={
                "name": "Priya Singh",
                "phone": "9988766554",
                "appointment_date": booking_date.isoformat(),
                "appointment_time": "09:00",
            },
        )

        assert response.status_code == 400

    def test_unknown_slug(self, client, booking_date):
        response = client.get("/public/clinics/nope/slots", params={"date": booking_date.isoformat()})

        assert response.status_code == 404
