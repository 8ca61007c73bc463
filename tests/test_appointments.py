from datetime import date, timedelta

from tests.conftest import auth_headers, next_weekday
from telehealth.models.doctor import Doctor
from telehealth.services.appointment_service import AppointmentService

def _book(client, headers, doctor_id, day, time="10:00", **extra):
    payload = {
        "doctor_id": doctor_id,
        "scheduled_date": day.isoformat(),
        "scheduled_time": time,
    }
    payload.update(extra)
    return client.post("/api/v1/appointments", json=payload, headers=headers)

class TestDoctorsAndSlots:

    def test_list_doctors(self, client, patient_headers, doctor_id):
        response = client.get("/api/v1/doctors", headers=patient_headers)
        assert response.status_code == 200

        doctors = response.json()
        assert len(doctors) == 1
        assert doctors[0]["full_name"] == "Dana Doctor"
        assert doctors[0]["email"] == "doctor@example.com"
        assert doctors[0]["specialisation"] == "Cardiology"

    def test_list_doctors_by_specialisation(self, client, patient_headers, doctor_id):
        response = client.get(
            "/api/v1/doctors", params={"specialisation": "derm"}, headers=patient_headers
        )
        assert response.json() == []

    def test_unavailable_doctor_hidden(self, client, patient_headers, doctor_headers, doctor_id):
        client.put("/api/v1/doctors/me/profile", json={"is_available": False}, headers=doctor_headers)

        assert client.get("/api/v1/doctors", headers=patient_headers).json() == []
        everyone = client.get(
            "/api/v1/doctors", params={"include_unavailable": True}, headers=patient_headers
        ).json()
        assert len(everyone) == 1

    def test_slots_for_weekday(self, client, patient_headers, doctor_id):
        day = next_weekday(7)
        response = client.get(
            f"/api/v1/doctors/{doctor_id}/slots",
            params={"date": day.isoformat()},
            headers=patient_headers
        )
        assert response.status_code == 200

        data = response.json()
        assert data["slot_duration"] == 30
        assert data["slots"][0] == "09:00"
        assert "13:00" not in data["slots"]

    def test_slots_for_unknown_doctor(self, client, patient_headers):
        response = client.get(
            "/api/v1/doctors/999/slots",
            params={"date": next_weekday(7).isoformat()},
            headers=patient_headers
        )
        assert response.status_code == 404

    def test_past_date_has_no_slots(self, client, patient_headers, doctor_id):
        response = client.get(
            f"/api/v1/doctors/{doctor_id}/slots",
            params={"date": (date.today() - timedelta(days=3)).isoformat()},
            headers=patient_headers
        )
        assert response.json()["slots"] == []

class TestSchedule:

    def test_defaults_returned_until_saved(self, client, doctor_headers):
        response = client.get("/api/v1/doctors/me/schedule", headers=doctor_headers)
        assert response.status_code == 200

        data = response.json()
        assert data["is_default"] is True
        assert data["weekly_schedule"]["monday"] == {"enabled": True, "start": "09:00", "end": "17:00"}
        assert data["weekly_schedule"]["saturday"]["enabled"] is False

    def test_update_changes_slots(self, client, doctor_headers, patient_headers, doctor_id):
        response = client.put(
            "/api/v1/doctors/me/schedule",
            json={
                "weekly_schedule": {
                    day: {"enabled": True, "start": "08:00", "end": "10:00"}
                    for day in ("monday", "tuesday", "wednesday", "thursday", "friday")
                },
                "slot_duration": 60,
                "break_start": None,
                "break_end": None,
            },
            headers=doctor_headers
        )
        assert response.status_code == 200
        assert response.json()["is_default"] is False

        slots = client.get(
            f"/api/v1/doctors/{doctor_id}/slots",
            params={"date": next_weekday(7).isoformat()},
            headers=patient_headers
        ).json()
        assert slots["slots"] == ["08:00", "09:00"]
        assert slots["slot_duration"] == 60

    def test_start_after_end_rejected(self, client, doctor_headers):
        response = client.put(
            "/api/v1/doctors/me/schedule",
            json={"weekly_schedule": {"monday": {"enabled": True, "start": "18:00", "end": "09:00"}}},
            headers=doctor_headers
        )
        assert response.status_code == 400

    def test_bad_break_rejected(self, client, doctor_headers):
        response = client.put(
            "/api/v1/doctors/me/schedule",
            json={"weekly_schedule": {}, "break_start": "14:00", "break_end": "13:00"},
            headers=doctor_headers
        )
        assert response.status_code == 400

    def test_bad_time_format_rejected(self, client, doctor_headers):
        response = client.put(
            "/api/v1/doctors/me/schedule",
            json={"weekly_schedule": {"monday": {"start": "9am", "end": "17:00"}}},
            headers=doctor_headers
        )
        assert response.status_code == 422

class TestBooking:

    def test_book_appointment(self, client, booked_appointment):
        assert booked_appointment["status"] == "confirmed"
        assert booked_appointment["scheduled_time"] == "10:00"
        assert booked_appointment["duration_minutes"] == 30
        assert booked_appointment["doctor_name"] == "Dana Doctor"
        assert booked_appointment["patient_name"] == "Pat Patient"
        assert booked_appointment["has_pre_consultation_form"] is False

    def test_booked_slot_disappears(self, client, patient_headers, doctor_id, booked_appointment):
        slots = client.get(
            f"/api/v1/doctors/{doctor_id}/slots",
            params={"date": booked_appointment["scheduled_date"]},
            headers=patient_headers
        ).json()["slots"]
        assert "10:00" not in slots

    def test_double_booking_conflicts(self, client, doctor_id, booked_appointment):
        other = auth_headers(client, "second@example.com")
        day = date.fromisoformat(booked_appointment["scheduled_date"])

        response = _book(client, other, doctor_id, day)
        assert response.status_code == 409

    def test_cancelled_appointment_frees_slot(self, client, patient_headers, doctor_id, booked_appointment):
        response = client.post(
            f"/api/v1/appointments/{booked_appointment['id']}/cancel",
            json={"reason": "Feeling better"},
            headers=patient_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"

        other = auth_headers(client, "second@example.com")
        day = date.fromisoformat(booked_appointment["scheduled_date"])
        assert _book(client, other, doctor_id, day).status_code == 201

    def test_off_grid_time_conflicts(self, client, patient_headers, doctor_id):
        assert _book(client, patient_headers, doctor_id, next_weekday(7), "10:15").status_code == 409

    def test_break_time_conflicts(self, client, patient_headers, doctor_id):
        assert _book(client, patient_headers, doctor_id, next_weekday(7), "13:00").status_code == 409

    def test_weekend_conflicts(self, client, patient_headers, doctor_id):
        saturday = date.today() + timedelta(days=7)
        while saturday.weekday() != 5:
            saturday += timedelta(days=1)
        assert _book(client, patient_headers, doctor_id, saturday).status_code == 409

    def test_beyond_booking_window(self, client, patient_headers, doctor_id):
        too_far = next_weekday(31)
        slots = client.get(
            f"/api/v1/doctors/{doctor_id}/slots",
            params={"date": too_far.isoformat()},
            headers=patient_headers
        ).json()
        assert slots["slots"] == []

        response = _book(client, patient_headers, doctor_id, too_far)
        assert response.status_code == 409
        assert "30 days" in response.json()["detail"]

    def test_slot_taken_between_check_and_insert(self, client, patient_headers, doctor_id, monkeypatch):
        # Both requests see the slot as free, as two concurrent workers would
        monkeypatch.setattr(
            AppointmentService, "available_slots",
            lambda self, doctor, day, now=None: (30, ["10:00"])
        )
        other = auth_headers(client, "second@example.com")

        assert _book(client, patient_headers, doctor_id, next_weekday(7)).status_code == 201
        response = _book(client, other, doctor_id, next_weekday(7))
        assert response.status_code == 409
        assert response.json()["detail"] == "Selected time slot is not available"

    def test_book_with_pre_consultation_form(self, client, patient_headers, doctor_headers, doctor_id):
        response = _book(
            client, patient_headers, doctor_id, next_weekday(7), "11:00",
            pre_consultation={
                "chief_complaint": "Palpitations",
                "symptom_severity": "mild",
                "consent_given": True,
            }
        )
        assert response.status_code == 201
        appointment = response.json()
        assert appointment["has_pre_consultation_form"] is True

        form = client.get(
            f"/api/v1/appointments/{appointment['id']}/pre-consultation",
            headers=doctor_headers
        )
        assert form.status_code == 200
        assert form.json()["chief_complaint"] == "Palpitations"
        assert form.json()["consent_timestamp"] is not None

    def test_form_without_consent_rejected(self, client, patient_headers, doctor_id):
        response = _book(
            client, patient_headers, doctor_id, next_weekday(7), "11:00",
            pre_consultation={"chief_complaint": "Palpitations", "consent_given": False}
        )
        assert response.status_code == 400

    def test_form_with_blank_complaint_rejected(self, client, patient_headers, doctor_id):
        response = _book(
            client, patient_headers, doctor_id, next_weekday(7), "11:00",
            pre_consultation={"chief_complaint": "   ", "consent_given": True}
        )
        assert response.status_code == 422

class TestListing:

    def test_patient_and_doctor_see_appointment(self, client, patient_headers, doctor_headers, booked_appointment):
        mine = client.get("/api/v1/appointments", headers=patient_headers).json()
        theirs = client.get("/api/v1/appointments", headers=doctor_headers).json()

        assert [a["id"] for a in mine] == [booked_appointment["id"]]
        assert [a["id"] for a in theirs] == [booked_appointment["id"]]

    def test_filters(self, client, patient_headers, booked_appointment):
        def ids(filter_name):
            response = client.get(
                "/api/v1/appointments", params={"filter": filter_name}, headers=patient_headers
            )
            return [a["id"] for a in response.json()]

        assert ids("upcoming") == [booked_appointment["id"]]
        assert ids("completed") == []
        assert ids("today") == []

        client.post(
            f"/api/v1/appointments/{booked_appointment['id']}/cancel", json={}, headers=patient_headers
        )
        assert ids("upcoming") == []
        assert ids("cancelled") == [booked_appointment["id"]]

    def test_unknown_filter(self, client, patient_headers):
        response = client.get("/api/v1/appointments", params={"filter": "soon"}, headers=patient_headers)
        assert response.status_code == 400

    def test_ordered_by_date_then_time(self, client, patient_headers, doctor_id):
        later = next_weekday(14)
        sooner = next_weekday(7)
        _book(client, patient_headers, doctor_id, later, "09:00")
        _book(client, patient_headers, doctor_id, sooner, "15:00")
        _book(client, patient_headers, doctor_id, sooner, "09:30")

        listed = client.get("/api/v1/appointments", headers=patient_headers).json()
        assert [(a["scheduled_date"], a["scheduled_time"]) for a in listed] == [
            (sooner.isoformat(), "09:30"),
            (sooner.isoformat(), "15:00"),
            (later.isoformat(), "09:00"),
        ]

    def test_strangers_cannot_read_appointment(self, client, booked_appointment):
        stranger = auth_headers(client, "stranger@example.com")
        response = client.get(f"/api/v1/appointments/{booked_appointment['id']}", headers=stranger)
        assert response.status_code == 403

    def test_admin_can_read_appointment(self, client, admin_headers, booked_appointment):
        response = client.get(f"/api/v1/appointments/{booked_appointment['id']}", headers=admin_headers)
        assert response.status_code == 200

class TestStatusChanges:

    def test_doctor_follows_transitions(self, client, doctor_headers, booked_appointment):
        url = f"/api/v1/appointments/{booked_appointment['id']}/status"

        assert client.patch(url, json={"status": "completed"}, headers=doctor_headers).status_code == 400
        assert client.patch(url, json={"status": "in_progress"}, headers=doctor_headers).status_code == 200

        response = client.patch(url, json={"status": "completed"}, headers=doctor_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    def test_patient_cannot_cancel_completed(self, client, patient_headers, doctor_headers, booked_appointment):
        url = f"/api/v1/appointments/{booked_appointment['id']}"
        client.patch(f"{url}/status", json={"status": "in_progress"}, headers=doctor_headers)
        client.patch(f"{url}/status", json={"status": "completed"}, headers=doctor_headers)

        assert client.post(f"{url}/cancel", json={}, headers=patient_headers).status_code == 400

    def test_other_patient_cannot_cancel(self, client, booked_appointment):
        stranger = auth_headers(client, "stranger@example.com")
        response = client.post(
            f"/api/v1/appointments/{booked_appointment['id']}/cancel", json={}, headers=stranger
        )
        assert response.status_code == 403

    def test_notes_and_video_room(self, client, doctor_headers, booked_appointment):
        url = f"/api/v1/appointments/{booked_appointment['id']}"

        response = client.put(f"{url}/notes", json={"doctor_notes": "BP 150/95"}, headers=doctor_headers)
        assert response.json()["doctor_notes"] == "BP 150/95"

        response = client.put(
            f"{url}/video-room", json={"video_room_url": "http://insecure.example.com/room"},
            headers=doctor_headers
        )
        assert response.status_code == 400

        response = client.put(
            f"{url}/video-room", json={"video_room_url": "https://video.example.com/room/abc"},
            headers=doctor_headers
        )
        assert response.status_code == 200
        assert response.json()["video_room_url"] == "https://video.example.com/room/abc"

    def test_patient_edits_pre_consultation_form(self, client, patient_headers, booked_appointment):
        url = f"/api/v1/appointments/{booked_appointment['id']}/pre-consultation"

        assert client.get(url, headers=patient_headers).status_code == 404

        response = client.put(
            url,
            json={"chief_complaint": "Chest tightness", "consent_given": True, "symptom_severity": "severe"},
            headers=patient_headers
        )
        assert response.status_code == 200
        assert response.json()["symptom_severity"] == "severe"

        client.post(f"/api/v1/appointments/{booked_appointment['id']}/cancel", json={}, headers=patient_headers)
        response = client.put(
            url, json={"chief_complaint": "Changed", "consent_given": True}, headers=patient_headers
        )
        assert response.status_code == 400

class TestDashboardStats:

    def test_doctor_counters(self, client, db_session, doctor_headers, doctor_id, booked_appointment):
        stats = client.get("/api/v1/appointments/stats", headers=doctor_headers).json()
        assert stats == {
            "today_appointments": 0,
            "pending_appointments": 1,
            "total_patients": 1,
            "completed_today": 0,
        }

        url = f"/api/v1/appointments/{booked_appointment['id']}/status"
        client.patch(url, json={"status": "in_progress"}, headers=doctor_headers)
        client.patch(url, json={"status": "completed"}, headers=doctor_headers)

        doctor = db_session.query(Doctor).filter(Doctor.id == doctor_id).first()
        on_the_day = AppointmentService(db_session).doctor_stats(
            doctor, today=date.fromisoformat(booked_appointment["scheduled_date"])
        )
        assert on_the_day.today_appointments == 1
        assert on_the_day.completed_today == 1
        assert on_the_day.pending_appointments == 0

    def test_patient_counters(self, client, patient_headers, booked_appointment):
        stats = client.get("/api/v1/appointments/stats", headers=patient_headers).json()
        assert stats == {"upcoming": 1, "completed": 0, "cancelled": 0}

        client.post(
            f"/api/v1/appointments/{booked_appointment['id']}/cancel", json={}, headers=patient_headers
        )
        stats = client.get("/api/v1/appointments/stats", headers=patient_headers).json()
        assert stats == {"upcoming": 0, "completed": 0, "cancelled": 1}

    def test_admin_has_no_appointment_counters(self, client, admin_headers):
        assert client.get("/api/v1/appointments/stats", headers=admin_headers).status_code == 403
