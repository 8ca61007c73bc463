from datetime import date, timedelta

from sqlalchemy import Text

from tests.conftest import auth_headers, next_weekday
from telehealth.models.follow_up import FollowUp, FollowUpStatus
from telehealth.models.prescription import Prescription
from telehealth.schemas.consultation_summary import SummaryDraftRequest
from telehealth.services.follow_up_service import FollowUpService
from telehealth.services.summary_drafter import detect_conditions, draft_summary

referral_data = {
    "status": "draft",
    "urgency": "urgent",
    "referred_to_specialty": "Cardiology",
    "referred_to_hospital": "St Thomas' Hospital",
    "reason_for_referral": "Exertional chest pain, abnormal ECG",
}

summary_data = {
    "diagnosis": "Stable angina",
    "treatment_plan": "GTN spray PRN, start aspirin 75mg",
}

class TestReferrals:

    def test_drafts_hidden_from_patient(self, client, doctor_headers, patient_headers, booked_appointment):
        url = f"/api/v1/appointments/{booked_appointment['id']}/referral"

        response = client.put(url, json=referral_data, headers=doctor_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "draft"
        assert response.json()["referral_date"] == date.today().isoformat()

        assert client.get("/api/v1/referrals/mine", headers=patient_headers).json() == []

        response = client.put(url, json=dict(referral_data, status="sent"), headers=doctor_headers)
        assert response.status_code == 200

        visible = client.get("/api/v1/referrals/mine", headers=patient_headers).json()
        assert len(visible) == 1
        assert visible[0]["doctor_name"] == "Dana Doctor"
        assert visible[0]["urgency"] == "urgent"

    def test_upsert_keeps_one_referral(self, client, doctor_headers, booked_appointment):
        url = f"/api/v1/appointments/{booked_appointment['id']}/referral"
        first = client.put(url, json=referral_data, headers=doctor_headers).json()
        second = client.put(url, json=dict(referral_data, urgency="routine"), headers=doctor_headers).json()

        assert first["id"] == second["id"]
        assert len(client.get("/api/v1/referrals/written", headers=doctor_headers).json()) == 1

    def test_blank_reason_rejected(self, client, doctor_headers, booked_appointment):
        response = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/referral",
            json=dict(referral_data, reason_for_referral="   "),
            headers=doctor_headers
        )
        assert response.status_code == 422

    def test_other_doctor_cannot_refer(self, client, booked_appointment):
        other = auth_headers(client, "other.doc@example.com", role="doctor")
        response = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/referral",
            json=referral_data,
            headers=other
        )
        assert response.status_code == 403

    def test_status_transitions(self, client, doctor_headers, booked_appointment):
        referral = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/referral",
            json=referral_data,
            headers=doctor_headers
        ).json()
        url = f"/api/v1/referrals/{referral['id']}/status"

        # A draft has to be sent before it can be accepted
        assert client.patch(url, json={"status": "accepted"}, headers=doctor_headers).status_code == 400

        client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/referral",
            json=dict(referral_data, status="sent"),
            headers=doctor_headers
        )
        assert client.patch(url, json={"status": "accepted"}, headers=doctor_headers).status_code == 200
        response = client.patch(url, json={"status": "completed"}, headers=doctor_headers)
        assert response.json()["status"] == "completed"

class TestPrescriptions:

    def _prescribe(self, client, headers, patient_id, **extra):
        payload = {
            "patient_id": patient_id,
            "diagnosis": "Hypertension",
            "medications": [{"name": "Amlodipine", "dosage": "5mg", "frequency": "Once daily", "duration": "30 days"}],
        }
        payload.update(extra)
        return client.post("/api/v1/prescriptions", json=payload, headers=headers)

    def test_default_validity_is_thirty_days(self, client, doctor_headers, booked_appointment):
        response = self._prescribe(client, doctor_headers, booked_appointment["patient_id"])
        assert response.status_code == 201

        data = response.json()
        assert data["status"] == "active"
        assert data["issue_date"] == date.today().isoformat()
        assert data["valid_until"] == (date.today() + timedelta(days=30)).isoformat()
        assert data["patient_name"] == "Pat Patient"

    def test_only_own_patients(self, client, booked_appointment):
        other = auth_headers(client, "other.doc@example.com", role="doctor")
        response = self._prescribe(client, other, booked_appointment["patient_id"])
        assert response.status_code == 403

    def test_medication_name_required(self, client, doctor_headers, booked_appointment):
        response = self._prescribe(
            client, doctor_headers, booked_appointment["patient_id"],
            medications=[{"name": " "}]
        )
        assert response.status_code == 422

    def test_patient_lists_and_doctor_searches(self, client, doctor_headers, patient_headers, booked_appointment):
        self._prescribe(client, doctor_headers, booked_appointment["patient_id"])
        self._prescribe(client, doctor_headers, booked_appointment["patient_id"], diagnosis="Asthma")

        mine = client.get("/api/v1/prescriptions/mine", headers=patient_headers).json()
        assert [p["diagnosis"] for p in mine] == ["Asthma", "Hypertension"]

        found = client.get(
            "/api/v1/prescriptions/issued", params={"search": "asth"}, headers=doctor_headers
        ).json()
        assert [p["diagnosis"] for p in found] == ["Asthma"]

        by_name = client.get(
            "/api/v1/prescriptions/issued", params={"search": "pat"}, headers=doctor_headers
        ).json()
        assert len(by_name) == 2

    def test_attachments_and_cancel(self, client, doctor_headers, booked_appointment):
        prescription = self._prescribe(client, doctor_headers, booked_appointment["patient_id"]).json()
        url = f"/api/v1/prescriptions/{prescription['id']}"

        too_big = [{"name": "scan.pdf", "url": "https://files.example.com/scan.pdf",
                    "type": "application/pdf", "size": 11 * 1024 * 1024}]
        assert client.post(f"{url}/attachments", json=too_big, headers=doctor_headers).status_code == 400

        wrong_type = [dict(too_big[0], type="application/zip", size=100)]
        assert client.post(f"{url}/attachments", json=wrong_type, headers=doctor_headers).status_code == 422

        ok = [dict(too_big[0], size=2048)]
        response = client.post(f"{url}/attachments", json=ok, headers=doctor_headers)
        assert response.status_code == 200
        assert len(response.json()["attachments"]) == 1

        assert client.post(f"{url}/cancel", headers=doctor_headers).json()["status"] == "cancelled"
        assert client.post(f"{url}/cancel", headers=doctor_headers).status_code == 400

    def test_lapsed_prescription_reports_expired(
        self, client, db_session, doctor_headers, patient_headers, booked_appointment
    ):
        lapsed = self._prescribe(client, doctor_headers, booked_appointment["patient_id"]).json()
        cancelled = self._prescribe(
            client, doctor_headers, booked_appointment["patient_id"], diagnosis="Asthma"
        ).json()
        client.post(f"/api/v1/prescriptions/{cancelled['id']}/cancel", headers=doctor_headers)

        db_session.query(Prescription).filter(
            Prescription.id.in_([lapsed["id"], cancelled["id"]])
        ).update({"valid_until": date.today() - timedelta(days=1)}, synchronize_session=False)
        db_session.commit()

        for url, headers in (("/api/v1/prescriptions/mine", patient_headers),
                             ("/api/v1/prescriptions/issued", doctor_headers)):
            statuses = {p["id"]: p["status"] for p in client.get(url, headers=headers).json()}
            assert statuses[lapsed["id"]] == "expired"
            assert statuses[cancelled["id"]] == "cancelled"

class TestConsultationSummaries:

    def test_summary_completes_appointment_and_schedules_follow_up(
        self, client, doctor_headers, patient_headers, booked_appointment
    ):
        follow_up_date = (date.fromisoformat(booked_appointment["scheduled_date"]) + timedelta(days=14)).isoformat()
        response = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/summary",
            json=dict(summary_data, follow_up_required=True, follow_up_date=follow_up_date),
            headers=doctor_headers
        )
        assert response.status_code == 200

        summary = response.json()
        assert summary["consultation_date"] == booked_appointment["scheduled_date"]
        assert summary["follow_up_id"] is not None

        appointment = client.get(
            f"/api/v1/appointments/{booked_appointment['id']}", headers=patient_headers
        ).json()
        assert appointment["status"] == "completed"

        upcoming = client.get("/api/v1/follow-ups/upcoming", headers=patient_headers).json()
        assert len(upcoming) == 1
        assert upcoming[0]["follow_up_date"] == follow_up_date
        # No notes were given, so the diagnosis becomes the reason
        assert upcoming[0]["reason"] == "Stable angina"

        summaries = client.get("/api/v1/summaries/mine", headers=patient_headers).json()
        assert [s["diagnosis"] for s in summaries] == ["Stable angina"]

    def test_long_follow_up_notes_kept_as_reason(
        self, client, doctor_headers, patient_headers, booked_appointment
    ):
        assert isinstance(FollowUp.__table__.c.reason.type, Text)

        notes = "Recheck blood pressure and review home readings. " * 15
        follow_up_date = (date.fromisoformat(booked_appointment["scheduled_date"]) + timedelta(days=7)).isoformat()
        client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/summary",
            json=dict(summary_data, follow_up_required=True, follow_up_date=follow_up_date,
                      follow_up_notes=notes),
            headers=doctor_headers
        )

        upcoming = client.get("/api/v1/follow-ups/upcoming", headers=patient_headers).json()
        assert len(upcoming[0]["reason"]) > 500

    def test_summary_without_follow_up(self, client, doctor_headers, patient_headers, booked_appointment):
        response = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/summary",
            json=summary_data,
            headers=doctor_headers
        )
        assert response.json()["follow_up_id"] is None
        assert client.get("/api/v1/follow-ups/upcoming", headers=patient_headers).json() == []

    def test_summary_requires_treatment_plan(self, client, doctor_headers, booked_appointment):
        response = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/summary",
            json={"diagnosis": "Stable angina", "treatment_plan": " "},
            headers=doctor_headers
        )
        assert response.status_code == 422

    def test_cancelled_appointment_cannot_be_summarised(
        self, client, doctor_headers, patient_headers, booked_appointment
    ):
        client.post(f"/api/v1/appointments/{booked_appointment['id']}/cancel", json={}, headers=patient_headers)
        response = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/summary",
            json=summary_data,
            headers=doctor_headers
        )
        assert response.status_code == 400

    def test_doctor_closes_follow_up(self, client, doctor_headers, booked_appointment):
        follow_up_date = (date.fromisoformat(booked_appointment["scheduled_date"]) + timedelta(days=7)).isoformat()
        summary = client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/summary",
            json=dict(summary_data, follow_up_required=True, follow_up_date=follow_up_date,
                      follow_up_notes="Check BP"),
            headers=doctor_headers
        ).json()

        url = f"/api/v1/follow-ups/{summary['follow_up_id']}/status"
        response = client.patch(url, json={"status": "completed"}, headers=doctor_headers)
        assert response.status_code == 200
        assert response.json()["reason"] == "Check BP"
        assert client.patch(url, json={"status": "cancelled"}, headers=doctor_headers).status_code == 400

class TestSummaryDrafts:

    def test_detects_conditions(self):
        found = detect_conditions("Persistent cough and fever for 3 days")
        assert found["respiratory"] is True
        assert found["infection"] is True
        assert found["headache"] is False

    def test_headache_draft(self):
        draft = draft_summary(SummaryDraftRequest(doctor_notes="Recurring headache for two weeks"))
        assert draft.diagnosis.startswith("Tension-type headache")
        assert draft.follow_up_required is True
        assert draft.follow_up_timeframe == "2 weeks"

    def test_later_rule_overrides_earlier(self):
        draft = draft_summary(SummaryDraftRequest(doctor_notes="Headache with fever"))
        assert draft.diagnosis.startswith("Infection")

    def test_fallback_and_allergy_line(self):
        draft = draft_summary(SummaryDraftRequest(
            doctor_notes="Routine review, feeling well",
            chief_complaint="Annual check",
            allergies="Penicillin",
        ))
        assert draft.diagnosis == "Clinical assessment - Annual check"
        assert draft.additional_notes.endswith("Known allergies: Penicillin.")

        draft = draft_summary(SummaryDraftRequest(doctor_notes="Routine review, feeling well"))
        assert draft.additional_notes.endswith("NKDA.")

    def test_draft_endpoint(self, client, doctor_headers, patient_headers):
        response = client.post(
            "/api/v1/summaries/draft", json={"doctor_notes": "High blood pressure reading"},
            headers=doctor_headers
        )
        assert response.status_code == 200
        assert response.json()["diagnosis"].startswith("Hypertension")

        empty = client.post("/api/v1/summaries/draft", json={"doctor_notes": "  "}, headers=doctor_headers)
        assert empty.status_code == 400

        forbidden = client.post(
            "/api/v1/summaries/draft", json={"doctor_notes": "cough"}, headers=patient_headers
        )
        assert forbidden.status_code == 403

class TestFollowUpReminders:

    def _follow_up(self, db, booked_appointment, follow_up_date):
        follow_up = FollowUp(
            appointment_id=booked_appointment["id"],
            doctor_id=booked_appointment["doctor_id"],
            patient_id=booked_appointment["patient_id"],
            follow_up_date=follow_up_date,
            reason="Review",
            status=FollowUpStatus.SCHEDULED,
        )
        db.add(follow_up)
        db.commit()
        return follow_up.id

    def test_due_follow_ups_reminded_once(self, db_session, booked_appointment):
        today = date(2030, 3, 4)
        due_today = self._follow_up(db_session, booked_appointment, today)
        due_tomorrow = self._follow_up(db_session, booked_appointment, today + timedelta(days=1))
        self._follow_up(db_session, booked_appointment, today + timedelta(days=2))
        self._follow_up(db_session, booked_appointment, today - timedelta(days=1))

        result = FollowUpService(db_session).check_reminders(today=today)
        assert result.count == 2
        assert [r.follow_up_id for r in result.reminders] == [due_today, due_tomorrow]
        assert result.reminders[0].patient_email == "patient@example.com"
        assert result.reminders[0].doctor_name == "Dana Doctor"

        again = FollowUpService(db_session).check_reminders(today=today)
        assert again.count == 0
        assert again.message == "No reminders to send"

    def test_check_reminders_endpoint_is_admin_only(
        self, client, db_session, admin_headers, doctor_headers, booked_appointment
    ):
        self._follow_up(db_session, booked_appointment, date.today() + timedelta(days=1))

        assert client.post("/api/v1/follow-ups/check-reminders", headers=doctor_headers).status_code == 403

        response = client.post("/api/v1/follow-ups/check-reminders", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["count"] == 1

class TestDocumentsAndCharts:

    document = {
        "name": "Blood results.pdf",
        "file_url": "https://files.example.com/blood.pdf",
        "file_type": "application/pdf",
        "file_size": 52_000,
        "category": "lab_result",
    }

    def test_patient_manages_documents(self, client, patient_headers):
        first = client.post("/api/v1/documents", json=self.document, headers=patient_headers)
        assert first.status_code == 201
        second = client.post(
            "/api/v1/documents", json=dict(self.document, name="X-ray.png"), headers=patient_headers
        ).json()

        listed = client.get("/api/v1/documents", headers=patient_headers).json()
        assert [d["name"] for d in listed] == ["X-ray.png", "Blood results.pdf"]

        assert client.delete(f"/api/v1/documents/{second['id']}", headers=patient_headers).status_code == 200
        assert len(client.get("/api/v1/documents", headers=patient_headers).json()) == 1

    def test_oversized_document_rejected(self, client, patient_headers):
        response = client.post(
            "/api/v1/documents", json=dict(self.document, file_size=11 * 1024 * 1024),
            headers=patient_headers
        )
        assert response.status_code == 400

    def test_cannot_delete_someone_elses_document(self, client, patient_headers):
        document = client.post("/api/v1/documents", json=self.document, headers=patient_headers).json()
        other = auth_headers(client, "other@example.com")
        assert client.delete(f"/api/v1/documents/{document['id']}", headers=other).status_code == 403

    def test_doctor_reads_chart_of_own_patient(
        self, client, doctor_headers, patient_headers, booked_appointment
    ):
        client.post("/api/v1/documents", json=self.document, headers=patient_headers)
        client.put("/api/v1/patients/me", json={"blood_type": "O+", "allergies": "Penicillin"},
                   headers=patient_headers)

        patients = client.get("/api/v1/patients", headers=doctor_headers).json()
        assert len(patients) == 1
        assert patients[0]["full_name"] == "Pat Patient"
        assert patients[0]["appointment_count"] == 1
        assert patients[0]["last_visit"] is None

        chart = client.get(
            f"/api/v1/patients/{booked_appointment['patient_id']}/chart", headers=doctor_headers
        )
        assert chart.status_code == 200
        data = chart.json()
        assert data["patient"]["blood_type"] == "O+"
        assert data["patient"]["email"] == "patient@example.com"
        assert len(data["appointments"]) == 1
        assert len(data["documents"]) == 1

    def test_chart_of_stranger_forbidden(self, client, booked_appointment):
        other = auth_headers(client, "other.doc@example.com", role="doctor")
        response = client.get(f"/api/v1/patients/{booked_appointment['patient_id']}/chart", headers=other)
        assert response.status_code == 403

    def test_last_visit_counts_completed_only(self, client, doctor_headers, booked_appointment):
        client.put(
            f"/api/v1/appointments/{booked_appointment['id']}/summary",
            json=summary_data,
            headers=doctor_headers
        )
        patients = client.get("/api/v1/patients", headers=doctor_headers).json()
        assert patients[0]["last_visit"] == booked_appointment["scheduled_date"]

    def test_doctor_updates_profile(self, client, doctor_headers):
        response = client.put(
            "/api/v1/doctors/me/profile",
            json={"bio": "Consultant cardiologist", "consultation_fee": "80.00"},
            headers=doctor_headers
        )
        assert response.status_code == 200
        assert response.json()["bio"] == "Consultant cardiologist"
        assert float(response.json()["consultation_fee"]) == 80.0

    def test_doctor_profile_required_fields_cannot_be_cleared(self, client, doctor_headers):
        for field in ("specialisation", "license_number", "is_available"):
            response = client.put(
                "/api/v1/doctors/me/profile", json={field: None}, headers=doctor_headers
            )
            assert response.status_code == 422

        profile = client.get("/api/v1/doctors/me/profile", headers=doctor_headers).json()
        assert profile["specialisation"] == "Cardiology"
        assert profile["is_available"] is True

    def test_second_weekday_booking_counts(self, client, doctor_headers, patient_headers, doctor_id, booked_appointment):
        client.post(
            "/api/v1/appointments",
            json={"doctor_id": doctor_id, "scheduled_date": next_weekday(14).isoformat(), "scheduled_time": "09:00"},
            headers=patient_headers
        )
        patients = client.get("/api/v1/patients", headers=doctor_headers).json()
        assert patients[0]["appointment_count"] == 2
