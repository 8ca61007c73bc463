import pytest

from telehealth.core.access import landing_route, resolve_route
from telehealth.core.security import UserRole

class TestLandingRoute:

    @pytest.mark.parametrize("role,expected", [
        (UserRole.PATIENT, "/patient/dashboard"),
        (UserRole.DOCTOR, "/doctor/dashboard"),
        (UserRole.ADMIN, "/admin/dashboard"),
        ("admin", "/admin/dashboard"),
        (None, "/login"),
        ("receptionist", "/login"),
    ])
    def test_landing_route(self, role, expected):
        assert landing_route(role) == expected

class TestResolveRoute:

    def test_anonymous_user_sent_to_login(self):
        decision = resolve_route("/patient/dashboard")
        assert decision.allowed is False
        assert decision.redirect_to == "/login"

    def test_public_pages_render_for_anonymous_users(self):
        for path in ("/login", "/register", "/forgot-password", "/reset-password"):
            assert resolve_route(path).allowed is True

    def test_signed_in_user_bounced_from_login(self):
        decision = resolve_route("/login", UserRole.DOCTOR)
        assert decision.allowed is False
        assert decision.redirect_to == "/doctor/dashboard"

    def test_reset_password_open_to_signed_in_users(self):
        assert resolve_route("/reset-password", UserRole.PATIENT).allowed is True

    def test_own_pages_allowed(self):
        assert resolve_route("/patient/book-appointment", UserRole.PATIENT).allowed is True
        assert resolve_route("/doctor/patient-chart/42", UserRole.DOCTOR).allowed is True
        assert resolve_route("/admin/users", UserRole.ADMIN).allowed is True

    def test_other_roles_pages_redirect_home(self):
        decision = resolve_route("/admin/users", UserRole.PATIENT)
        assert decision.allowed is False
        assert decision.redirect_to == "/patient/dashboard"

        decision = resolve_route("/patient/documents", UserRole.DOCTOR)
        assert decision.redirect_to == "/doctor/dashboard"

    def test_unknown_path_goes_to_login_then_landing(self):
        assert resolve_route("/nowhere").redirect_to == "/login"
        # Signed in: /login itself forwards to the dashboard
        assert resolve_route("/nowhere", UserRole.ADMIN).redirect_to == "/admin/dashboard"

    def test_query_string_ignored(self):
        decision = resolve_route("/doctor/schedule?week=2", UserRole.DOCTOR)
        assert decision.allowed is True
        assert decision.path == "/doctor/schedule"

class TestRouteEndpoint:

    def test_anonymous(self, client):
        response = client.get("/api/v1/auth/route", params={"path": "/doctor/patients"})
        assert response.status_code == 200
        assert response.json() == {
            "path": "/doctor/patients", "allowed": False, "redirect_to": "/login"
        }

    def test_with_session(self, client, patient_headers):
        response = client.get(
            "/api/v1/auth/route", params={"path": "/doctor/patients"}, headers=patient_headers
        )
        assert response.json()["redirect_to"] == "/patient/dashboard"

    def test_invalid_token_treated_as_anonymous(self, client):
        response = client.get(
            "/api/v1/auth/route",
            params={"path": "/login"},
            headers={"Authorization": "Bearer garbage"}
        )
        assert response.json()["allowed"] is True

class TestRoleGuards:

    def test_patient_cannot_use_doctor_endpoints(self, client, patient_headers):
        response = client.get("/api/v1/doctors/me/schedule", headers=patient_headers)
        assert response.status_code == 403

    def test_doctor_cannot_book(self, client, doctor_headers, doctor_id):
        response = client.post(
            "/api/v1/appointments",
            json={"doctor_id": doctor_id, "scheduled_date": "2030-01-07", "scheduled_time": "10:00"},
            headers=doctor_headers
        )
        assert response.status_code == 403

    def test_non_admin_cannot_open_dashboard(self, client, doctor_headers):
        assert client.get("/api/v1/admin/dashboard", headers=doctor_headers).status_code == 403

    def test_missing_token(self, client):
        assert client.get("/api/v1/appointments").status_code in (401, 403)
        assert client.get(
            "/api/v1/appointments", headers={"Authorization": "Bearer nope"}
        ).status_code == 401
