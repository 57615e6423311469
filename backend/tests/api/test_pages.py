"""Tests for the cookie-authenticated pages."""

from shared.config import get_settings


class TestDashboard:
    def test_redirects_without_session(self, client):
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303
        assert response.headers["location"] == "/auth/signin"

    def test_redirects_with_unknown_session(self, client):
        client.cookies.set(get_settings().session_cookie_name, "not-a-session")
        response = client.get("/dashboard", follow_redirects=False)
        assert response.status_code == 303

    def test_redirect_lands_on_signin_page(self, client):
        response = client.get("/dashboard")
        assert response.status_code == 200
        assert response.json()["page"] == "signin"

    def test_bearer_token_is_not_a_session(self, client, auth_headers):
        """The dashboard is cookie-authenticated only."""
        response = client.get("/dashboard", headers=auth_headers, follow_redirects=False)
        assert response.status_code == 303


class TestSigninPage:
    def test_signin_page(self, client):
        response = client.get("/auth/signin")
        assert response.status_code == 200
        data = response.json()
        assert data["signin_endpoint"] == "/api/auth/signin"
        assert data["signup_endpoint"] == "/api/auth/signup"
