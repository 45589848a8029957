"""
Authentication and authorization tests for the building manager.

Tests cover organization registration, login, JWT token handling, password
reset, and the organization access checks.
"""
from datetime import timedelta
from uuid import uuid4
from fastapi import status

from building_manager.auth.jwt_handler import JWTHandler
from building_manager.database.models import PasswordResetToken
from .conftest import API, bearer, register
from .test_base import BaseAPITest


class TestRegistration(BaseAPITest):
    """Test cases for organization registration."""

    def test_registration_creates_admin_and_organization(self, client):
        """Test successful registration."""
        data = register(client, "founder@example.com", "Founder Realty")

        assert data["user"]["email"] == "founder@example.com"
        assert data["user"]["role"] == "ADMIN"
        assert data["organization"]["name"] == "Founder Realty"
        assert data["user"]["organization_id"] == data["organization"]["id"]
        assert data["access_token"]

    def test_registration_duplicate_email(self, client, registration):
        """Test registration with an email that is already taken."""
        response = client.post(f"{API}/auth/register", json={
            "email": "ADMIN@example.com",
            "password": "AnotherPass1",
            "first_name": "Second",
            "last_name": "Admin",
            "organization_name": "Different Org",
        })
        self.assert_conflict(response)

    def test_registration_duplicate_organization(self, client, registration):
        response = client.post(f"{API}/auth/register", json={
            "email": "someone@example.com",
            "password": "AnotherPass1",
            "first_name": "Some",
            "last_name": "One",
            "organization_name": "Acme Properties",
        })
        self.assert_error_response(response, status.HTTP_409_CONFLICT, "Organization")

    def test_registration_invalid_email(self, client):
        response = client.post(f"{API}/auth/register", json={
            "email": "invalid-email",
            "password": "secure_password123",
            "first_name": "Test",
            "last_name": "User",
            "organization_name": "Test Org",
        })
        self.assert_validation_error(response, "email")

    def test_registration_weak_password(self, client):
        """Passwords need at least eight characters with letters and digits."""
        for password in ("abc1", "lettersonly"):
            response = client.post(f"{API}/auth/register", json={
                "email": "weak@example.com",
                "password": password,
                "first_name": "Test",
                "last_name": "User",
                "organization_name": "Weak Org",
            })
            self.assert_validation_error(response, "password")


class TestLogin(BaseAPITest):
    """Test cases for login and tokens."""

    def test_login_success(self, client, registration):
        response = client.post(f"{API}/auth/login", json={
            "email": "admin@example.com", "password": "AdminPass123"
        })
        self.assert_success_response(response)
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["email"] == "admin@example.com"
        assert data["organizations"][0]["name"] == "Acme Properties"

    def test_login_invalid_credentials(self, client, registration):
        response = client.post(f"{API}/auth/login", json={
            "email": "admin@example.com", "password": "WrongPass123"
        })
        self.assert_unauthorized(response)

    def test_login_nonexistent_user(self, client):
        response = client.post(f"{API}/auth/login", json={
            "email": "nobody@example.com", "password": "Whatever123"
        })
        self.assert_unauthorized(response)

    def test_get_current_user(self, client, auth_headers):
        response = client.get(f"{API}/auth/me", headers=auth_headers)
        self.assert_success_response(response)
        assert response.json()["email"] == "admin@example.com"

    def test_token_refresh(self, client, auth_headers):
        response = client.post(f"{API}/auth/refresh", headers=auth_headers)
        self.assert_success_response(response)
        new_headers = bearer(response.json()["access_token"])
        assert client.get(f"{API}/auth/me", headers=new_headers).status_code == status.HTTP_200_OK

    def test_access_without_token(self, client):
        self.assert_unauthenticated(client.get(f"{API}/properties/"))

    def test_access_with_invalid_token(self, client):
        response = client.get(f"{API}/properties/", headers=bearer("not-a-jwt"))
        self.assert_unauthorized(response)

    def test_access_with_expired_token(self, client, registration):
        user = registration["user"]
        token = JWTHandler.create_access_token(
            {"sub": user["id"], "organization_id": user["organization_id"], "email": user["email"], "role": "ADMIN"},
            expires_delta=timedelta(minutes=-5)
        )
        self.assert_unauthorized(client.get(f"{API}/auth/me", headers=bearer(token)))

    def test_change_password(self, client, auth_headers):
        response = client.post(f"{API}/auth/change-password", headers=auth_headers, json={
            "current_password": "AdminPass123", "new_password": "BrandNew456"
        })
        self.assert_success_response(response)
        login = client.post(f"{API}/auth/login", json={"email": "admin@example.com", "password": "BrandNew456"})
        assert login.status_code == status.HTTP_200_OK

    def test_change_password_wrong_current(self, client, auth_headers):
        response = client.post(f"{API}/auth/change-password", headers=auth_headers, json={
            "current_password": "Wrong1234", "new_password": "BrandNew456"
        })
        self.assert_business_rule(response, "incorrect")


class TestPasswordReset(BaseAPITest):
    """Test cases for the password reset flow."""

    def test_reset_request_unknown_email_still_succeeds(self, client):
        response = client.post(f"{API}/auth/password-reset-request", json={"email": "ghost@example.com"})
        self.assert_success_response(response)

    def test_reset_token_is_single_use(self, client, registration, db_session):
        """Test the full reset flow and that a token cannot be replayed."""
        client.post(f"{API}/auth/password-reset-request", json={"email": "admin@example.com"})
        token = db_session.query(PasswordResetToken).one().token

        response = client.post(f"{API}/auth/password-reset-confirm", json={
            "token": token, "new_password": "ResetPass789"
        })
        self.assert_success_response(response)
        login = client.post(f"{API}/auth/login", json={"email": "admin@example.com", "password": "ResetPass789"})
        assert login.status_code == status.HTTP_200_OK

        replay = client.post(f"{API}/auth/password-reset-confirm", json={
            "token": token, "new_password": "Another999"
        })
        self.assert_business_rule(replay, "Invalid or expired")

    def test_reset_invalid_token(self, client):
        response = client.post(f"{API}/auth/password-reset-confirm", json={
            "token": "made-up-token", "new_password": "ResetPass789"
        })
        self.assert_business_rule(response)


class TestOrganizationAccess(BaseAPITest):
    """Test cases for organization scoping of requests."""

    def test_matching_organization_header(self, client, registration, auth_headers):
        headers = {**auth_headers, "X-Organization-ID": registration["organization"]["id"]}
        self.assert_success_response(client.get(f"{API}/properties/", headers=headers))

    def test_foreign_organization_header_forbidden(self, client, auth_headers):
        headers = {**auth_headers, "X-Organization-ID": str(uuid4())}
        self.assert_forbidden(client.get(f"{API}/properties/", headers=headers))

    def test_malformed_organization_header(self, client, auth_headers):
        headers = {**auth_headers, "X-Organization-ID": "not-a-uuid"}
        response = client.get(f"{API}/properties/", headers=headers)
        assert response.status_code in (status.HTTP_400_BAD_REQUEST, status.HTTP_403_FORBIDDEN)

    def test_admin_only_endpoint_with_manager_role(self, client, manager_headers):
        self.assert_forbidden(client.post(f"{API}/jobs/daily", headers=manager_headers))
