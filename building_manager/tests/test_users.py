"""
User management tests for the building manager.

Tests cover staff user creation, profile updates, role changes,
deactivation and organization isolation.
"""
from fastapi import status

from .conftest import API
from .test_base import BaseAPITest


class TestUserManagement(BaseAPITest):
    """Test cases for user CRUD operations."""

    def _create(self, client, headers, email="clerk@example.com", role="FINANCE_MANAGER"):
        return client.post(f"{API}/users/", headers=headers, json={
            "email": email,
            "password": "Finance123",
            "first_name": "Fin",
            "last_name": "Clerk",
            "role": role,
        })

    def test_create_user_success(self, client, auth_headers, registration):
        response = self._create(client, auth_headers)
        self.assert_success_response(response, status.HTTP_201_CREATED)
        data = response.json()
        assert data["role"] == "FINANCE_MANAGER"
        assert data["organization_id"] == registration["organization"]["id"]
        assert data["active"] is True

    def test_create_user_duplicate_email(self, client, auth_headers):
        self._create(client, auth_headers)
        self.assert_conflict(self._create(client, auth_headers, email="CLERK@example.com"))

    def test_create_user_non_admin(self, client, manager_headers):
        self.assert_forbidden(self._create(client, manager_headers))

    def test_list_users_counts(self, client, auth_headers, manager_headers):
        response = client.get(f"{API}/users/", headers=auth_headers)
        self.assert_success_response(response)
        data = response.json()
        assert data["total"] == 2
        assert data["active_count"] == 2
        assert data["admin_count"] == 1

    def test_search_and_filter_users(self, client, auth_headers, manager_headers):
        response = client.get(f"{API}/users/", headers=auth_headers, params={"role": "PROPERTY_MANAGER"})
        assert [u["email"] for u in response.json()["items"]] == ["manager@example.com"]

        response = client.get(f"{API}/users/", headers=auth_headers, params={"q": "admin"})
        assert response.json()["total"] == 1

    def test_update_own_profile(self, client, manager_headers):
        me = client.get(f"{API}/auth/me", headers=manager_headers).json()
        response = client.put(f"{API}/users/{me['id']}", headers=manager_headers, json={"first_name": "Patricia"})
        self.assert_success_response(response)
        assert response.json()["first_name"] == "Patricia"

    def test_update_other_user_profile_forbidden(self, client, manager_headers, registration):
        admin_id = registration["user"]["id"]
        response = client.put(f"{API}/users/{admin_id}", headers=manager_headers, json={"first_name": "X"})
        self.assert_forbidden(response)

    def test_admin_update_user_role(self, client, auth_headers):
        user_id = self._create(client, auth_headers).json()["id"]
        response = client.put(f"{API}/users/{user_id}/role", headers=auth_headers,
                              json={"role": "MAINTENANCE_SUPERVISOR"})
        self.assert_success_response(response)
        assert response.json()["role"] == "MAINTENANCE_SUPERVISOR"

    def test_admin_cannot_demote_self(self, client, auth_headers, registration):
        response = client.put(f"{API}/users/{registration['user']['id']}/role", headers=auth_headers,
                              json={"role": "PROPERTY_MANAGER"})
        self.assert_business_rule(response, "own admin role")

    def test_deactivated_user_loses_access(self, client, auth_headers, manager_headers):
        """Existing tokens stop working once the user is deactivated."""
        me = client.get(f"{API}/auth/me", headers=manager_headers).json()
        response = client.post(f"{API}/users/{me['id']}/deactivate", headers=auth_headers)
        self.assert_success_response(response)
        assert response.json()["active"] is False
        assert response.json()["deactivated_at"] is not None

        self.assert_unauthorized(client.get(f"{API}/auth/me", headers=manager_headers))
        login = client.post(f"{API}/auth/login", json={"email": "manager@example.com", "password": "Manager123"})
        self.assert_unauthorized(login)

    def test_cannot_deactivate_self(self, client, auth_headers, registration):
        response = client.post(f"{API}/users/{registration['user']['id']}/deactivate", headers=auth_headers)
        self.assert_business_rule(response)

    def test_user_list_organization_isolation(self, client, auth_headers, other_org_headers, registration):
        response = client.get(f"{API}/users/", headers=other_org_headers)
        emails = [u["email"] for u in response.json()["items"]]
        assert emails == ["owner@other.example.com"]

        self.assert_not_found(client.get(f"{API}/users/{registration['user']['id']}", headers=other_org_headers))
