"""
Property and unit tests for the building manager.
"""
from uuid import uuid4
from fastapi import status

from .conftest import API
from .test_base import BaseAPITest


class TestProperties(BaseAPITest):
    """Test cases for property CRUD operations."""

    def test_create_property(self, sample_property):
        assert sample_property["name"] == "Marina Heights"
        assert sample_property["active"] is True

    def test_create_property_duplicate_name(self, client, auth_headers, sample_property):
        response = client.post(f"{API}/properties/", headers=auth_headers, json={
            "name": "Marina Heights", "address": "Somewhere else"
        })
        self.assert_conflict(response)

    def test_same_name_allowed_in_other_organization(self, client, other_org_headers, sample_property):
        response = client.post(f"{API}/properties/", headers=other_org_headers, json={
            "name": "Marina Heights", "address": "1 Harbour Road"
        })
        self.assert_success_response(response, status.HTTP_201_CREATED)

    def test_create_property_validation(self, client, auth_headers):
        response = client.post(f"{API}/properties/", headers=auth_headers, json={"name": "", "address": "x"})
        self.assert_validation_error(response, "name")

    def test_list_and_search_properties(self, client, auth_headers, sample_property):
        client.post(f"{API}/properties/", headers=auth_headers, json={
            "name": "Palm Towers", "address": "7 Palm Street"
        })
        response = client.get(f"{API}/properties/", headers=auth_headers)
        self.assert_success_response(response)
        assert [p["name"] for p in response.json()["items"]] == ["Marina Heights", "Palm Towers"]

        response = client.get(f"{API}/properties/", headers=auth_headers, params={"q": "palm"})
        assert response.json()["total"] == 1

    def test_update_property(self, client, auth_headers, sample_property):
        response = client.put(f"{API}/properties/{sample_property['id']}", headers=auth_headers,
                              json={"active": False, "total_units": 42})
        self.assert_success_response(response)
        assert response.json()["active"] is False
        assert response.json()["total_units"] == 42

        listed = client.get(f"{API}/properties/", headers=auth_headers, params={"active": True})
        assert listed.json()["total"] == 0

    def test_property_not_visible_to_other_organization(self, client, other_org_headers, sample_property):
        self.assert_not_found(client.get(f"{API}/properties/{sample_property['id']}", headers=other_org_headers))
        assert client.get(f"{API}/properties/", headers=other_org_headers).json()["total"] == 0

    def test_get_missing_property(self, client, auth_headers):
        self.assert_not_found(client.get(f"{API}/properties/{uuid4()}", headers=auth_headers))


class TestUnits(BaseAPITest):
    """Test cases for units inside a property."""

    def test_create_unit(self, sample_unit, sample_property):
        assert sample_unit["property_id"] == sample_property["id"]
        assert sample_unit["status"] == "AVAILABLE"
        self.assert_money(sample_unit["monthly_rent"], "5000.00")

    def test_duplicate_unit_number(self, client, auth_headers, sample_property, sample_unit):
        response = client.post(f"{API}/properties/{sample_property['id']}/units", headers=auth_headers,
                               json={"unit_number": "101"})
        self.assert_conflict(response)

    def test_list_units_by_status(self, client, auth_headers, sample_property, sample_unit):
        client.post(f"{API}/properties/{sample_property['id']}/units", headers=auth_headers,
                    json={"unit_number": "102", "status": "UNDER_MAINTENANCE"})

        response = client.get(f"{API}/properties/{sample_property['id']}/units", headers=auth_headers)
        assert response.json()["total"] == 2

        response = client.get(f"{API}/properties/{sample_property['id']}/units", headers=auth_headers,
                              params={"status": "AVAILABLE"})
        assert [u["unit_number"] for u in response.json()["items"]] == ["101"]

    def test_update_unit_status(self, client, auth_headers, sample_unit):
        response = client.patch(f"{API}/properties/units/{sample_unit['id']}/status", headers=auth_headers,
                                json={"status": "RESERVED"})
        self.assert_success_response(response)
        assert response.json()["status"] == "RESERVED"

        fetched = client.get(f"{API}/properties/units/{sample_unit['id']}", headers=auth_headers)
        assert fetched.json()["status"] == "RESERVED"

    def test_unit_not_visible_to_other_organization(self, client, other_org_headers, sample_unit):
        self.assert_not_found(client.get(f"{API}/properties/units/{sample_unit['id']}", headers=other_org_headers))
