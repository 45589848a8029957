"""
Tenant onboarding tests for the building manager.

Tests cover the merged onboarding payload, rent breakdown calculation,
unit occupancy and organization isolation.
"""
from datetime import date, timedelta
from uuid import uuid4
from fastapi import status

from .conftest import API
from .test_base import BaseAPITest


class TestTenantOnboarding(BaseAPITest):
    """Test cases for creating tenants."""

    def test_onboard_tenant(self, client, auth_headers, sample_tenant, sample_unit):
        """The unit becomes occupied and the rent breakdown is derived."""
        assert sample_tenant["tenant_number"] == f"TNT-{date.today().year}-0001"
        assert sample_tenant["full_name"] == "Layla Hassan"
        assert sample_tenant["status"] == "ACTIVE"
        assert sample_tenant["lease_duration"] == 12
        self.assert_money(sample_tenant["parking_fee"], "300.00")
        self.assert_money(sample_tenant["total_monthly_rent"], "5600.00")

        unit = client.get(f"{API}/properties/units/{sample_unit['id']}", headers=auth_headers).json()
        assert unit["status"] == "OCCUPIED"

    def test_email_is_stored_lowercase_and_unique(self, client, auth_headers, sample_tenant,
                                                  tenant_payload, sample_property):
        assert sample_tenant["email"] == "layla.hassan@example.com"
        unit = client.post(f"{API}/properties/{sample_property['id']}/units", headers=auth_headers,
                           json={"unit_number": "102"}).json()
        payload = {**tenant_payload, "unit_id": unit["id"], "email": "Layla.Hassan@Example.com"}
        self.assert_conflict(client.post(f"{API}/tenants/", headers=auth_headers, json=payload))

    def test_occupied_unit_rejected(self, client, auth_headers, sample_tenant, tenant_payload):
        payload = {**tenant_payload, "email": "second@example.com"}
        response = client.post(f"{API}/tenants/", headers=auth_headers, json=payload)
        self.assert_business_rule(response, "not available")

    def test_unit_from_other_property_rejected(self, client, auth_headers, tenant_payload):
        other = client.post(f"{API}/properties/", headers=auth_headers,
                            json={"name": "Other Block", "address": "2 Side St"}).json()
        payload = {**tenant_payload, "property_id": other["id"]}
        response = client.post(f"{API}/tenants/", headers=auth_headers, json=payload)
        self.assert_business_rule(response, "does not belong")

    def test_unknown_unit(self, client, auth_headers, tenant_payload):
        payload = {**tenant_payload, "unit_id": str(uuid4())}
        self.assert_not_found(client.post(f"{API}/tenants/", headers=auth_headers, json=payload))

    def test_underage_tenant_rejected(self, client, auth_headers, tenant_payload):
        payload = {**tenant_payload, "date_of_birth": (date.today() - timedelta(days=17 * 365)).isoformat()}
        response = client.post(f"{API}/tenants/", headers=auth_headers, json=payload)
        self.assert_validation_error(response, "date_of_birth")

    def test_lease_end_before_start_rejected(self, client, auth_headers, tenant_payload):
        payload = {**tenant_payload, "lease_end_date": tenant_payload["lease_start_date"]}
        self.assert_validation_error(client.post(f"{API}/tenants/", headers=auth_headers, json=payload))

    def test_pdc_requires_cheque_count(self, client, auth_headers, tenant_payload):
        payload = {**tenant_payload, "payment_method": "PDC"}
        self.assert_validation_error(client.post(f"{API}/tenants/", headers=auth_headers, json=payload))

        payload["pdc_cheque_count"] = 12
        response = client.post(f"{API}/tenants/", headers=auth_headers, json=payload)
        self.assert_success_response(response, status.HTTP_201_CREATED)
        assert response.json()["pdc_cheque_count"] == 12


class TestTenantQueries(BaseAPITest):
    """Test cases for reading and updating tenants."""

    def test_email_availability(self, client, auth_headers, sample_tenant):
        url = f"{API}/tenants/email-availability"
        taken = client.get(url, headers=auth_headers, params={"email": "LAYLA.HASSAN@example.com"})
        assert taken.json()["available"] is False

        own = client.get(url, headers=auth_headers,
                         params={"email": "layla.hassan@example.com", "exclude_id": sample_tenant["id"]})
        assert own.json()["available"] is True

        free = client.get(url, headers=auth_headers, params={"email": "new@example.com"})
        assert free.json()["available"] is True

    def test_list_and_search(self, client, auth_headers, sample_tenant, sample_property):
        response = client.get(f"{API}/tenants/", headers=auth_headers, params={"q": "hassan"})
        self.assert_success_response(response)
        assert response.json()["total"] == 1

        response = client.get(f"{API}/tenants/", headers=auth_headers, params={"status": "EXPIRED"})
        assert response.json()["total"] == 0

        response = client.get(f"{API}/tenants/by-property/{sample_property['id']}", headers=auth_headers)
        assert [t["id"] for t in response.json()["items"]] == [sample_tenant["id"]]

    def test_update_contact_details(self, client, auth_headers, sample_tenant):
        response = client.put(f"{API}/tenants/{sample_tenant['id']}", headers=auth_headers,
                              json={"phone": "+971500000002", "email": "Layla.New@example.com"})
        self.assert_success_response(response)
        assert response.json()["phone"] == "+971500000002"
        assert response.json()["email"] == "layla.new@example.com"

    def test_tenant_isolation(self, client, other_org_headers, sample_tenant):
        self.assert_not_found(client.get(f"{API}/tenants/{sample_tenant['id']}", headers=other_org_headers))
        assert client.get(f"{API}/tenants/", headers=other_org_headers).json()["total"] == 0
