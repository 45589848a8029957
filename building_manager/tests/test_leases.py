"""
Lease extension and renewal request tests for the building manager.
"""
from datetime import date, timedelta
from uuid import UUID
from dateutil.relativedelta import relativedelta
from fastapi import status

from building_manager.database.models import Tenant, TenantStatus
from .conftest import API
from .test_base import BaseAPITest


class TestLeaseExtension(BaseAPITest):
    """Test cases for extending leases."""

    def _new_end(self, tenant, months=12):
        return (date.fromisoformat(tenant["lease_end_date"]) + relativedelta(months=months)).isoformat()

    def test_current_lease(self, client, auth_headers, sample_tenant):
        response = client.get(f"{API}/leases/{sample_tenant['id']}/current", headers=auth_headers)
        self.assert_success_response(response)
        data = response.json()
        assert data["urgency"] == "normal"
        assert data["days_remaining"] == (date.fromisoformat(sample_tenant["lease_end_date"]) - date.today()).days
        assert data["suggested_new_end_date"] == self._new_end(sample_tenant)

    def test_extend_with_percentage_increase(self, client, auth_headers, sample_tenant):
        """Base rent absorbs the increase so the breakdown still adds up."""
        new_end = self._new_end(sample_tenant)
        response = client.post(f"{API}/leases/{sample_tenant['id']}/extend", headers=auth_headers, json={
            "new_end_date": new_end,
            "rent_adjustment_type": "PERCENTAGE",
            "percentage_increase": "5",
            "renewal_type": "FIXED_TERM",
        })
        self.assert_success_response(response, status.HTTP_201_CREATED)
        extension = response.json()
        assert extension["extension_number"] == f"EXT-{date.today().year}-0001"
        self.assert_money(extension["previous_rent"], "5600.00")
        self.assert_money(extension["new_rent"], "5880.00")
        self.assert_money(extension["rent_adjustment_percentage"], "5.00")
        assert extension["effective_date"] == (
            date.fromisoformat(sample_tenant["lease_end_date"]) + timedelta(days=1)
        ).isoformat()

        tenant = client.get(f"{API}/tenants/{sample_tenant['id']}", headers=auth_headers).json()
        assert tenant["lease_end_date"] == new_end
        assert tenant["lease_duration"] == 24
        self.assert_money(tenant["total_monthly_rent"], "5880.00")
        self.assert_money(tenant["base_rent"], "5280.00")

    def test_extend_with_custom_rent(self, client, auth_headers, sample_tenant):
        response = client.post(f"{API}/leases/{sample_tenant['id']}/extend", headers=auth_headers, json={
            "new_end_date": self._new_end(sample_tenant),
            "rent_adjustment_type": "CUSTOM",
            "custom_rent": "5000",
        })
        self.assert_success_response(response, status.HTTP_201_CREATED)
        self.assert_money(response.json()["new_rent"], "5000.00")
        self.assert_money(response.json()["rent_adjustment_percentage"], "-10.71")

    def test_adjustment_value_required(self, client, auth_headers, sample_tenant):
        response = client.post(f"{API}/leases/{sample_tenant['id']}/extend", headers=auth_headers, json={
            "new_end_date": self._new_end(sample_tenant),
            "rent_adjustment_type": "FLAT",
        })
        self.assert_validation_error(response)

    def test_new_end_date_must_follow_current(self, client, auth_headers, sample_tenant):
        response = client.post(f"{API}/leases/{sample_tenant['id']}/extend", headers=auth_headers, json={
            "new_end_date": (date.today() + timedelta(days=30)).isoformat(),
        })
        self.assert_business_rule(response, "after the current lease end date")

    def test_expired_tenant_cannot_extend(self, client, auth_headers, sample_tenant, db_session):
        tenant = db_session.get(Tenant, UUID(sample_tenant["id"]))
        tenant.status = TenantStatus.EXPIRED
        db_session.commit()

        response = client.post(f"{API}/leases/{sample_tenant['id']}/extend", headers=auth_headers, json={
            "new_end_date": self._new_end(sample_tenant),
        })
        self.assert_business_rule(response, "active tenants")

    def test_extension_history(self, client, auth_headers, sample_tenant):
        client.post(f"{API}/leases/{sample_tenant['id']}/extend", headers=auth_headers,
                    json={"new_end_date": self._new_end(sample_tenant, 6)})
        client.post(f"{API}/leases/{sample_tenant['id']}/extend", headers=auth_headers,
                    json={"new_end_date": self._new_end(sample_tenant, 12)})

        response = client.get(f"{API}/leases/{sample_tenant['id']}/extensions", headers=auth_headers)
        self.assert_success_response(response)
        assert len(response.json()) == 2

    def test_expiring_leases(self, client, auth_headers, tenant_payload, sample_property):
        unit = client.post(f"{API}/properties/{sample_property['id']}/units", headers=auth_headers,
                           json={"unit_number": "202"}).json()
        short = {**tenant_payload, "email": "short@example.com", "unit_id": unit["id"],
                 "lease_end_date": (date.today() + timedelta(days=20)).isoformat()}
        client.post(f"{API}/tenants/", headers=auth_headers, json=tenant_payload)
        client.post(f"{API}/tenants/", headers=auth_headers, json=short)

        response = client.get(f"{API}/leases/expiring", headers=auth_headers, params={"days": 60})
        self.assert_success_response(response)
        items = response.json()["items"]
        assert len(items) == 1
        assert items[0]["days_remaining"] == 20
        assert items[0]["urgency"] == "urgent"


class TestRenewalRequests(BaseAPITest):
    """Test cases for renewal requests."""

    def _request(self, client, headers, tenant_id):
        return client.post(f"{API}/leases/{tenant_id}/renewal-requests", headers=headers,
                           json={"preferred_term": "12_MONTHS", "comments": "Happy to stay"})

    def test_only_one_pending_request(self, client, auth_headers, sample_tenant):
        self.assert_success_response(self._request(client, auth_headers, sample_tenant["id"]),
                                     status.HTTP_201_CREATED)
        self.assert_conflict(self._request(client, auth_headers, sample_tenant["id"]))

    def test_approve_request(self, client, auth_headers, sample_tenant):
        renewal = self._request(client, auth_headers, sample_tenant["id"]).json()
        response = client.post(f"{API}/leases/renewal-requests/{renewal['id']}/approve", headers=auth_headers)
        self.assert_success_response(response)
        assert response.json()["status"] == "APPROVED"
        assert response.json()["processed_at"] is not None

        again = client.post(f"{API}/leases/renewal-requests/{renewal['id']}/approve", headers=auth_headers)
        self.assert_business_rule(again, "already been processed")

    def test_reject_requires_reason(self, client, auth_headers, sample_tenant):
        renewal = self._request(client, auth_headers, sample_tenant["id"]).json()
        url = f"{API}/leases/renewal-requests/{renewal['id']}/reject"

        self.assert_validation_error(client.post(url, headers=auth_headers, json={"reason": "No"}), "reason")

        response = client.post(url, headers=auth_headers, json={"reason": "Unit is being renovated next year"})
        self.assert_success_response(response)
        assert response.json()["status"] == "REJECTED"
        assert response.json()["rejection_reason"] == "Unit is being renovated next year"

        pending = client.get(f"{API}/leases/renewal-requests", headers=auth_headers, params={"status": "PENDING"})
        assert pending.json() == []
