"""
Invoice and payment tests for the building manager.

Tests cover invoice totals, the draft/sent/paid lifecycle, partial
payments, tenant balances, the overdue job and the summary figures.
"""
from datetime import date, timedelta
from uuid import UUID
from fastapi import status

from building_manager.database.models import Tenant, TenantStatus
from building_manager.services.invoice_service import InvoiceService
from .conftest import API
from .test_base import BaseAPITest


class TestInvoices(BaseAPITest):
    """Test cases for invoice operations."""

    def _create(self, client, headers, tenant_id, **overrides):
        payload = {
            "tenant_id": tenant_id,
            "due_date": (date.today() + timedelta(days=10)).isoformat(),
            "additional_charges": [{"description": "Deep cleaning", "amount": "100.00"}],
            **overrides,
        }
        return client.post(f"{API}/invoices/", headers=headers, json=payload)

    def test_create_invoice_uses_tenant_rent(self, client, auth_headers, sample_tenant):
        response = self._create(client, auth_headers, sample_tenant["id"])
        self.assert_success_response(response, status.HTTP_201_CREATED)
        invoice = response.json()
        assert invoice["invoice_number"] == f"INV-{date.today().year}-0001"
        assert invoice["status"] == "DRAFT"
        self.assert_money(invoice["base_rent"], "5000.00")
        self.assert_money(invoice["parking_fees"], "300.00")
        self.assert_money(invoice["total_amount"], "5700.00")
        self.assert_money(invoice["balance_amount"], "5700.00")
        assert invoice["unit_id"] == sample_tenant["unit_id"]

    def test_numbers_increase(self, client, auth_headers, sample_tenant):
        self._create(client, auth_headers, sample_tenant["id"])
        second = self._create(client, auth_headers, sample_tenant["id"]).json()
        assert second["invoice_number"] == f"INV-{date.today().year}-0002"

    def test_due_date_before_invoice_date(self, client, auth_headers, sample_tenant):
        response = self._create(client, auth_headers, sample_tenant["id"],
                                due_date=(date.today() - timedelta(days=1)).isoformat())
        self.assert_validation_error(response)

    def test_update_only_drafts(self, client, auth_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        response = client.put(f"{API}/invoices/{invoice['id']}", headers=auth_headers,
                              json={"additional_charges": [], "notes": "Waived cleaning"})
        self.assert_success_response(response)
        self.assert_money(response.json()["total_amount"], "5600.00")

        client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)
        response = client.put(f"{API}/invoices/{invoice['id']}", headers=auth_headers, json={"notes": "Late edit"})
        self.assert_business_rule(response, "draft")

    def test_draft_invoice_cannot_be_paid(self, client, auth_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        response = client.post(f"{API}/invoices/{invoice['id']}/payments", headers=auth_headers,
                               json={"amount": "100.00", "payment_method": "CASH"})
        self.assert_business_rule(response, "DRAFT")

    def test_partial_then_full_payment(self, client, auth_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)
        url = f"{API}/invoices/{invoice['id']}/payments"

        payment = client.post(url, headers=auth_headers, json={"amount": "2000.00", "payment_method": "CARD"})
        self.assert_success_response(payment, status.HTTP_201_CREATED)
        assert payment.json()["payment_number"] == f"PMT-{date.today().year}-0001"

        current = client.get(f"{API}/invoices/{invoice['id']}", headers=auth_headers).json()
        assert current["status"] == "PARTIALLY_PAID"
        self.assert_money(current["balance_amount"], "3700.00")

        overpay = client.post(url, headers=auth_headers, json={"amount": "3700.01", "payment_method": "CARD"})
        self.assert_business_rule(overpay, "exceeds outstanding balance")

        client.post(url, headers=auth_headers, json={"amount": "3700.00", "payment_method": "BANK_TRANSFER"})
        current = client.get(f"{API}/invoices/{invoice['id']}", headers=auth_headers).json()
        assert current["status"] == "PAID"
        assert current["paid_at"] is not None
        assert len(client.get(url, headers=auth_headers).json()) == 2

    def test_future_payment_date_rejected(self, client, auth_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        response = client.post(f"{API}/invoices/{invoice['id']}/payments", headers=auth_headers, json={
            "amount": "10.00", "payment_method": "CASH",
            "payment_date": (date.today() + timedelta(days=1)).isoformat(),
        })
        self.assert_validation_error(response, "payment_date")

    def test_cancel_rules(self, client, auth_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)
        client.post(f"{API}/invoices/{invoice['id']}/payments", headers=auth_headers,
                    json={"amount": "10.00", "payment_method": "CASH"})
        self.assert_business_rule(client.post(f"{API}/invoices/{invoice['id']}/cancel", headers=auth_headers))

        draft = self._create(client, auth_headers, sample_tenant["id"]).json()
        response = client.post(f"{API}/invoices/{draft['id']}/cancel", headers=auth_headers)
        self.assert_success_response(response)
        assert response.json()["status"] == "CANCELLED"

    def test_tenant_balance_and_summary(self, client, auth_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        self._create(client, auth_headers, sample_tenant["id"])
        client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)
        client.post(f"{API}/invoices/{invoice['id']}/payments", headers=auth_headers,
                    json={"amount": "700.00", "payment_method": "CASH"})

        balance = client.get(f"{API}/invoices/tenant-balance/{sample_tenant['id']}", headers=auth_headers).json()
        self.assert_money(balance["total_invoiced"], "5700.00")
        self.assert_money(balance["total_paid"], "700.00")
        self.assert_money(balance["outstanding_balance"], "5000.00")
        assert balance["open_invoices"] == 1

        summary = client.get(f"{API}/invoices/summary", headers=auth_headers).json()
        assert summary["counts_by_status"]["DRAFT"] == 1
        assert summary["counts_by_status"]["PARTIALLY_PAID"] == 1
        self.assert_money(summary["total_outstanding"], "5000.00")
        self.assert_money(summary["collected_this_month"], "700.00")

    def test_overdue_job_applies_late_fee(self, client, auth_headers, sample_tenant):
        """Daily jobs mark past-due invoices overdue and charge a 5% late fee once."""
        past = date.today() - timedelta(days=40)
        invoice = self._create(client, auth_headers, sample_tenant["id"], additional_charges=[],
                               invoice_date=past.isoformat(),
                               due_date=(past + timedelta(days=10)).isoformat()).json()
        client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)

        results = client.post(f"{API}/jobs/daily", headers=auth_headers).json()["results"]
        assert results["overdue_invoices"] == 1
        assert results["late_fees"] == 1

        current = client.get(f"{API}/invoices/{invoice['id']}", headers=auth_headers).json()
        assert current["status"] == "OVERDUE"
        assert current["late_fee_applied"] is True
        self.assert_money(current["late_fee"], "280.00")
        self.assert_money(current["total_amount"], "5880.00")

        listed = client.get(f"{API}/invoices/", headers=auth_headers, params={"overdue_only": True})
        assert [i["id"] for i in listed.json()["items"]] == [invoice["id"]]

        results = client.post(f"{API}/jobs/daily", headers=auth_headers).json()["results"]
        assert results["late_fees"] == 0

    def test_invoice_isolation(self, client, auth_headers, other_org_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        self.assert_not_found(client.get(f"{API}/invoices/{invoice['id']}", headers=other_org_headers))
        self.assert_not_found(self._create(client, other_org_headers, sample_tenant["id"]))

    def test_only_active_tenants_are_invoiced(self, client, auth_headers, registration, sample_tenant, db_session):
        tenant = db_session.get(Tenant, UUID(sample_tenant["id"]))
        tenant.status = TenantStatus.EXPIRING_SOON
        db_session.commit()

        self.assert_business_rule(self._create(client, auth_headers, sample_tenant["id"]), "inactive tenant")

        organization_id = UUID(registration["organization"]["id"])
        due_day = date.today().replace(day=5)
        assert InvoiceService.generate_scheduled_invoices(db_session, organization_id, due_day) == 0

    def test_sub_cent_payment_rejected(self, client, auth_headers, sample_tenant):
        invoice = self._create(client, auth_headers, sample_tenant["id"]).json()
        client.post(f"{API}/invoices/{invoice['id']}/send", headers=auth_headers)

        response = client.post(f"{API}/invoices/{invoice['id']}/payments", headers=auth_headers,
                               json={"amount": "0.004", "payment_method": "CASH"})
        self.assert_business_rule(response, "0.01")

        current = client.get(f"{API}/invoices/{invoice['id']}", headers=auth_headers).json()
        assert current["status"] == "SENT"
        self.assert_money(current["paid_amount"], "0.00")
        assert client.get(f"{API}/invoices/{invoice['id']}/payments", headers=auth_headers).json() == []
