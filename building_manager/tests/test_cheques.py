"""
Post-dated cheque tests for the building manager.

Tests cover registration and duplicate numbers, the due job, deposit,
clearance with invoice payment, bounce and replacement, withdrawal,
cancellation and the dashboard.
"""
from datetime import date, timedelta
from uuid import UUID
from fastapi import status

from building_manager.services.cheque_service import ChequeService
from .conftest import API
from .test_base import BaseAPITest


class TestCheques(BaseAPITest):
    """Test cases for post-dated cheque operations."""

    def _register(self, client, headers, tenant_id, **overrides):
        payload = {
            "tenant_id": tenant_id,
            "cheque_number": "000123",
            "bank_name": "Emirates NBD",
            "amount": "5700.00",
            "cheque_date": (date.today() + timedelta(days=3)).isoformat(),
            **overrides,
        }
        return client.post(f"{API}/cheques/", headers=headers, json=payload)

    def _due(self, client, headers, tenant_id, **overrides):
        cheque = self._register(client, headers, tenant_id, **overrides).json()
        results = client.post(f"{API}/jobs/daily", headers=headers).json()["results"]
        assert results["pdc_due"] >= 1
        return cheque

    def _invoice(self, client, headers, tenant_id):
        invoice = client.post(f"{API}/invoices/", headers=headers, json={
            "tenant_id": tenant_id,
            "due_date": (date.today() + timedelta(days=10)).isoformat(),
        }).json()
        client.post(f"{API}/invoices/{invoice['id']}/send", headers=headers)
        return invoice

    def test_register_cheque(self, client, auth_headers, sample_tenant):
        response = self._register(client, auth_headers, sample_tenant["id"])
        self.assert_success_response(response, status.HTTP_201_CREATED)
        cheque = response.json()
        assert cheque["status"] == "RECEIVED"
        assert cheque["tenant_id"] == sample_tenant["id"]
        self.assert_money(cheque["amount"], "5700.00")

    def test_duplicate_number_per_tenant(self, client, auth_headers, sample_tenant):
        self._register(client, auth_headers, sample_tenant["id"])
        self.assert_conflict(self._register(client, auth_headers, sample_tenant["id"]))

    def test_zero_amount_rejected(self, client, auth_headers, sample_tenant):
        response = self._register(client, auth_headers, sample_tenant["id"], amount="0")
        self.assert_validation_error(response, "amount")

    def test_unknown_tenant(self, client, auth_headers):
        response = self._register(client, auth_headers, "00000000-0000-0000-0000-000000000000")
        self.assert_not_found(response)

    def test_bulk_registration(self, client, auth_headers, sample_tenant):
        entries = [{
            "cheque_number": f"1000{i}",
            "bank_name": "ADCB",
            "amount": "5700.00",
            "cheque_date": (date.today() + timedelta(days=30 * i)).isoformat(),
        } for i in range(1, 5)]
        response = client.post(f"{API}/cheques/bulk", headers=auth_headers,
                               json={"tenant_id": sample_tenant["id"], "cheques": entries})
        self.assert_success_response(response, status.HTTP_201_CREATED)
        assert len(response.json()) == 4

        repeated = client.post(f"{API}/cheques/bulk", headers=auth_headers,
                               json={"tenant_id": sample_tenant["id"], "cheques": entries[:1]})
        self.assert_conflict(repeated)

    def test_bulk_rejects_repeated_numbers(self, client, auth_headers, sample_tenant):
        entry = {"cheque_number": "20001", "bank_name": "ADCB", "amount": "100.00",
                 "cheque_date": date.today().isoformat()}
        response = client.post(f"{API}/cheques/bulk", headers=auth_headers,
                               json={"tenant_id": sample_tenant["id"], "cheques": [entry, entry]})
        self.assert_business_rule(response, "Duplicate cheque numbers")
        listing = client.get(f"{API}/cheques/", headers=auth_headers).json()
        assert listing["total"] == 0

    def test_job_marks_cheques_due_within_a_week(self, client, auth_headers, sample_tenant):
        soon = self._register(client, auth_headers, sample_tenant["id"]).json()
        later = self._register(client, auth_headers, sample_tenant["id"], cheque_number="000124",
                               cheque_date=(date.today() + timedelta(days=40)).isoformat()).json()

        results = client.post(f"{API}/jobs/daily", headers=auth_headers).json()["results"]
        assert results["pdc_due"] == 1
        assert client.get(f"{API}/cheques/{soon['id']}", headers=auth_headers).json()["status"] == "DUE"
        assert client.get(f"{API}/cheques/{later['id']}", headers=auth_headers).json()["status"] == "RECEIVED"

    def test_mark_due_includes_past_dated(self, registration, db_session, client, auth_headers, sample_tenant):
        self._register(client, auth_headers, sample_tenant["id"],
                       cheque_date=(date.today() - timedelta(days=2)).isoformat())
        organization_id = UUID(registration["organization"]["id"])
        assert ChequeService.mark_due(db_session, organization_id) == 1

    def test_received_cheque_cannot_be_deposited(self, client, auth_headers, sample_tenant):
        cheque = self._register(client, auth_headers, sample_tenant["id"]).json()
        response = client.post(f"{API}/cheques/{cheque['id']}/deposit", headers=auth_headers, json={})
        self.assert_business_rule(response, "RECEIVED")

    def test_clear_pays_linked_invoice(self, client, auth_headers, sample_tenant):
        invoice = self._invoice(client, auth_headers, sample_tenant["id"])
        cheque = self._due(client, auth_headers, sample_tenant["id"], invoice_id=invoice["id"], amount="5600.00")
        base = f"{API}/cheques/{cheque['id']}"

        deposited = client.post(f"{base}/deposit", headers=auth_headers, json={})
        self.assert_success_response(deposited)
        assert deposited.json()["status"] == "DEPOSITED"
        assert deposited.json()["deposit_date"] == date.today().isoformat()

        cleared = client.post(f"{base}/clear", headers=auth_headers, json={})
        self.assert_success_response(cleared)
        assert cleared.json()["status"] == "CLEARED"
        assert cleared.json()["payment_id"] is not None

        current = client.get(f"{API}/invoices/{invoice['id']}", headers=auth_headers).json()
        assert current["status"] == "PAID"
        payments = client.get(f"{API}/invoices/{invoice['id']}/payments", headers=auth_headers).json()
        assert payments[0]["payment_method"] == "PDC"
        assert payments[0]["transaction_reference"] == "PDC-000123"

    def test_clear_without_payable_invoice_still_clears(self, client, auth_headers, sample_tenant):
        invoice = self._invoice(client, auth_headers, sample_tenant["id"])
        cheque = self._due(client, auth_headers, sample_tenant["id"], invoice_id=invoice["id"],
                           amount="9999.00")
        client.post(f"{API}/cheques/{cheque['id']}/deposit", headers=auth_headers, json={})

        cleared = client.post(f"{API}/cheques/{cheque['id']}/clear", headers=auth_headers, json={})
        self.assert_success_response(cleared)
        assert cleared.json()["status"] == "CLEARED"
        assert cleared.json()["payment_id"] is None
        assert client.get(f"{API}/invoices/{invoice['id']}", headers=auth_headers).json()["status"] == "SENT"

    def test_bounce_and_replace(self, client, auth_headers, sample_tenant):
        cheque = self._due(client, auth_headers, sample_tenant["id"])
        base = f"{API}/cheques/{cheque['id']}"
        self.assert_business_rule(
            client.post(f"{base}/bounce", headers=auth_headers, json={"bounce_reason": "Insufficient funds"}),
            "DUE"
        )
        client.post(f"{base}/deposit", headers=auth_headers, json={})

        bounced = client.post(f"{base}/bounce", headers=auth_headers, json={"bounce_reason": "Insufficient funds"})
        self.assert_success_response(bounced)
        assert bounced.json()["status"] == "BOUNCED"
        assert bounced.json()["bounce_reason"] == "Insufficient funds"

        replacement = client.post(f"{base}/replace", headers=auth_headers, json={
            "new_cheque_number": "000999",
            "bank_name": "Mashreq",
            "amount": "5700.00",
            "cheque_date": (date.today() + timedelta(days=14)).isoformat(),
        })
        self.assert_success_response(replacement, status.HTTP_201_CREATED)
        assert replacement.json()["status"] == "RECEIVED"
        assert replacement.json()["original_cheque_id"] == cheque["id"]

        original = client.get(base, headers=auth_headers).json()
        assert original["status"] == "REPLACED"
        assert original["replacement_cheque_id"] == replacement.json()["id"]

        dashboard = client.get(f"{API}/cheques/dashboard", headers=auth_headers).json()
        assert dashboard["bounced_last_30_days"] == 1
        assert dashboard["bounce_rate"] == 100.0

    def test_withdraw_before_deposit(self, client, auth_headers, sample_tenant):
        cheque = self._due(client, auth_headers, sample_tenant["id"])
        response = client.post(f"{API}/cheques/{cheque['id']}/withdraw", headers=auth_headers, json={
            "withdrawal_reason": "Tenant paid by transfer",
            "new_payment_method": "BANK_TRANSFER",
            "transaction_id": "TRX-77",
        })
        self.assert_success_response(response)
        assert response.json()["status"] == "WITHDRAWN"
        assert response.json()["new_payment_method"] == "BANK_TRANSFER"

        again = client.post(f"{API}/cheques/{cheque['id']}/withdraw", headers=auth_headers,
                            json={"withdrawal_reason": "Twice"})
        self.assert_business_rule(again, "WITHDRAWN")

    def test_cancel_only_received(self, client, auth_headers, sample_tenant):
        received = self._register(client, auth_headers, sample_tenant["id"],
                                  cheque_date=(date.today() + timedelta(days=60)).isoformat()).json()
        response = client.post(f"{API}/cheques/{received['id']}/cancel", headers=auth_headers)
        self.assert_success_response(response)
        assert response.json()["status"] == "CANCELLED"

        due = self._due(client, auth_headers, sample_tenant["id"], cheque_number="000200")
        self.assert_business_rule(client.post(f"{API}/cheques/{due['id']}/cancel", headers=auth_headers), "DUE")

    def test_future_deposit_date_rejected(self, client, auth_headers, sample_tenant):
        cheque = self._due(client, auth_headers, sample_tenant["id"])
        response = client.post(f"{API}/cheques/{cheque['id']}/deposit", headers=auth_headers,
                               json={"deposit_date": (date.today() + timedelta(days=1)).isoformat()})
        self.assert_validation_error(response, "deposit_date")

    def test_dashboard(self, client, auth_headers, sample_tenant):
        self._register(client, auth_headers, sample_tenant["id"])
        self._register(client, auth_headers, sample_tenant["id"], cheque_number="000124", amount="1000.00",
                       cheque_date=(date.today() + timedelta(days=40)).isoformat())

        dashboard = client.get(f"{API}/cheques/dashboard", headers=auth_headers)
        self.assert_success_response(dashboard)
        data = dashboard.json()
        assert data["received_count"] == 2
        assert data["due_this_week_count"] == 1
        self.assert_money(data["due_this_week_value"], "5700.00")
        self.assert_money(data["outstanding_value"], "6700.00")
        assert data["bounce_rate"] == 0.0
        assert [c["cheque_number"] for c in data["upcoming"]] == ["000123"]

    def test_list_filters(self, client, auth_headers, sample_tenant):
        self._register(client, auth_headers, sample_tenant["id"])
        self._register(client, auth_headers, sample_tenant["id"], cheque_number="000124", bank_name="ADCB")

        listing = client.get(f"{API}/cheques/", headers=auth_headers, params={"bank_name": "adcb"}).json()
        assert listing["total"] == 1
        assert listing["items"][0]["cheque_number"] == "000124"
        received = client.get(f"{API}/cheques/", headers=auth_headers, params={"status": "RECEIVED"}).json()
        assert received["total"] == 2

    def test_cheque_isolation(self, client, auth_headers, other_org_headers, sample_tenant):
        cheque = self._register(client, auth_headers, sample_tenant["id"]).json()
        self.assert_not_found(client.get(f"{API}/cheques/{cheque['id']}", headers=other_org_headers))
        self.assert_not_found(self._register(client, other_org_headers, sample_tenant["id"]))
        assert client.get(f"{API}/cheques/", headers=other_org_headers).json()["total"] == 0
