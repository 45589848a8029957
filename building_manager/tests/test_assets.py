"""
Asset register tests for the building manager.
"""
from datetime import date, timedelta
from fastapi import status

from .conftest import API, complete_work_order
from .test_base import BaseAPITest


class TestAssets(BaseAPITest):
    """Test cases for asset operations."""

    def _create(self, client, headers, property_id, **overrides):
        payload = {
            "asset_name": "Rooftop Chiller",
            "category": "HVAC",
            "property_id": property_id,
            "location": "Roof",
            "manufacturer": "Carrier",
            "serial_number": "CH-99812",
            "purchase_date": (date.today() - timedelta(days=400)).isoformat(),
            "purchase_cost": "85000",
            "warranty_expiry_date": (date.today() + timedelta(days=20)).isoformat(),
            **overrides,
        }
        return client.post(f"{API}/assets/", headers=headers, json=payload)

    def test_create_asset(self, client, auth_headers, sample_property):
        response = self._create(client, auth_headers, sample_property["id"])
        self.assert_success_response(response, status.HTTP_201_CREATED)
        asset = response.json()
        assert asset["asset_number"] == f"AST-{date.today().year}-0001"
        assert asset["status"] == "ACTIVE"
        assert asset["warranty_status"] == "EXPIRING_SOON"
        self.assert_money(asset["purchase_cost"], "85000.00")

    def test_future_purchase_date_rejected(self, client, auth_headers, sample_property):
        response = self._create(client, auth_headers, sample_property["id"],
                                purchase_date=(date.today() + timedelta(days=1)).isoformat())
        self.assert_validation_error(response)

    def test_warranty_before_purchase_rejected(self, client, auth_headers, sample_property):
        response = self._create(client, auth_headers, sample_property["id"],
                                warranty_expiry_date=(date.today() - timedelta(days=500)).isoformat())
        self.assert_validation_error(response)

    def test_expiring_warranties(self, client, auth_headers, sample_property):
        soon = self._create(client, auth_headers, sample_property["id"]).json()
        self._create(client, auth_headers, sample_property["id"], asset_name="Lobby Lift", category="ELEVATOR",
                     warranty_expiry_date=(date.today() + timedelta(days=300)).isoformat())
        self._create(client, auth_headers, sample_property["id"], asset_name="Old Pump", category="WATER_PUMP",
                     warranty_expiry_date=(date.today() - timedelta(days=5)).isoformat())

        response = client.get(f"{API}/assets/expiring-warranties", headers=auth_headers)
        self.assert_success_response(response)
        assert [a["asset_id"] for a in response.json()] == [soon["id"]]
        assert response.json()[0]["days_until_expiry"] == 20

    def test_status_and_disposal(self, client, auth_headers, sample_property):
        asset = self._create(client, auth_headers, sample_property["id"]).json()
        url = f"{API}/assets/{asset['id']}/status"

        self.assert_business_rule(client.patch(url, headers=auth_headers, json={"status": "ACTIVE"}),
                                  "already has status")
        response = client.patch(url, headers=auth_headers, json={"status": "DISPOSED", "reason": "Replaced"})
        self.assert_success_response(response)
        assert response.json()["status_reason"] == "Replaced"

        edit = client.put(f"{API}/assets/{asset['id']}", headers=auth_headers, json={"location": "Basement"})
        self.assert_business_rule(edit, "Disposed")

        options = client.get(f"{API}/assets/options", headers=auth_headers,
                             params={"property_id": sample_property["id"]})
        assert options.json() == []

    def test_filters_and_delete(self, client, auth_headers, sample_property):
        chiller = self._create(client, auth_headers, sample_property["id"]).json()
        self._create(client, auth_headers, sample_property["id"], asset_name="Lobby Lift", category="ELEVATOR")

        response = client.get(f"{API}/assets/", headers=auth_headers, params={"category": "ELEVATOR"})
        assert [a["asset_name"] for a in response.json()["items"]] == ["Lobby Lift"]
        response = client.get(f"{API}/assets/", headers=auth_headers, params={"q": "CH-99812"})
        assert response.json()["total"] == 1

        self.assert_success_response(client.delete(f"{API}/assets/{chiller['id']}", headers=auth_headers))
        self.assert_not_found(client.get(f"{API}/assets/{chiller['id']}", headers=auth_headers))

    def test_maintenance_history(self, client, auth_headers, sample_property, sample_vendor):
        asset = self._create(client, auth_headers, sample_property["id"]).json()
        work_order = client.post(f"{API}/work-orders/", headers=auth_headers, json={
            "property_id": sample_property["id"], "asset_id": asset["id"],
            "category": "HVAC", "title": "Chiller service", "description": "Quarterly service",
        }).json()
        complete_work_order(client, auth_headers, work_order["id"], sample_vendor["id"], "1200.00")

        history = client.get(f"{API}/assets/{asset['id']}/maintenance-history", headers=auth_headers).json()
        assert [w["id"] for w in history] == [work_order["id"]]

        detail = client.get(f"{API}/assets/{asset['id']}", headers=auth_headers).json()
        assert detail["work_order_count"] == 1
        self.assert_money(detail["total_maintenance_cost"], "1200.00")

    def test_asset_isolation(self, client, auth_headers, other_org_headers, sample_property):
        asset = self._create(client, auth_headers, sample_property["id"]).json()
        self.assert_not_found(client.get(f"{API}/assets/{asset['id']}", headers=other_org_headers))
        self.assert_not_found(self._create(client, other_org_headers, sample_property["id"]))

    def test_update_null_name_rejected(self, client, auth_headers, sample_property):
        asset = self._create(client, auth_headers, sample_property["id"]).json()
        response = client.put(f"{API}/assets/{asset['id']}", headers=auth_headers, json={"asset_name": None})
        self.assert_validation_error(response, "asset_name")

    def test_update_future_purchase_date_rejected(self, client, auth_headers, sample_property):
        asset = self._create(client, auth_headers, sample_property["id"]).json()
        response = client.put(f"{API}/assets/{asset['id']}", headers=auth_headers,
                              json={"purchase_date": (date.today() + timedelta(days=400)).isoformat()})
        self.assert_validation_error(response, "purchase_date")

    def test_update_warranty_checked_against_stored_purchase(self, client, auth_headers, sample_property):
        asset = self._create(client, auth_headers, sample_property["id"]).json()
        url = f"{API}/assets/{asset['id']}"
        response = client.put(url, headers=auth_headers,
                              json={"warranty_expiry_date": (date.today() - timedelta(days=500)).isoformat()})
        self.assert_business_rule(response, "Warranty expiry date")

        lapsed = client.put(url, headers=auth_headers,
                            json={"warranty_expiry_date": (date.today() - timedelta(days=100)).isoformat()})
        self.assert_success_response(lapsed)
        response = client.put(url, headers=auth_headers,
                              json={"purchase_date": (date.today() - timedelta(days=10)).isoformat()})
        self.assert_business_rule(response, "Warranty expiry date")
        assert client.get(url, headers=auth_headers).json()["purchase_date"] == asset["purchase_date"]
