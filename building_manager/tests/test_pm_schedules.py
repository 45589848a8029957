"""
Preventive maintenance schedule tests for the building manager.
"""
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from fastapi import status

from .conftest import API
from .test_base import BaseAPITest


class TestPMSchedules(BaseAPITest):
    """Test cases for PM schedules and work order generation."""

    def _create(self, client, headers, **overrides):
        payload = {
            "schedule_name": "Chiller service",
            "category": "HVAC",
            "description": "Clean coils and check refrigerant",
            "recurrence_type": "MONTHLY",
            "start_date": date.today().isoformat(),
            "default_priority": "HIGH",
            **overrides,
        }
        return client.post(f"{API}/pm-schedules/", headers=headers, json=payload)

    def test_create_schedule(self, client, auth_headers, sample_property):
        response = self._create(client, auth_headers, property_id=sample_property["id"])
        self.assert_success_response(response, status.HTTP_201_CREATED)
        schedule = response.json()
        assert schedule["status"] == "ACTIVE"
        assert schedule["next_generation_date"] == date.today().isoformat()
        assert schedule["last_generated_date"] is None

    def test_start_date_in_past(self, client, auth_headers):
        response = self._create(client, auth_headers, start_date=(date.today() - timedelta(days=1)).isoformat())
        self.assert_validation_error(response)

    def test_generate_now_assigns_default_vendor(self, client, auth_headers, sample_property, sample_vendor):
        schedule = self._create(client, auth_headers, property_id=sample_property["id"],
                                default_assignee_id=sample_vendor["id"]).json()
        response = client.post(f"{API}/pm-schedules/{schedule['id']}/generate", headers=auth_headers)
        self.assert_success_response(response)
        assert len(response.json()["work_order_ids"]) == 1
        assert response.json()["next_generation_date"] == date.today().isoformat()

        work_order_id = response.json()["work_order_ids"][0]
        work_order = client.get(f"{API}/work-orders/{work_order_id}", headers=auth_headers).json()
        assert work_order["status"] == "ASSIGNED"
        assert work_order["assigned_to"] == sample_vendor["id"]
        assert work_order["pm_schedule_id"] == schedule["id"]
        assert work_order["title"] == "Chiller service - Marina Heights"
        assert work_order["priority"] == "HIGH"

    def test_schedule_without_property_covers_all(self, client, auth_headers, sample_property):
        client.post(f"{API}/properties/", headers=auth_headers, json={"name": "Palm Towers", "address": "7 Palm St"})
        schedule = self._create(client, auth_headers).json()
        response = client.post(f"{API}/pm-schedules/{schedule['id']}/generate", headers=auth_headers)
        assert len(response.json()["work_order_ids"]) == 2

    def test_paused_schedule_cannot_generate(self, client, auth_headers, sample_property):
        schedule = self._create(client, auth_headers, property_id=sample_property["id"]).json()
        paused = client.patch(f"{API}/pm-schedules/{schedule['id']}/status", headers=auth_headers,
                              json={"status": "PAUSED"})
        self.assert_success_response(paused)

        response = client.post(f"{API}/pm-schedules/{schedule['id']}/generate", headers=auth_headers)
        self.assert_business_rule(response, "ACTIVE")

    def test_daily_job_advances_schedule(self, client, auth_headers, sample_property):
        schedule = self._create(client, auth_headers, property_id=sample_property["id"]).json()

        results = client.post(f"{API}/jobs/daily", headers=auth_headers).json()["results"]
        assert results["pm_work_orders"] == 1

        current = client.get(f"{API}/pm-schedules/{schedule['id']}", headers=auth_headers).json()
        assert current["last_generated_date"] == date.today().isoformat()
        assert current["next_generation_date"] == (date.today() + relativedelta(months=1)).isoformat()

        history = client.get(f"{API}/pm-schedules/{schedule['id']}/history", headers=auth_headers).json()
        assert history["total"] == 1
        assert history["items"][0]["status"] == "OPEN"
        assert history["items"][0]["is_overdue"] is False

        statistics = client.get(f"{API}/pm-schedules/{schedule['id']}/statistics", headers=auth_headers).json()
        assert statistics["total_generated"] == 1
        assert statistics["completed_count"] == 0

        results = client.post(f"{API}/jobs/daily", headers=auth_headers).json()["results"]
        assert results["pm_work_orders"] == 0

    def test_schedule_ends_after_last_occurrence(self, client, auth_headers, sample_property):
        schedule = self._create(client, auth_headers, property_id=sample_property["id"],
                                end_date=(date.today() + timedelta(days=10)).isoformat()).json()
        client.post(f"{API}/jobs/daily", headers=auth_headers)

        current = client.get(f"{API}/pm-schedules/{schedule['id']}", headers=auth_headers).json()
        assert current["status"] == "COMPLETED"
        assert current["next_generation_date"] is None

    def test_delete_rules(self, client, auth_headers, sample_property):
        used = self._create(client, auth_headers, property_id=sample_property["id"]).json()
        client.post(f"{API}/pm-schedules/{used['id']}/generate", headers=auth_headers)
        response = client.delete(f"{API}/pm-schedules/{used['id']}", headers=auth_headers)
        self.assert_business_rule(response, "generated work orders")

        unused = self._create(client, auth_headers, schedule_name="Pump check").json()
        self.assert_success_response(client.delete(f"{API}/pm-schedules/{unused['id']}", headers=auth_headers))
        self.assert_not_found(client.get(f"{API}/pm-schedules/{unused['id']}", headers=auth_headers))
        listed = client.get(f"{API}/pm-schedules/", headers=auth_headers)
        assert [s["id"] for s in listed.json()["items"]] == [used["id"]]

    def test_schedule_isolation(self, client, auth_headers, other_org_headers, sample_property):
        schedule = self._create(client, auth_headers, property_id=sample_property["id"]).json()
        self.assert_not_found(client.get(f"{API}/pm-schedules/{schedule['id']}", headers=other_org_headers))
