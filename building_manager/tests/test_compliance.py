"""
Compliance tests for the building manager.

Tests cover requirements, per-property schedules, inspections with
remediation work orders, violations and the dashboard.
"""
from datetime import date, timedelta
from dateutil.relativedelta import relativedelta
from fastapi import status

from .conftest import API
from .test_base import BaseAPITest


def create_requirement(client, headers, **overrides):
    payload = {
        "requirement_name": "Fire alarm certification",
        "category": "FIRE",
        "frequency": "ANNUALLY",
        "authority_agency": "Civil Defence",
        **overrides,
    }
    response = client.post(f"{API}/compliance-requirements", headers=headers, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def generate_schedules(client, headers, property_id):
    response = client.post(f"{API}/compliance-schedules/generate/{property_id}", headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestRequirementsAndSchedules(BaseAPITest):
    """Test cases for requirements and their schedules."""

    def test_create_requirement(self, client, auth_headers):
        requirement = create_requirement(client, auth_headers)
        assert requirement["requirement_number"] == f"CMP-{date.today().year}-0001"
        assert requirement["status"] == "ACTIVE"
        assert requirement["applicable_properties"] is None

    def test_generate_schedules(self, client, auth_headers, sample_property):
        requirement = create_requirement(client, auth_headers)
        other = client.post(f"{API}/properties/", headers=auth_headers,
                            json={"name": "Palm Towers", "address": "7 Palm St"}).json()
        create_requirement(client, auth_headers, requirement_name="Pool licence", category="LICENSING",
                           applicable_properties=[other["id"]])
        create_requirement(client, auth_headers, requirement_name="Retired check", status="INACTIVE")

        schedules = generate_schedules(client, auth_headers, sample_property["id"])
        assert len(schedules) == 1
        assert schedules[0]["requirement_id"] == requirement["id"]
        assert schedules[0]["status"] == "UPCOMING"
        assert schedules[0]["due_date"] == (date.today() + timedelta(days=30)).isoformat()
        assert schedules[0]["schedule_number"] == f"CMS-{date.today().year}-0001"

        assert generate_schedules(client, auth_headers, sample_property["id"]) == []

    def test_complete_creates_next_schedule(self, client, auth_headers, sample_property):
        create_requirement(client, auth_headers)
        schedule = generate_schedules(client, auth_headers, sample_property["id"])[0]
        url = f"{API}/compliance-schedules/{schedule['id']}/complete"

        response = client.post(url, headers=auth_headers, json={"certificate_number": "FA-2211"})
        self.assert_success_response(response)
        assert response.json()["status"] == "COMPLETED"
        assert response.json()["completed_date"] == date.today().isoformat()

        self.assert_business_rule(client.post(url, headers=auth_headers, json={}), "already completed")

        upcoming = client.get(f"{API}/compliance-schedules", headers=auth_headers,
                              params={"status": "UPCOMING"}).json()
        assert upcoming["total"] == 1
        assert upcoming["items"][0]["due_date"] == (date.today() + relativedelta(years=1)).isoformat()

    def test_one_time_requirement_has_no_follow_up(self, client, auth_headers, sample_property):
        create_requirement(client, auth_headers, frequency="ONE_TIME")
        schedule = generate_schedules(client, auth_headers, sample_property["id"])[0]
        client.post(f"{API}/compliance-schedules/{schedule['id']}/complete", headers=auth_headers, json={})

        listed = client.get(f"{API}/compliance-schedules", headers=auth_headers).json()
        assert listed["total"] == 1

    def test_exempt_schedule_cannot_be_completed(self, client, auth_headers, sample_property):
        create_requirement(client, auth_headers)
        schedule = generate_schedules(client, auth_headers, sample_property["id"])[0]
        response = client.post(f"{API}/compliance-schedules/{schedule['id']}/exempt", headers=auth_headers,
                               json={"reason": "Building under renovation"})
        self.assert_success_response(response)
        assert response.json()["status"] == "EXEMPT"

        response = client.post(f"{API}/compliance-schedules/{schedule['id']}/complete", headers=auth_headers,
                               json={})
        self.assert_business_rule(response, "Exempt")

    def test_future_completion_date_rejected(self, client, auth_headers, sample_property):
        create_requirement(client, auth_headers)
        schedule = generate_schedules(client, auth_headers, sample_property["id"])[0]
        response = client.post(f"{API}/compliance-schedules/{schedule['id']}/complete", headers=auth_headers,
                               json={"completed_date": (date.today() + timedelta(days=1)).isoformat()})
        self.assert_validation_error(response, "completed_date")

    def test_daily_job_marks_schedules_due(self, client, auth_headers, sample_property):
        create_requirement(client, auth_headers)
        schedule = generate_schedules(client, auth_headers, sample_property["id"])[0]

        results = client.post(f"{API}/jobs/daily", headers=auth_headers).json()["results"]
        assert results["compliance_statuses"] == 1
        current = client.get(f"{API}/compliance-schedules/{schedule['id']}", headers=auth_headers).json()
        assert current["status"] == "DUE"

    def test_deleted_requirement_is_hidden(self, client, auth_headers):
        requirement = create_requirement(client, auth_headers)
        url = f"{API}/compliance-requirements/{requirement['id']}"
        self.assert_success_response(client.delete(url, headers=auth_headers))
        self.assert_not_found(client.get(url, headers=auth_headers))

    def test_requirement_isolation(self, client, auth_headers, other_org_headers, sample_property):
        requirement = create_requirement(client, auth_headers)
        self.assert_not_found(client.get(f"{API}/compliance-requirements/{requirement['id']}",
                                         headers=other_org_headers))
        self.assert_not_found(client.post(f"{API}/compliance-schedules/generate/{sample_property['id']}",
                                          headers=other_org_headers))


class TestInspectionsAndViolations(BaseAPITest):
    """Test cases for inspections and violations."""

    def _schedule(self, client, headers, property_id):
        create_requirement(client, headers)
        return generate_schedules(client, headers, property_id)[0]

    def _inspection(self, client, headers, schedule_id, days=7):
        return client.post(f"{API}/inspections", headers=headers, json={
            "schedule_id": schedule_id,
            "inspector_name": "Sara Ali",
            "inspector_company": "SafeCheck",
            "scheduled_date": (date.today() + timedelta(days=days)).isoformat(),
        })

    def test_schedule_inspection(self, client, auth_headers, sample_property):
        schedule = self._schedule(client, auth_headers, sample_property["id"])
        response = self._inspection(client, auth_headers, schedule["id"])
        self.assert_success_response(response, status.HTTP_201_CREATED)
        assert response.json()["status"] == "SCHEDULED"
        assert response.json()["property_id"] == sample_property["id"]

        upcoming = client.get(f"{API}/inspections/upcoming", headers=auth_headers).json()
        assert [i["id"] for i in upcoming] == [response.json()["id"]]

    def test_inspection_in_past_rejected(self, client, auth_headers, sample_property):
        schedule = self._schedule(client, auth_headers, sample_property["id"])
        self.assert_validation_error(self._inspection(client, auth_headers, schedule["id"], days=-1),
                                     "scheduled_date")

    def test_result_rules(self, client, auth_headers, sample_property):
        schedule = self._schedule(client, auth_headers, sample_property["id"])
        inspection = self._inspection(client, auth_headers, schedule["id"]).json()
        url = f"{API}/inspections/{inspection['id']}/result"

        self.assert_validation_error(client.put(url, headers=auth_headers, json={"status": "PASSED"}))
        self.assert_validation_error(client.put(url, headers=auth_headers,
                                                json={"status": "FAILED", "result": "FAILED"}))

    def test_failed_inspection_creates_remediation(self, client, auth_headers, sample_property):
        schedule = self._schedule(client, auth_headers, sample_property["id"])
        inspection = self._inspection(client, auth_headers, schedule["id"]).json()

        response = client.put(f"{API}/inspections/{inspection['id']}/result", headers=auth_headers, json={
            "status": "FAILED",
            "result": "FAILED",
            "issues_found": "Two detectors on level 3 not responding",
            "create_remediation_work_order": True,
        })
        self.assert_success_response(response)
        result = response.json()
        assert result["inspection_date"] == date.today().isoformat()
        assert result["remediation_work_order_id"] is not None

        work_order = client.get(f"{API}/work-orders/{result['remediation_work_order_id']}",
                                headers=auth_headers).json()
        assert work_order["priority"] == "HIGH"
        assert work_order["category"] == "INSPECTION"
        assert work_order["title"] == "Remediation: Fire alarm certification - Marina Heights"

        cancel = client.post(f"{API}/inspections/{inspection['id']}/cancel", headers=auth_headers)
        self.assert_business_rule(cancel, "cannot be cancelled")

    def test_cancel_inspection(self, client, auth_headers, sample_property):
        schedule = self._schedule(client, auth_headers, sample_property["id"])
        inspection = self._inspection(client, auth_headers, schedule["id"]).json()
        response = client.post(f"{API}/inspections/{inspection['id']}/cancel", headers=auth_headers,
                               json={"reason": "Inspector unavailable"})
        self.assert_success_response(response)
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["notes"] == "Inspector unavailable"

    def test_violations_and_dashboard(self, client, auth_headers, sample_property):
        schedule = self._schedule(client, auth_headers, sample_property["id"])
        response = client.post(f"{API}/violations", headers=auth_headers, json={
            "schedule_id": schedule["id"],
            "violation_date": date.today().isoformat(),
            "description": "Expired fire alarm certificate",
            "fine_amount": "2500",
            "create_remediation_work_order": True,
        })
        self.assert_success_response(response, status.HTTP_201_CREATED)
        violation = response.json()
        assert violation["violation_number"] == f"VIO-{date.today().year}-0001"
        assert violation["fine_status"] == "PENDING"
        assert violation["remediation_work_order_id"] is not None
        self.assert_money(violation["fine_amount"], "2500.00")

        dashboard = client.get(f"{API}/compliance/dashboard", headers=auth_headers).json()
        self.assert_money(dashboard["total_fines_pending"], "2500.00")
        assert dashboard["schedules_by_status"]["UPCOMING"] == 1
        assert dashboard["upcoming_within_30_days"] == 1
        assert [v["id"] for v in dashboard["recent_violations"]] == [violation["id"]]

        paid = client.put(f"{API}/violations/{violation['id']}", headers=auth_headers, json={
            "fine_status": "PAID", "resolution_date": date.today().isoformat(),
        })
        self.assert_success_response(paid)
        pending = client.get(f"{API}/violations", headers=auth_headers, params={"fine_status": "PENDING"})
        assert pending.json()["total"] == 0
