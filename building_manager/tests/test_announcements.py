"""
Announcement tests for the building manager.
"""
from datetime import date, datetime, timedelta, timezone
from uuid import UUID
from fastapi import status

from building_manager.database.models import Announcement
from .conftest import API
from .test_base import BaseAPITest


def in_days(days: int) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


class TestAnnouncements(BaseAPITest):
    """Test cases for the announcement lifecycle."""

    def _create(self, client, headers, **overrides):
        payload = {
            "title": "Water shutdown",
            "message": "Water will be off on Sunday from 9am to noon.",
            "template_used": "maintenance",
            "expires_at": in_days(7),
            **overrides,
        }
        return client.post(f"{API}/announcements/", headers=headers, json=payload)

    def test_create_draft(self, client, auth_headers, registration):
        response = self._create(client, auth_headers)
        self.assert_success_response(response, status.HTTP_201_CREATED)
        announcement = response.json()
        assert announcement["announcement_number"] == f"ANN-{date.today().year}-0001"
        assert announcement["status"] == "DRAFT"
        assert announcement["published_at"] is None
        assert announcement["created_by"] == registration["user"]["id"]

    def test_expiry_must_be_in_future(self, client, auth_headers):
        self.assert_validation_error(self._create(client, auth_headers, expires_at=in_days(-1)), "expires_at")

    def test_publish_and_active_list(self, client, auth_headers):
        published = self._create(client, auth_headers).json()
        self._create(client, auth_headers, title="Draft only")

        response = client.post(f"{API}/announcements/{published['id']}/publish", headers=auth_headers)
        self.assert_success_response(response)
        assert response.json()["status"] == "PUBLISHED"
        assert response.json()["published_at"] is not None

        active = client.get(f"{API}/announcements/active", headers=auth_headers).json()
        assert [a["id"] for a in active["items"]] == [published["id"]]
        count = client.get(f"{API}/announcements/active/count", headers=auth_headers).json()
        assert count["count"] == 1

        again = client.post(f"{API}/announcements/{published['id']}/publish", headers=auth_headers)
        self.assert_business_rule(again, "PUBLISHED")

    def test_only_drafts_can_be_edited_or_deleted(self, client, auth_headers):
        announcement = self._create(client, auth_headers).json()
        url = f"{API}/announcements/{announcement['id']}"

        response = client.put(url, headers=auth_headers, json={"title": "Water shutdown (updated)"})
        self.assert_success_response(response)
        assert response.json()["title"] == "Water shutdown (updated)"

        client.post(f"{url}/publish", headers=auth_headers)
        self.assert_business_rule(client.put(url, headers=auth_headers, json={"title": "Late"}), "edit")
        self.assert_business_rule(client.delete(url, headers=auth_headers), "delete")

    def test_delete_draft(self, client, auth_headers):
        announcement = self._create(client, auth_headers).json()
        url = f"{API}/announcements/{announcement['id']}"
        self.assert_success_response(client.delete(url, headers=auth_headers))
        self.assert_not_found(client.get(url, headers=auth_headers))

    def test_archive_rules(self, client, auth_headers):
        announcement = self._create(client, auth_headers).json()
        url = f"{API}/announcements/{announcement['id']}"
        self.assert_business_rule(client.post(f"{url}/archive", headers=auth_headers), "DRAFT")

        client.post(f"{url}/publish", headers=auth_headers)
        response = client.post(f"{url}/archive", headers=auth_headers)
        self.assert_success_response(response)
        assert response.json()["status"] == "ARCHIVED"

    def test_copy(self, client, auth_headers):
        announcement = self._create(client, auth_headers).json()
        client.post(f"{API}/announcements/{announcement['id']}/publish", headers=auth_headers)

        response = client.post(f"{API}/announcements/{announcement['id']}/copy", headers=auth_headers)
        self.assert_success_response(response, status.HTTP_201_CREATED)
        copy = response.json()
        assert copy["title"] == "Copy of Water shutdown"
        assert copy["status"] == "DRAFT"
        assert copy["message"] == announcement["message"]
        assert copy["announcement_number"] == f"ANN-{date.today().year}-0002"

    def test_daily_job_expires_announcements(self, client, auth_headers, db_session):
        announcement = self._create(client, auth_headers).json()
        client.post(f"{API}/announcements/{announcement['id']}/publish", headers=auth_headers)

        stored = db_session.get(Announcement, UUID(announcement["id"]))
        stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db_session.commit()

        results = client.post(f"{API}/jobs/daily", headers=auth_headers).json()["results"]
        assert results["expired_announcements"] == 1

        current = client.get(f"{API}/announcements/{announcement['id']}", headers=auth_headers).json()
        assert current["status"] == "EXPIRED"
        assert client.get(f"{API}/announcements/active/count", headers=auth_headers).json()["count"] == 0
        self.assert_success_response(client.post(f"{API}/announcements/{announcement['id']}/archive",
                                                 headers=auth_headers))

    def test_search_and_isolation(self, client, auth_headers, other_org_headers):
        announcement = self._create(client, auth_headers).json()
        self._create(client, auth_headers, title="Gym reopening", message="The gym is open again.")

        response = client.get(f"{API}/announcements/", headers=auth_headers, params={"q": "gym"})
        assert response.json()["total"] == 1

        self.assert_not_found(client.get(f"{API}/announcements/{announcement['id']}", headers=other_org_headers))
        assert client.get(f"{API}/announcements/", headers=other_org_headers).json()["total"] == 0
