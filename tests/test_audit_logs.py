"""
Landing CMS - Admin Audit Log Tests

Tests for GET /api/v1/admin/audit-logs:
- Admin and above only
- Newest first
- Filters by action, user and resource type
- Offset/limit pagination with a total count

Run with: pytest tests/test_audit_logs.py -v
"""

from datetime import timedelta
from uuid import uuid4

import pytest

from landing_cms.audit.models import AuditLog
from landing_cms.auth.models import utcnow
from tests.conftest import auth_headers, login_user


URL = "/api/v1/admin/audit-logs"


def _headers(client, email: str) -> dict:
    tokens = login_user(client, email)
    assert tokens is not None, f"login failed for {email}"
    return auth_headers(tokens["access_token"])


@pytest.fixture
def audit_rows(db_session):
    """Three rows, one minute apart: login (oldest), logout, create (newest)."""
    base = utcnow() - timedelta(hours=1)
    actor = uuid4()
    rows = [
        AuditLog(action="login", resource_type="session", user_id=actor, created_at=base),
        AuditLog(action="logout", resource_type="session", user_id=actor,
                 created_at=base + timedelta(minutes=1)),
        AuditLog(action="create", resource_type="user", resource_id="42", user_id=uuid4(),
                 details={"role": "editor"}, created_at=base + timedelta(minutes=2)),
    ]
    for row in rows:
        db_session.add(row)
    db_session.commit()
    return actor


# =============================================================================
# Access
# =============================================================================

class TestAuditLogAccess:

    def test_requires_authentication(self, client):
        assert client.get(URL).status_code == 401

    def test_editor_forbidden(self, client, test_editor):
        response = client.get(URL, headers=_headers(client, "alice@example.com"))

        assert response.status_code == 403

    def test_super_admin_allowed(self, client, test_super_admin):
        response = client.get(URL, headers=_headers(client, "owner@example.com"))

        assert response.status_code == 200


# =============================================================================
# Listing
# =============================================================================

class TestAuditLogListing:

    def test_newest_first(self, client, test_admin, audit_rows):
        response = client.get(URL, headers=_headers(client, "admin@example.com"))

        assert response.status_code == 200
        body = response.json()
        assert [log["action"] for log in body["logs"]] == ["create", "logout", "login"]
        assert body["total"] == 3
        assert body["logs"][0]["details"] == {"role": "editor"}

    def test_filter_by_action(self, client, test_admin, audit_rows):
        response = client.get(URL, params={"action": "logout"}, headers=_headers(client, "admin@example.com"))

        assert [log["action"] for log in response.json()["logs"]] == ["logout"]
        assert response.json()["total"] == 1

    def test_filter_by_user(self, client, test_admin, audit_rows):
        response = client.get(URL, params={"user_id": str(audit_rows)}, headers=_headers(client, "admin@example.com"))

        assert [log["action"] for log in response.json()["logs"]] == ["logout", "login"]

    def test_filter_by_resource_type(self, client, test_admin, audit_rows):
        response = client.get(URL, params={"resource_type": "user"}, headers=_headers(client, "admin@example.com"))

        (log,) = response.json()["logs"]
        assert log["resource_id"] == "42"

    def test_pagination(self, client, test_admin, audit_rows):
        response = client.get(URL, params={"offset": 1, "limit": 1}, headers=_headers(client, "admin@example.com"))

        body = response.json()
        assert [log["action"] for log in body["logs"]] == ["logout"]
        assert body["total"] == 3
        assert (body["offset"], body["limit"]) == (1, 1)

    def test_unknown_action_rejected(self, client, test_admin):
        response = client.get(URL, params={"action": "reboot"}, headers=_headers(client, "admin@example.com"))

        assert response.status_code == 422
