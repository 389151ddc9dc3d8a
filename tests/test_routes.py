"""
Landing CMS - Authentication Route Tests

HTTP-level tests for login, refresh, logout, me and change-password,
including the refresh cookie and the security middleware.

Run with: pytest tests/test_routes.py -v
"""

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlmodel import select

from landing_cms.app import create_app
from landing_cms.auth.models import RefreshToken, utcnow
from tests.conftest import DEFAULT_PASSWORD, auth_headers, login_user


def _set_cookie_header(response) -> str:
    return "; ".join(response.headers.get_list("set-cookie"))


def _attributes(set_cookie: str) -> dict:
    """Cookie attributes after the name=value pair, keyed by lowercase name."""
    attributes = {}
    for part in set_cookie.split(";")[1:]:
        name, _, value = part.strip().partition("=")
        attributes[name.lower()] = value
    return attributes


def _max_age(set_cookie: str) -> int:
    for part in set_cookie.split(";"):
        name, _, value = part.strip().partition("=")
        if name.lower() == "max-age":
            return int(value)
    raise AssertionError(f"no Max-Age in {set_cookie!r}")


# =============================================================================
# LOGIN
# =============================================================================

class TestLoginRoute:

    def test_login_success(self, client, test_editor):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["access_token"]
        assert body["token_type"] == "Bearer"
        assert body["user"]["email"] == "alice@example.com"
        assert body["user"]["role"] == "editor"
        assert "refresh_token" not in body

    def test_login_sets_refresh_cookie(self, client, test_editor, settings):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )

        set_cookie = _set_cookie_header(response)
        attributes = _attributes(set_cookie)
        assert set_cookie.startswith("refresh_token=")
        assert "httponly" in attributes
        assert attributes["path"] == "/api/v1/auth"
        assert attributes["samesite"].lower() == "strict"
        assert "secure" not in attributes
        assert "domain" not in attributes

        refresh_lifetime = int(timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS).total_seconds())
        assert refresh_lifetime - 60 <= _max_age(set_cookie) <= refresh_lifetime

    def test_wrong_password(self, client, test_editor):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "wrongpw"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid email or password"
        assert "refresh_token=" not in _set_cookie_header(response)

    def test_unknown_email_same_response(self, client, test_editor):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": "wrongpw"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid email or password"

    def test_inactive_account_403(self, client, inactive_user):
        response = client.post(
            "/api/v1/auth/login",
            json={"email": "inactive@example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 403
        assert response.json()["detail"] == "account is inactive"

    def test_locked_account(self, client, test_editor, settings):
        for _ in range(settings.LOCKOUT_MAX_ATTEMPTS):
            client.post("/api/v1/auth/login", json={"email": "alice@example.com", "password": "wrongpw"})

        response = client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": DEFAULT_PASSWORD},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == (
            "account is temporarily locked due to too many failed attempts"
        )

    def test_malformed_email_422(self, client):
        response = client.post("/api/v1/auth/login", json={"email": "not-an-email", "password": "x"})

        assert response.status_code == 422


# =============================================================================
# REFRESH
# =============================================================================

class TestRefreshRoute:

    def test_refresh_with_cookie_rotates(self, client, test_editor):
        first = login_user(client, "alice@example.com")
        old_cookie = client.cookies.get("refresh_token")

        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 200
        assert response.json()["access_token"] != first["access_token"]
        assert client.cookies.get("refresh_token") != old_cookie

    def test_refresh_audited_with_account_identity(self, client, test_editor):
        login_user(client, "alice@example.com")
        recorded = []

        class Collector:
            def record(self, event):
                recorded.append(event)
                return True

            async def shutdown(self):
                pass

        client.app.state.audit = Collector()
        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 200
        (event,) = recorded
        assert event.action.value == "token_refresh"
        assert event.user_id == test_editor.id
        assert event.user_email == "alice@example.com"
        assert event.user_role == "editor"

    def test_replayed_refresh_token_revoked_and_cookie_cleared(self, client, test_editor):
        login_user(client, "alice@example.com")
        old_cookie = client.cookies.get("refresh_token")
        client.post("/api/v1/auth/refresh")
        client.cookies.clear()

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": old_cookie})

        assert response.status_code == 401
        assert response.json()["detail"] == "refresh token has been revoked"
        set_cookie = _set_cookie_header(response)
        assert "refresh_token=" in set_cookie
        assert _max_age(set_cookie) == 0

    def test_refresh_with_body(self, client, test_editor):
        login_user(client, "alice@example.com")
        raw = client.cookies.get("refresh_token")
        client.cookies.clear()

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": raw})

        assert response.status_code == 200

    def test_missing_token(self, client):
        response = client.post("/api/v1/auth/refresh")

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid or expired refresh token"

    def test_garbage_token_clears_cookie(self, client):
        response = client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid or expired refresh token"
        assert _max_age(_set_cookie_header(response)) == 0

    def test_access_token_rejected(self, client, test_editor):
        tokens = login_user(client, "alice@example.com")
        client.cookies.clear()

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": tokens["access_token"]})

        assert response.status_code == 401
        assert response.json()["detail"] == "invalid or expired refresh token"


# =============================================================================
# LOGOUT
# =============================================================================

class TestLogoutRoute:

    def test_logout_revokes_and_clears_cookie(self, client, test_editor):
        login_user(client, "alice@example.com")
        raw = client.cookies.get("refresh_token")

        response = client.post("/api/v1/auth/logout")

        assert response.status_code == 200
        assert _max_age(_set_cookie_header(response)) == 0

        response = client.post("/api/v1/auth/refresh", json={"refresh_token": raw})
        assert response.status_code == 401
        assert response.json()["detail"] == "refresh token has been revoked"

    def test_logout_without_token(self, client):
        response = client.post("/api/v1/auth/logout")

        assert response.status_code == 200

    def test_logout_unknown_token(self, client):
        response = client.post("/api/v1/auth/logout", json={"refresh_token": "never-issued"})

        assert response.status_code == 200


# =============================================================================
# ME / CHANGE PASSWORD
# =============================================================================

class TestMeRoute:

    def test_me(self, client, test_editor):
        tokens = login_user(client, "alice@example.com")

        response = client.get("/api/v1/auth/me", headers=auth_headers(tokens["access_token"]))

        assert response.status_code == 200
        assert response.json() == {
            "id": str(test_editor.id),
            "email": "alice@example.com",
            "role": "editor",
        }

    def test_me_requires_token(self, client):
        response = client.get("/api/v1/auth/me")

        assert response.status_code == 401

    def test_me_lowercase_scheme(self, client, test_editor):
        tokens = login_user(client, "alice@example.com")

        response = client.get(
            "/api/v1/auth/me",
            headers={"Authorization": f"bearer {tokens['access_token']}"},
        )

        assert response.status_code == 200


class TestChangePasswordRoute:

    def test_change_password(self, client, db_session, test_editor):
        tokens = login_user(client, "alice@example.com")

        response = client.post(
            "/api/v1/auth/change-password",
            headers=auth_headers(tokens["access_token"]),
            json={"current_password": DEFAULT_PASSWORD, "new_password": "brand-new-pw"},
        )

        assert response.status_code == 200
        assert _max_age(_set_cookie_header(response)) == 0

        records = db_session.exec(select(RefreshToken).where(RefreshToken.user_id == test_editor.id)).all()
        assert records and all(r.is_revoked for r in records)

        assert login_user(client, "alice@example.com", "brand-new-pw") is not None
        assert login_user(client, "alice@example.com") is None

    def test_wrong_current_password_400(self, client, test_editor):
        tokens = login_user(client, "alice@example.com")

        response = client.post(
            "/api/v1/auth/change-password",
            headers=auth_headers(tokens["access_token"]),
            json={"current_password": "wrongpw", "new_password": "brand-new-pw"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "current password is incorrect"

    def test_short_new_password_422(self, client, test_editor):
        tokens = login_user(client, "alice@example.com")

        response = client.post(
            "/api/v1/auth/change-password",
            headers=auth_headers(tokens["access_token"]),
            json={"current_password": DEFAULT_PASSWORD, "new_password": "short"},
        )

        assert response.status_code == 422

    def test_requires_authentication(self, client):
        response = client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "a", "new_password": "brand-new-pw"},
        )

        assert response.status_code == 401


# =============================================================================
# MIDDLEWARE / APP
# =============================================================================

class TestSecurityMiddleware:

    def test_security_headers(self, client):
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"
        assert response.headers["Cache-Control"] == "no-store"
        assert response.headers["X-Request-ID"]

    def test_upstream_request_id_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_unhandled_error_keeps_request_id_and_headers(self, settings, test_engine):
        app = create_app(settings, engine=test_engine)

        @app.get("/boom")
        async def boom():
            raise RuntimeError("storage exploded")

        with TestClient(app) as client:
            response = client.get("/boom", headers={"X-Request-ID": "req-500"})

        assert response.status_code == 500
        assert response.json() == {"detail": "an internal error occurred"}
        assert response.headers["X-Request-ID"] == "req-500"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert "storage exploded" not in response.text


class TestStartupPurge:

    def test_expired_tokens_removed_at_startup(self, settings, test_engine, db_session, test_editor):
        db_session.add(RefreshToken(
            user_id=test_editor.id,
            token_hash="a" * 64,
            expires_at=utcnow() - timedelta(days=1),
        ))
        db_session.add(RefreshToken(
            user_id=test_editor.id,
            token_hash="b" * 64,
            expires_at=utcnow() + timedelta(days=1),
        ))
        db_session.commit()

        with TestClient(create_app(settings, engine=test_engine)):
            pass

        remaining = db_session.exec(select(RefreshToken.token_hash)).all()
        assert remaining == ["b" * 64]
