"""
Landing CMS - Configuration Tests

Run with: pytest tests/test_config.py -v
"""

import pytest
from pydantic import ValidationError

from tests.conftest import make_settings


class TestSettings:

    def test_defaults(self):
        settings = make_settings()

        assert settings.ACCESS_TOKEN_EXPIRE_MINUTES == 15
        assert settings.REFRESH_TOKEN_EXPIRE_DAYS == 7
        assert settings.LOCKOUT_MAX_ATTEMPTS == 5
        assert settings.LOCKOUT_DURATION_MINUTES == 15
        assert settings.COOKIE_DOMAIN is None
        assert settings.COOKIE_SAMESITE == "strict"
        assert settings.TRUST_PROXY_HEADERS is False

    def test_shared_secrets_rejected(self):
        with pytest.raises(ValidationError, match="must be different"):
            make_settings(JWT_ACCESS_SECRET="same", JWT_REFRESH_SECRET="same")

    @pytest.mark.parametrize("field", ["JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET"])
    def test_missing_secret_rejected(self, field):
        with pytest.raises(ValidationError, match="is required"):
            make_settings(**{field: ""})

    @pytest.mark.parametrize("cost", [3, 32])
    def test_bcrypt_cost_range(self, cost):
        with pytest.raises(ValidationError):
            make_settings(BCRYPT_COST=cost)

    @pytest.mark.parametrize("field", [
        "ACCESS_TOKEN_EXPIRE_MINUTES",
        "REFRESH_TOKEN_EXPIRE_DAYS",
        "LOCKOUT_DURATION_MINUTES",
        "RATE_LIMIT_AUTH_REQUESTS",
        "RATE_LIMIT_AUTH_WINDOW_SECONDS",
        "RATE_LIMIT_MAX_CLIENTS",
        "AUDIT_QUEUE_SIZE",
    ])
    @pytest.mark.parametrize("value", [0, -1])
    def test_non_positive_durations_and_limits_rejected(self, field, value):
        with pytest.raises(ValidationError, match="must be at least 1"):
            make_settings(**{field: value})

    def test_samesite_normalized(self):
        assert make_settings(COOKIE_SAMESITE="Lax").COOKIE_SAMESITE == "lax"

    def test_samesite_unknown_rejected(self):
        with pytest.raises(ValidationError):
            make_settings(COOKIE_SAMESITE="sometimes")

    def test_lockout_threshold_at_least_one(self):
        with pytest.raises(ValidationError):
            make_settings(LOCKOUT_MAX_ATTEMPTS=0)

    def test_log_level_normalized(self):
        assert make_settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
