"""Tests for portal client configuration."""

import pytest
from portal.settings import DEFAULT_API_URL, PortalSettings
from pydantic import ValidationError
from shared.orders import ReplacementStatus


class TestFromEnv:
    def test_defaults(self, monkeypatch):
        for name in ("PORTAL_API_URL", "PORTAL_TIMEOUT_SECONDS", "REPLACEMENT_REASON_REQUIRED", "REPLACEMENT_WINDOW_DAYS"):
            monkeypatch.delenv(name, raising=False)
        settings = PortalSettings.from_env()
        assert settings.api_url == DEFAULT_API_URL
        assert settings.timeout_seconds == 10.0
        assert settings.reason_required == frozenset({ReplacementStatus.REJECTED})
        assert settings.window_days == 7

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("PORTAL_API_URL", "https://returns.example.com/")
        monkeypatch.setenv("PORTAL_TIMEOUT_SECONDS", "2.5")
        monkeypatch.setenv("REPLACEMENT_REASON_REQUIRED", "cancelled")
        settings = PortalSettings.from_env()
        assert settings.api_url == "https://returns.example.com"
        assert settings.timeout_seconds == 2.5
        assert ReplacementStatus.CANCELLED in settings.reason_required

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            PortalSettings(timeout_seconds=0)


class TestWithPolicy:
    def test_adopts_server_policy(self):
        settings = PortalSettings().with_policy({"reasonRequired": ["cancelled", "rejected"], "windowDays": 14})
        assert settings.reason_required == frozenset({ReplacementStatus.REJECTED, ReplacementStatus.CANCELLED})
        assert settings.window_days == 14

    def test_empty_policy_keeps_current_values(self):
        settings = PortalSettings(window_days=5)
        assert settings.with_policy({}) == settings
