"""Tests for settings loading and environment overrides."""

import json

import pytest

from utils import settings_store


@pytest.fixture(autouse=True)
def reset_cache(monkeypatch):
    for name in settings_store._ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    yield
    settings_store._settings_cache.clear()


class TestSettingsStore:
    def test_defaults_when_file_missing(self, tmp_path):
        settings = settings_store.refresh_settings(tmp_path / "missing.json")

        assert settings["zomato_partners_url"] == "https://partner.zomato.com"
        assert settings["session_ttl_secs"] == 300
        assert settings["playwright_headless"] is True

    def test_file_overrides_defaults(self, tmp_path):
        path = tmp_path / "app_settings.json"
        path.write_text(json.dumps({"session_ttl_secs": 60, "log_level": "DEBUG"}))

        settings = settings_store.refresh_settings(path)

        assert settings["session_ttl_secs"] == 60
        assert settings["log_level"] == "DEBUG"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "app_settings.json"
        path.write_text(json.dumps({"zomato_partners_url": "https://from-file.test"}))
        monkeypatch.setenv("ZOMATO_PARTNERS_URL", "https://from-env.test")
        monkeypatch.setenv("PLAYWRIGHT_HEADLESS", "false")
        monkeypatch.setenv("OTP_SESSION_TTL_SECS", "120")

        settings = settings_store.refresh_settings(path)

        assert settings["zomato_partners_url"] == "https://from-env.test"
        assert settings["playwright_headless"] is False
        assert settings["session_ttl_secs"] == 120

    def test_invalid_env_value(self, tmp_path, monkeypatch):
        monkeypatch.setenv("OTP_SESSION_TTL_SECS", "five minutes")
        with pytest.raises(ValueError, match="OTP_SESSION_TTL_SECS"):
            settings_store.refresh_settings(tmp_path / "missing.json")

    def test_invalid_settings_file(self, tmp_path):
        path = tmp_path / "app_settings.json"
        path.write_text("{broken")
        with pytest.raises(ValueError, match="Invalid settings file"):
            settings_store.refresh_settings(path)

    def test_get_settings_returns_copy(self, tmp_path):
        settings_store.refresh_settings(tmp_path / "missing.json")
        first = settings_store.get_settings()
        first["log_level"] = "ERROR"
        assert settings_store.get_settings()["log_level"] == "INFO"
