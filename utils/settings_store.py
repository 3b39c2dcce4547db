"""In-memory cache for app settings."""

from __future__ import annotations

import json
import os
import threading
from pathlib import Path
from typing import Any

SETTINGS_PATH = Path("config/app_settings.json")

DEFAULT_SETTINGS: dict[str, Any] = {
    "zomato_partners_url": "https://partner.zomato.com",
    "playwright_headless": True,
    "chromium_executable_path": None,
    "session_ttl_secs": 300,
    "log_level": "INFO",
    "save_error_screenshots": False,
    "error_screenshot_dir": os.path.join("user_data", "error_screenshots"),
    "http_access_log": True,
}

# env var -> (settings key, parser)
_ENV_OVERRIDES = {
    "ZOMATO_PARTNERS_URL": ("zomato_partners_url", str),
    "PLAYWRIGHT_HEADLESS": ("playwright_headless", lambda v: v.strip().lower() in {"1", "true", "yes", "on"}),
    "CHROMIUM_EXECUTABLE_PATH": ("chromium_executable_path", str),
    "OTP_SESSION_TTL_SECS": ("session_ttl_secs", int),
    "LOG_LEVEL": ("log_level", str),
}

_lock = threading.Lock()
_settings_cache: dict[str, Any] = {}


def _load_json(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid settings file {path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for env_name, (key, parse) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or raw == "":
            continue
        try:
            overrides[key] = parse(raw)
        except ValueError as exc:
            raise ValueError(f"Invalid value for {env_name}: {raw!r}") from exc
    return overrides


def refresh_settings(path: str | Path | None = None) -> dict[str, Any]:
    """Reload settings from disk and the environment and replace the cache."""
    data = dict(DEFAULT_SETTINGS)
    data.update(_load_json(Path(path) if path else SETTINGS_PATH))
    data.update(_env_overrides())
    with _lock:
        _settings_cache.clear()
        _settings_cache.update(data)
        return dict(_settings_cache)


def get_settings() -> dict[str, Any]:
    """Return a copy of the cached settings."""
    with _lock:
        if _settings_cache:
            return dict(_settings_cache)
    return refresh_settings()

