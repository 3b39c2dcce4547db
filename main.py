"""Entry point for the Zomato OTP API server."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from utils.settings_store import get_settings, refresh_settings


def _load_env_files() -> None:
    """Load .env files from common locations (repo, cwd)."""
    candidates: list[Path] = []
    cwd = Path.cwd()
    candidates.extend([cwd / "env/.env", cwd / ".env"])

    module_root = Path(__file__).resolve().parent
    candidates.extend([module_root / "env/.env", module_root / ".env"])

    for path in candidates:
        if path.exists():
            load_dotenv(dotenv_path=str(path), override=False)


def bootstrap() -> None:
    """Load configuration and serve the API with uvicorn."""
    _load_env_files()
    # Settings may have been cached before .env values were visible.
    refresh_settings()
    settings = get_settings()

    host = os.getenv("OTP_API_HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "3000"))
    log_level = str(settings.get("log_level", "INFO")).upper()
    log_level = {"DEEP": "DEBUG", "WARN": "WARNING"}.get(log_level, log_level)

    print(f"[MAIN] Server running on http://{host}:{port}")
    print(f"[MAIN] API endpoint: http://{host}:{port}/api/send-otp")
    print(f"[MAIN] Health check: http://{host}:{port}/health")
    uvicorn.run(
        "api.server:app",
        host=host,
        port=port,
        log_level=log_level.lower(),
        access_log=bool(settings.get("http_access_log", True)),
    )


if __name__ == "__main__":
    bootstrap()
