"""Playwright-based executor for Zomato partner OTP requests."""

from __future__ import annotations

import time
import uuid
from pathlib import Path
from typing import Any

from playwright.async_api import Browser, Page, Playwright, async_playwright

from otp_controller.errors import (
    BROWSER_LAUNCH_FAILED,
    INVALID_REQUEST,
    UNEXPECTED,
    OTPAutomationError,
)
from otp_controller.session_cache import OTPSession, OTPSessionCache
from otp_controller.stealth import (
    browser_launch_options,
    context_options,
    make_page_stealth,
    set_user_agent,
)
from otp_controller.timeouts import with_timeout
from otp_controller.web_adapters import zomato
from utils.log_utils import tprint
from utils.settings_store import get_settings

BROWSER_LAUNCH_TIMEOUT_MS = 30_000
PAGE_CREATION_TIMEOUT_MS = 10_000
USER_AGENT_TIMEOUT_MS = 5_000


class OTPExecutor:
    """Launches a stealth browser per request and caches it for verification."""

    def __init__(
        self,
        settings: dict | None = None,
        cache: OTPSessionCache | None = None,
    ) -> None:
        self._settings = settings if settings is not None else get_settings()
        self._cache = cache or OTPSessionCache(
            ttl_secs=float(self._settings.get("session_ttl_secs", 300))
        )

    @property
    def cache(self) -> OTPSessionCache:
        return self._cache

    # ------------------------------------------------------------------
    # Browser lifecycle
    # ------------------------------------------------------------------

    async def launch_browser(self, playwright: Playwright) -> Browser:
        """Launch Chromium with the stealth flags.

        Stopping *playwright* on failure is left to the caller.
        """
        try:
            browser = await playwright.chromium.launch(
                **browser_launch_options(self._settings)
            )
        except Exception as exc:
            raise OTPAutomationError(
                code=BROWSER_LAUNCH_FAILED,
                message=(
                    f"Failed to launch browser: {exc}\n"
                    "If Chromium is not installed, run: playwright install chromium"
                ),
            ) from exc
        tprint("[OTP_EXEC][DEBUG] Browser launched")
        return browser

    async def _new_page(self, browser: Browser) -> Page:
        context = await browser.new_context(**context_options())
        return await context.new_page()

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    async def send_otp(
        self,
        identifier: str,
        country_code: str | None = None,
        login_type: str = "phone",
    ) -> dict[str, Any]:
        """Request an OTP for *identifier* and return ``{"sessionId": ...}``.

        The browser stays open in the session cache until the TTL expires.
        """
        if not identifier:
            raise OTPAutomationError(code=INVALID_REQUEST, message="identifier is required")
        if login_type not in zomato.LOGIN_TYPES:
            raise OTPAutomationError(
                code=INVALID_REQUEST,
                message=f"type must be one of {', '.join(zomato.LOGIN_TYPES)}",
            )

        tprint(f"[OTP_EXEC] Initiating login for: {identifier}")
        if country_code:
            tprint(f"[OTP_EXEC][DEBUG] Country code supplied: {country_code}")

        playwright: Playwright | None = None
        browser: Browser | None = None
        page: Page | None = None
        try:
            playwright = await async_playwright().start()
            browser = await with_timeout(
                self.launch_browser(playwright), BROWSER_LAUNCH_TIMEOUT_MS, "Browser launch"
            )
            page = await with_timeout(
                self._new_page(browser), PAGE_CREATION_TIMEOUT_MS, "Page creation"
            )
            await make_page_stealth(page)
            await with_timeout(
                set_user_agent(page), USER_AGENT_TIMEOUT_MS, "User agent setup"
            )

            frame = await zomato.request_otp(
                page,
                partners_url=str(
                    self._settings.get("zomato_partners_url") or zomato.DEFAULT_PARTNERS_URL
                ),
                identifier=identifier,
                login_type=login_type,
            )

            session_id = str(uuid.uuid4())
            self._cache.put(
                session_id,
                OTPSession(
                    browser=browser,
                    page=page,
                    frame=frame,
                    playwright=playwright,
                    identifier=identifier,
                    login_type=login_type,
                ),
            )
            return {"sessionId": session_id}
        except OTPAutomationError as exc:
            exc.screenshot_path = await self._save_error_screenshot(page, exc.code)
            await self._close_browser(playwright, browser)
            raise
        except Exception as exc:
            screenshot_path = await self._save_error_screenshot(page, UNEXPECTED)
            await self._close_browser(playwright, browser)
            raise OTPAutomationError(
                code=UNEXPECTED, message=str(exc), screenshot_path=screenshot_path
            ) from exc

    # ------------------------------------------------------------------
    # Error handling helpers
    # ------------------------------------------------------------------

    async def _close_browser(
        self, playwright: Playwright | None, browser: Browser | None
    ) -> None:
        if browser is not None:
            try:
                if browser.is_connected():
                    await browser.close()
            except Exception as exc:
                tprint(f"[OTP_EXEC][WARN] Error closing browser: {exc}")
        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as exc:
                tprint(f"[OTP_EXEC][WARN] Error stopping Playwright: {exc}")

    async def _save_error_screenshot(self, page: Page | None, code: str) -> str | None:
        if page is None or not self._settings.get("save_error_screenshots", False):
            return None
        try:
            screenshots_dir = Path(
                self._settings.get("error_screenshot_dir")
                or Path("user_data", "error_screenshots")
            )
            screenshots_dir.mkdir(parents=True, exist_ok=True)
            path = str(screenshots_dir / f"{code.lower()}_{int(time.time())}.png")
            if not page.is_closed():
                await page.screenshot(path=path, full_page=True)
                tprint(f"[OTP_EXEC] Error screenshot saved: {path}")
                return path
        except Exception as ss_exc:
            tprint(f"[OTP_EXEC][WARN] Failed to save screenshot: {ss_exc}")
        return None

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    async def shutdown(self) -> None:
        """Close every cached session."""
        await self._cache.close_all()
