"""Stealth configuration for the headless Chromium used by the OTP flow.

Launch flags, context options and an init script that hide the usual
automation fingerprints (``navigator.webdriver``, empty plugin list, missing
``window.chrome``) from the partner portal's bot detection.
"""

from __future__ import annotations

import os
from typing import Any, Mapping

from playwright.async_api import Page

from utils.log_utils import tprint

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

VIEWPORT = {"width": 1920, "height": 1080}

LAUNCH_ARGS: tuple[str, ...] = (
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--window-size=1920,1080",
    "--start-maximized",
    "--lang=en-US,en",
)

STEALTH_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate, br",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8",
    "Upgrade-Insecure-Requests": "1",
    "Connection": "keep-alive",
    "Cache-Control": "max-age=0",
}

STEALTH_JS = """
Object.defineProperty(navigator, 'webdriver', { get: () => false });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'platform', { get: () => 'Win32' });
Object.defineProperty(navigator, 'hardwareConcurrency', { get: () => 8 });
Object.defineProperty(navigator, 'deviceMemory', { get: () => 8 });
window.chrome = { runtime: {} };
const originalQuery = window.navigator.permissions.query;
window.navigator.permissions.query = (parameters) => (
    parameters.name === 'notifications'
        ? Promise.resolve({ state: Notification.permission })
        : originalQuery(parameters)
);
"""

SERVERLESS_ENV_VARS = ("LAMBDA_TASK_ROOT", "AWS_EXECUTION_ENV", "NETLIFY")


def is_serverless(environ: Mapping[str, str] | None = None) -> bool:
    env = os.environ if environ is None else environ
    return any(env.get(name) for name in SERVERLESS_ENV_VARS)


def browser_launch_options(
    settings: Mapping[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Return kwargs for ``playwright.chromium.launch``."""
    options: dict[str, Any] = {
        "headless": bool(settings.get("playwright_headless", True)),
        "args": list(LAUNCH_ARGS),
    }
    if is_serverless(environ):
        executable_path = settings.get("chromium_executable_path")
        if executable_path:
            options["executable_path"] = str(executable_path)
            # Serverless Chromium builds only run headless.
            options["headless"] = True
            return options
        tprint(
            "[STEALTH][WARN] Serverless environment detected but no chromium_executable_path "
            "configured; using the Playwright-managed Chromium"
        )
    return options


def context_options() -> dict[str, Any]:
    """Return kwargs for ``browser.new_context``.

    The user agent is set on the context so out-of-process iframes such as
    the accounts login frame send it too.
    """
    return {
        "user_agent": USER_AGENT,
        "viewport": dict(VIEWPORT),
        "device_scale_factor": 1,
        "ignore_https_errors": True,
        "locale": "en-US",
    }


async def make_page_stealth(page: Page) -> None:
    """Mask automation signals on *page*. Failures are logged, not raised."""
    try:
        await page.add_init_script(STEALTH_JS)
        await page.set_viewport_size(dict(VIEWPORT))
        await page.set_extra_http_headers(dict(STEALTH_HEADERS))
        tprint("[STEALTH][DEBUG] Stealth mode enabled for page")
    except Exception as exc:
        tprint(f"[STEALTH][WARN] Failed to enable stealth mode: {exc}")


async def set_user_agent(page: Page, user_agent: str = USER_AGENT) -> None:
    """Override the user agent and its platform hints on *page* through CDP.

    Only the page target is covered; the context-level user agent from
    ``context_options`` reaches iframes.
    """
    cdp = await page.context.new_cdp_session(page)
    await cdp.send(
        "Network.setUserAgentOverride",
        {
            "userAgent": user_agent,
            "acceptLanguage": "en-US,en",
            "platform": "Win32",
        },
    )
