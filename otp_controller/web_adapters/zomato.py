"""Zomato partner portal OTP-request automation using Playwright."""

from __future__ import annotations

from playwright.async_api import ElementHandle, Frame, Page

from otp_controller.errors import (
    ACCESS_DENIED,
    ELEMENT_NOT_CLICKABLE,
    IFRAME_MISSING,
    LOGIN_BUTTON_MISSING,
    OTPAutomationError,
)
from otp_controller.timeouts import pause, wait_for_selector_with_retry, with_timeout
from utils.log_utils import tprint

DEFAULT_PARTNERS_URL = "https://partner.zomato.com"

# ---------------------------------------------------------------------------
# Selectors: isolated here so future portal DOM changes only touch this
# file.  The login form lives inside an accounts.zomato.com iframe.
# ---------------------------------------------------------------------------
SELECTORS = {
    "login_button": "xpath=//button[.//span[text()='Login']]",
    "login_iframe": 'iframe[src*="accounts.zomato.com"]',
    "iframe_heading": "xpath=//h2[text()='Login']",
    "continue_with_email": 'div[aria-label="Continue with Email"]',
    "email_input": "xpath=//label[text()='Email']/preceding-sibling::section/input[@type='text']",
    "phone_input": "input[placeholder='Phone']",
    "send_otp_button": "xpath=//button[.//span[text()='Send One Time Password']]",
}

NAVIGATION_TIMEOUT_MS = 60_000
SETTLE_AFTER_NAVIGATION_MS = 2_000
SETTLE_AFTER_EMAIL_CHOICE_MS = 1_500
IFRAME_TIMEOUT_MS = 15_000
HEADING_TIMEOUT_MS = 10_000
INPUT_TIMEOUT_MS = 10_000
SEND_BUTTON_TIMEOUT_MS = 30_000

BLOCKED_MESSAGE = (
    "Zomato detected automated browser and blocked access. This may be due to "
    "bot detection. Please check browser stealth settings."
)

LOGIN_TYPES = ("phone", "email")


async def open_login_page(page: Page, partners_url: str) -> tuple[str, str]:
    """Navigate to the portal login page and return its (url, title)."""
    login_url = f"{partners_url.rstrip('/')}/login"
    tprint(f"[ZOMATO][DEBUG] Navigating to login page {login_url}")
    await with_timeout(
        page.goto(login_url, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS),
        NAVIGATION_TIMEOUT_MS,
        "Page navigation",
    )
    await pause(SETTLE_AFTER_NAVIGATION_MS)

    url = page.url
    try:
        title = await page.title()
    except Exception:
        title = "Unknown"
    tprint(f"[ZOMATO][DEBUG] Page loaded: URL={url}, Title={title}")
    return url, title


def ensure_not_blocked(title: str) -> None:
    """Raise OTP_ACCESS_DENIED when the portal served its bot block page."""
    if title == "Access Denied" or "access denied" in title.lower():
        tprint(f"[ZOMATO][ERROR] {BLOCKED_MESSAGE}")
        raise OTPAutomationError(code=ACCESS_DENIED, message=BLOCKED_MESSAGE)


async def click_login(page: Page, url: str, title: str) -> None:
    try:
        login_button = await wait_for_selector_with_retry(
            page,
            SELECTORS["login_button"],
            timeout_ms=60_000,
            retries=2,
            retry_delay_ms=2_000,
            visible=True,
        )
    except Exception as exc:
        message = (
            f"Failed to find Login button after navigation. Page URL: {url}, "
            f"Page Title: {title}. Original error: {exc}"
        )
        tprint(f"[ZOMATO][ERROR] {message}")
        raise OTPAutomationError(code=LOGIN_BUTTON_MISSING, message=message) from exc
    await login_button.click()


async def open_login_frame(page: Page) -> tuple[Frame, ElementHandle]:
    """Switch into the accounts iframe; return it with the email-choice button."""
    iframe = await page.wait_for_selector(
        SELECTORS["login_iframe"], timeout=IFRAME_TIMEOUT_MS
    )
    frame = await iframe.content_frame() if iframe else None
    if frame is None:
        raise OTPAutomationError(
            code=IFRAME_MISSING, message="Could not find the login iframe."
        )

    await frame.wait_for_selector(SELECTORS["iframe_heading"], timeout=HEADING_TIMEOUT_MS)
    continue_button = await frame.wait_for_selector(
        SELECTORS["continue_with_email"], state="visible", timeout=IFRAME_TIMEOUT_MS
    )
    return frame, continue_button


async def submit_email(
    page: Page, frame: Frame, continue_button: ElementHandle, identifier: str
) -> None:
    """Switch the form to email login and type *identifier*."""
    # bounding_box() is relative to the main frame viewport, so the page
    # mouse can click it directly.
    box = await continue_button.bounding_box()
    if not box:
        raise OTPAutomationError(
            code=ELEMENT_NOT_CLICKABLE,
            message='Could not get bounding box for "Continue with Email" button.',
        )
    await page.mouse.click(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)
    await pause(SETTLE_AFTER_EMAIL_CHOICE_MS)

    email_input = await frame.wait_for_selector(
        SELECTORS["email_input"], timeout=INPUT_TIMEOUT_MS
    )
    await email_input.type(identifier)


async def submit_phone(frame: Frame, identifier: str) -> None:
    phone_input = await frame.wait_for_selector(
        SELECTORS["phone_input"], timeout=INPUT_TIMEOUT_MS
    )
    await phone_input.type(identifier)


async def click_send_otp(frame: Frame) -> None:
    send_button = await frame.wait_for_selector(
        SELECTORS["send_otp_button"], timeout=SEND_BUTTON_TIMEOUT_MS
    )
    await send_button.click()
    tprint("[ZOMATO] OTP request sent.")


async def request_otp(
    page: Page, *, partners_url: str, identifier: str, login_type: str = "phone"
) -> Frame:
    """Drive the portal from the login page up to "Send One Time Password".

    Returns the login iframe so the caller can keep it for the later
    verification step.
    """
    url, title = await open_login_page(page, partners_url)
    ensure_not_blocked(title)
    await click_login(page, url, title)

    frame, continue_button = await open_login_frame(page)
    if login_type == "email":
        await submit_email(page, frame, continue_button, identifier)
    else:
        await submit_phone(frame, identifier)
    await click_send_otp(frame)
    return frame
