"""Timeout racing and selector retry helpers for Playwright steps."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

from playwright.async_api import ElementHandle, Frame, Page

from otp_controller.errors import TIMEOUT, OTPAutomationError
from utils.log_utils import tprint

T = TypeVar("T")


async def with_timeout(
    awaitable: Awaitable[T], timeout_ms: float, operation_name: str
) -> T:
    """Await *awaitable*, failing with OTP_TIMEOUT after *timeout_ms*.

    The losing operation is cancelled. Errors raised by the awaitable itself
    propagate unchanged.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
    except asyncio.CancelledError:
        task.cancel()
        raise
    if task in done:
        return task.result()

    task.cancel()
    await asyncio.wait({task})
    raise OTPAutomationError(
        code=TIMEOUT,
        message=f"{operation_name} timed out after {int(timeout_ms)}ms",
    )


async def pause(ms: float) -> None:
    """Fixed settle delay between flow steps."""
    await asyncio.sleep(ms / 1000)


async def wait_for_selector_with_retry(
    page_or_frame: Page | Frame | Any,
    selector: str,
    *,
    timeout_ms: float = 60_000,
    retries: int = 3,
    retry_delay_ms: float = 1_000,
    visible: bool = False,
) -> ElementHandle:
    """Wait for *selector*, retrying with exponential backoff.

    The first attempt gets the full timeout; each retry gets
    ``timeout_ms / (retries + 1)``. Between attempts the delay doubles,
    starting at *retry_delay_ms*. The last error is re-raised.
    """
    state = "visible" if visible else "attached"
    retries = max(retries, 0)
    for attempt in range(retries + 1):
        attempt_timeout = timeout_ms if attempt == 0 else timeout_ms / (retries + 1)
        try:
            element = await page_or_frame.wait_for_selector(
                selector, timeout=attempt_timeout, state=state
            )
            if attempt > 0:
                tprint(f"[RETRY] Selector found on retry attempt {attempt}: {selector}")
            return element
        except Exception:
            if attempt == retries:
                raise
            delay = retry_delay_ms * (2 ** attempt)
            tprint(
                f"[RETRY][DEBUG] Selector not found, retrying in {int(delay)}ms "
                f"(attempt {attempt + 1}/{retries}): {selector}"
            )
            await pause(delay)
