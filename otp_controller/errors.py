"""Structured errors raised by the OTP automation flow."""

from __future__ import annotations

INVALID_REQUEST = "OTP_INVALID_REQUEST"
TIMEOUT = "OTP_TIMEOUT"
ACCESS_DENIED = "OTP_ACCESS_DENIED"
LOGIN_BUTTON_MISSING = "OTP_LOGIN_BUTTON_MISSING"
IFRAME_MISSING = "OTP_IFRAME_MISSING"
ELEMENT_NOT_CLICKABLE = "OTP_ELEMENT_NOT_CLICKABLE"
BROWSER_LAUNCH_FAILED = "OTP_BROWSER_LAUNCH_FAILED"
UNEXPECTED = "OTP_UNEXPECTED"

_HTTP_STATUS = {
    INVALID_REQUEST: 400,
    ACCESS_DENIED: 403,
}


class OTPAutomationError(RuntimeError):
    """Structured error from an OTP automation step."""

    def __init__(
        self, code: str, message: str, screenshot_path: str | None = None
    ) -> None:
        super().__init__(message)
        self.code = code
        self.screenshot_path = screenshot_path


def http_status_for(exc: BaseException) -> int:
    """Map an error to the HTTP status returned to API callers."""
    if isinstance(exc, OTPAutomationError):
        return _HTTP_STATUS.get(exc.code, 500)
    return 500
