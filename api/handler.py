"""Lambda/Netlify-style function handler for the OTP request flow.

Warm containers reuse one event loop so cached sessions and their cleanup
timers outlive a single invocation.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any

from pydantic import ValidationError

from api.models import SendOTPRequest
from otp_controller.errors import OTPAutomationError, http_status_for
from otp_controller.otp_executor import OTPExecutor
from utils.log_utils import tprint

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

_loop: asyncio.AbstractEventLoop | None = None
_executor: OTPExecutor | None = None


def _get_loop() -> asyncio.AbstractEventLoop:
    global _loop
    if _loop is None or _loop.is_closed():
        _loop = asyncio.new_event_loop()
    return _loop


def _get_executor() -> OTPExecutor:
    global _executor
    if _executor is None:
        _executor = OTPExecutor()
    return _executor


def _response(status_code: int, payload: dict | None = None) -> dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": dict(CORS_HEADERS),
        "body": json.dumps(payload) if payload is not None else "",
    }


def handler(event: dict, context: Any = None) -> dict[str, Any]:
    method = str(event.get("httpMethod", "")).upper()
    if method == "OPTIONS":
        return _response(200)
    if method != "POST":
        return _response(405, {"success": False, "error": "Method not allowed. Use POST."})

    try:
        body = json.loads(event.get("body") or "{}")
    except json.JSONDecodeError:
        return _response(400, {"success": False, "error": "Invalid JSON body"})
    if not isinstance(body, dict):
        return _response(400, {"success": False, "error": "Invalid JSON body"})

    try:
        req = SendOTPRequest.model_validate(body)
    except ValidationError:
        return _response(400, {"success": False, "error": "Invalid request body"})
    if not req.identifier:
        return _response(400, {"success": False, "error": "identifier is required"})

    try:
        data = _get_loop().run_until_complete(
            _get_executor().send_otp(
                req.identifier, req.country_code, login_type=req.type
            )
        )
    except OTPAutomationError as exc:
        tprint(f"[HANDLER][ERROR] Error in sendOTP ({exc.code}): {exc}")
        return _response(
            http_status_for(exc),
            {"success": False, "error": str(exc) or "Failed to send OTP"},
        )
    return _response(
        200, {"success": True, "message": "OTP sent successfully", "data": data}
    )
