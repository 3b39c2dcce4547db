"""FastAPI server exposing the Zomato partner OTP request endpoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.models import SendOTPRequest
from otp_controller.errors import OTPAutomationError, http_status_for
from otp_controller.otp_executor import OTPExecutor
from utils.log_utils import tprint

executor = OTPExecutor()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await executor.shutdown()


app = FastAPI(title="Zomato OTP API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": message}
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request body")


@app.get("/health")
def health():
    return {"status": "ok", "message": "Zomato OTP API is running"}


@app.post("/api/send-otp")
async def send_otp(req: SendOTPRequest):
    if not req.identifier:
        return _error(400, "identifier is required")
    try:
        data = await executor.send_otp(
            req.identifier, req.country_code, login_type=req.type
        )
    except OTPAutomationError as exc:
        tprint(f"[API][ERROR] send-otp failed ({exc.code}): {exc}")
        return _error(http_status_for(exc), str(exc) or "Failed to send OTP")
    except Exception as exc:
        tprint(f"[API][ERROR] Unhandled error: {exc}")
        return _error(500, str(exc) or "Internal server error")
    return {"success": True, "message": "OTP sent successfully", "data": data}
