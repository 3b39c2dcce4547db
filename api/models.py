"""Request bodies shared by the HTTP server and the serverless handler."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SendOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    identifier: Optional[str] = None
    country_code: Optional[str] = Field(default=None, alias="countryCode")
    type: str = "phone"
