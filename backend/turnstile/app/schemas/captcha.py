"""Pydantic models for the captcha endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CaptchaConfigResponse(BaseModel):
    """Response schema for ``GET /captcha/config``."""

    enabled: bool
    site_key: str | None = Field(default=None, alias="siteKey")
    script_url: str = Field(alias="scriptUrl")
    explicit_script_url: str = Field(alias="explicitScriptUrl")
    provider: Literal["turnstile"] = "turnstile"

    model_config = ConfigDict(populate_by_name=True)


class VerifyRequest(BaseModel):
    """Request schema for ``POST /captcha/verify``."""

    token: str = Field(min_length=1)
    remote_ip: str | None = Field(default=None, alias="remoteIp")

    model_config = ConfigDict(populate_by_name=True)


class VerifyResponse(BaseModel):
    """Response schema for ``POST /captcha/verify``."""

    success: bool
