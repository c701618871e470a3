"""Captcha widget and verification endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from ..captcha import TurnstileVerifier
from ..client_ip import UNKNOWN_IP, resolve_client_ip
from ..config import TurnstileSettings, WidgetSize, WidgetTheme
from ..dependencies import get_captcha_verifier, get_turnstile_settings
from ..markup import explicit_anchor, implicit_anchor, implicit_container_id, script_tag
from ..registry import WidgetEntry
from ..schemas.captcha import CaptchaConfigResponse, VerifyRequest, VerifyResponse
from ..script_loader import ScriptMode

router = APIRouter(prefix="/captcha", tags=["captcha"])

logger = logging.getLogger(__name__)

FIELD_NAME_PATTERN = r"^[A-Za-z][A-Za-z0-9_.:-]*$"


def _extract_client_ip(request: Request) -> str:
    candidate = resolve_client_ip(request.headers, default="")
    if candidate:
        return candidate
    client = request.client
    if client and client.host:
        return client.host
    return UNKNOWN_IP


@router.get("/config", response_model=CaptchaConfigResponse)
def get_captcha_config(
    config: TurnstileSettings = Depends(get_turnstile_settings),
) -> CaptchaConfigResponse:
    """Return the public widget configuration for frontend integration."""

    return CaptchaConfigResponse(
        enabled=config.enabled,
        site_key=config.site_key,
        script_url=config.script_url,
        explicit_script_url=config.explicit_script_url,
    )


@router.get("/widget", response_class=HTMLResponse)
def get_widget_markup(
    field_name: str | None = Query(default=None, alias="fieldName", pattern=FIELD_NAME_PATTERN),
    theme: WidgetTheme | None = Query(default=None),
    size: WidgetSize | None = Query(default=None),
    mode: ScriptMode = Query(default=ScriptMode.IMPLICIT),
    config: TurnstileSettings = Depends(get_turnstile_settings),
) -> HTMLResponse:
    """Return the anchor element and script tag for one widget."""

    name = field_name or config.default_field_name
    if mode is ScriptMode.EXPLICIT:
        entry = WidgetEntry(
            field_name=name,
            size=size or config.default_size,
            theme=theme or config.default_theme,
            mode=mode,
        )
        body = explicit_anchor(entry) + script_tag(config.explicit_script_url)
    else:
        entry = WidgetEntry(
            field_name=name,
            size=size or config.default_size,
            theme=theme or config.default_theme,
            container_id=implicit_container_id(name),
            mode=mode,
        )
        body = implicit_anchor(entry, config.site_key) + script_tag(config.script_url)
    return HTMLResponse(body)


@router.post("/verify", response_model=VerifyResponse)
async def verify_token(
    payload: VerifyRequest,
    request: Request,
    verifier: TurnstileVerifier = Depends(get_captcha_verifier),
) -> VerifyResponse:
    """Check a widget response token; failures are reported as ``success: false``."""

    remote_ip = payload.remote_ip or _extract_client_ip(request)
    success = await verifier.verify(payload.token, remote_ip)
    if not success:
        logger.info("turnstile token rejected", extra={"remote_ip": remote_ip})
    return VerifyResponse(success=success)
