"""Common FastAPI dependency helpers."""
from __future__ import annotations

from .captcha import TurnstileVerifier
from .config import TurnstileSettings, settings


_captcha_verifier = TurnstileVerifier.from_settings(settings.turnstile)


def get_turnstile_settings() -> TurnstileSettings:
    """Return the active Turnstile configuration."""

    return settings.turnstile


def get_captcha_verifier() -> TurnstileVerifier:
    """Return the configured Turnstile verifier."""

    return _captcha_verifier


__all__ = ["get_captcha_verifier", "get_turnstile_settings"]
