"""Exception hierarchy shared by the widget coordinator and the verifier."""
from __future__ import annotations


class TurnstileError(Exception):
    """Base class for Turnstile gateway errors."""


class DuplicateFieldNameError(TurnstileError, ValueError):
    """Raised when a widget registers a field name that is already live."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Turnstile field {field_name!r} is already registered")
        self.field_name = field_name


class ScriptLoadError(TurnstileError, RuntimeError):
    """Raised on the shared load handle when the widget script fails to load."""

    def __init__(self, url: str) -> None:
        super().__init__(f"Failed to load Cloudflare Turnstile script from {url}")
        self.url = url


class VerificationError(TurnstileError):
    """Internal failure of a siteverify round trip."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


__all__ = [
    "DuplicateFieldNameError",
    "ScriptLoadError",
    "TurnstileError",
    "VerificationError",
]
