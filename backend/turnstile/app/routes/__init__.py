"""HTTP routers exposed by the Turnstile gateway."""

from . import captcha

__all__ = ["captcha"]
