"""FastAPI application package for the Turnstile gateway."""

from .logging import setup_logging

setup_logging()

__all__ = ["setup_logging"]
