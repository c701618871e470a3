"""FastAPI application factory for the Turnstile gateway."""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .logging import setup_logging
from .routes import captcha

setup_logging()


def create_app(*, api_prefix: str | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Parameters
    ----------
    api_prefix:
        Optional path prefix under which the routers are mounted. When ``None``
        the routers are mounted at the application root.
    """

    app = FastAPI(title="Turnstile Gateway", version="1.0")

    if settings.env == "dev":
        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    router_prefix = api_prefix.rstrip("/") if api_prefix else ""
    if router_prefix and not router_prefix.startswith("/"):
        router_prefix = f"/{router_prefix}"
    app.include_router(captcha.router, prefix=router_prefix)

    return app


app = create_app(api_prefix="/api")
