"""Common test fixtures for Turnstile gateway tests."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from backend.turnstile.app.config import TurnstileSettings
from backend.turnstile.app.dependencies import get_turnstile_settings
from backend.turnstile.app.host import GlobalScope
from backend.turnstile.app.main import create_app
from backend.turnstile.app.widgets import TurnstileContext

from .utils import FakePage, FakeTurnstileAPI

SITE_KEY = "1x00000000000000000000AA"
SECRET_KEY = "1x0000000000000000000000000000000AA"


@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def scope() -> GlobalScope:
    return GlobalScope()


@pytest.fixture
def api() -> FakeTurnstileAPI:
    return FakeTurnstileAPI()


@pytest.fixture
def context(page: FakePage, scope: GlobalScope) -> Iterator[TurnstileContext]:
    turnstile = TurnstileContext(page, scope, site_key=SITE_KEY)
    yield turnstile
    turnstile.close()


@pytest.fixture
def turnstile_settings() -> TurnstileSettings:
    return TurnstileSettings(site_key=SITE_KEY, secret_key=SECRET_KEY)


@pytest.fixture
def app(turnstile_settings: TurnstileSettings) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_turnstile_settings] = lambda: turnstile_settings
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as http:
        yield http
