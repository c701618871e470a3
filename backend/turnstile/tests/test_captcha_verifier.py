from __future__ import annotations

import json

import httpx
import pytest

from backend.turnstile.app.captcha import TurnstileVerifier
from backend.turnstile.app.config import DEFAULT_VERIFICATION_URL, TurnstileSettings

SECRET = "secret-key"


def _verifier(handler, **kwargs) -> TurnstileVerifier:
    return TurnstileVerifier(
        secret_key=SECRET,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_successful_verification_posts_json_payload():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "hostname": "example.test"})

    verifier = _verifier(handler)

    assert await verifier.verify("  token-123 ", "1.2.3.4") is True
    assert len(seen) == 1
    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == DEFAULT_VERIFICATION_URL
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {
        "secret": SECRET,
        "response": "token-123",
        "remoteip": "1.2.3.4",
    }


@pytest.mark.asyncio
async def test_remote_ip_is_optional():
    bodies: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    assert await _verifier(handler).verify("token") is True
    assert "remoteip" not in bodies[0]


@pytest.mark.asyncio
async def test_server_error_is_false():
    verifier = _verifier(lambda request: httpx.Response(500, text="oops"))

    assert await verifier.verify("token", "1.2.3.4") is False


@pytest.mark.asyncio
async def test_rejected_token_is_false(caplog):
    verifier = _verifier(
        lambda request: httpx.Response(
            200, json={"success": False, "error-codes": ["invalid-input-response"]}
        )
    )

    with caplog.at_level("WARNING", logger="backend.turnstile.app.captcha"):
        assert await verifier.verify("token", "1.2.3.4") is False

    assert any(
        getattr(record, "reason", "") == "verification rejected: invalid-input-response"
        for record in caplog.records
    )


@pytest.mark.asyncio
async def test_connection_failure_is_false():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    assert await _verifier(handler).verify("token", "1.2.3.4") is False


@pytest.mark.asyncio
async def test_non_json_body_is_false():
    verifier = _verifier(lambda request: httpx.Response(200, text="<html>challenge</html>"))

    assert await verifier.verify("token") is False


@pytest.mark.asyncio
async def test_non_object_body_is_false():
    verifier = _verifier(lambda request: httpx.Response(200, json=[True]))

    assert await verifier.verify("token") is False


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, "", "   "])
async def test_blank_token_skips_network(token):
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("siteverify must not be called")

    assert await _verifier(handler).verify(token) is False


@pytest.mark.asyncio
async def test_disabled_verifier_rejects_everything():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("siteverify must not be called")

    verifier = TurnstileVerifier(secret_key="  ", transport=httpx.MockTransport(handler))

    assert verifier.enabled is False
    assert await verifier.verify("token") is False


@pytest.mark.asyncio
async def test_bypass_token_accepted_without_network():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("siteverify must not be called")

    verifier = _verifier(handler, test_bypass_token="pass")

    assert await verifier.verify("pass") is True


def test_from_settings_copies_configuration():
    config = TurnstileSettings(
        site_key="site",
        secret_key="secret",
        verification_url="https://verify.example.test/siteverify",
        timeout_seconds=2.5,
    )

    verifier = TurnstileVerifier.from_settings(config)

    assert verifier.enabled
    assert verifier.site_key == "site"
