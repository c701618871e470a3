"""Server-side verification of Turnstile response tokens."""
from __future__ import annotations

import logging
from typing import Any

import httpx

from .config import DEFAULT_VERIFICATION_URL, TurnstileSettings
from .errors import VerificationError


logger = logging.getLogger(__name__)


class TurnstileVerifier:
    """Verify Turnstile tokens against the Cloudflare siteverify endpoint.

    Every failure mode (disabled verifier, empty token, transport error,
    non-2xx status, malformed body, ``success: false``) is reported as
    ``False``; the reason is logged and never raised to the caller.
    """

    def __init__(
        self,
        *,
        secret_key: str | None,
        verification_url: str = DEFAULT_VERIFICATION_URL,
        timeout_seconds: float = 5.0,
        site_key: str | None = None,
        test_bypass_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._secret_key = (secret_key or "").strip()
        self._verification_url = verification_url
        self._timeout_seconds = timeout_seconds
        self._site_key = site_key
        self._test_bypass_token = (test_bypass_token or "").strip() or None
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        config: TurnstileSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> TurnstileVerifier:
        return cls(
            secret_key=config.secret_key,
            verification_url=config.verification_url,
            timeout_seconds=config.timeout_seconds,
            site_key=config.site_key,
            test_bypass_token=config.test_bypass_token,
            transport=transport,
        )

    @property
    def enabled(self) -> bool:
        """Return ``True`` when the verifier has the required credentials."""

        return bool(self._secret_key)

    @property
    def site_key(self) -> str | None:
        return self._site_key

    async def verify(self, token: str | None, remote_ip: str | None = None) -> bool:
        """Validate ``token`` with Cloudflare Turnstile."""

        if not self.enabled:
            logger.debug("turnstile verifier disabled – treating token as invalid")
            return False

        if token is None:
            return False

        cleaned_token = token.strip()
        if not cleaned_token:
            return False

        if self._test_bypass_token and cleaned_token == self._test_bypass_token:
            logger.debug("turnstile token matched bypass token")
            return True

        try:
            await self._siteverify(cleaned_token, remote_ip)
        except VerificationError as exc:
            logger.warning(
                "turnstile verification failed",
                extra={"reason": exc.reason, "remote_ip": remote_ip},
            )
            return False
        return True

    async def _siteverify(self, token: str, remote_ip: str | None) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "secret": self._secret_key,
            "response": token,
        }
        if remote_ip:
            payload["remoteip"] = remote_ip

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(self._verification_url, json=payload)
        except httpx.HTTPError as exc:
            raise VerificationError(f"request failed: {exc!r}") from exc

        if not response.is_success:
            raise VerificationError(
                f"verification request failed with status {response.status_code}"
            )

        try:
            body = response.json()
        except ValueError as exc:
            raise VerificationError("verification response was not JSON") from exc
        if not isinstance(body, dict):
            raise VerificationError("verification response was not a JSON object")

        if body.get("success") is not True:
            codes = body.get("error-codes") or []
            detail = ", ".join(str(code) for code in codes) if codes else "unknown error"
            raise VerificationError(f"verification rejected: {detail}")
        return body


__all__ = ["TurnstileVerifier"]
