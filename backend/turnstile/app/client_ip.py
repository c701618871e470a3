"""Client IP extraction from proxy headers."""
from __future__ import annotations

from collections.abc import Mapping

UNKNOWN_IP = "0.0.0.0"

# Checked in order; the forwarded-for chain lists the original client first.
IP_HEADERS: tuple[str, ...] = ("cf-connecting-ip", "x-forwarded-for", "x-real-ip")


def _lookup(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is None:
        for key, candidate in headers.items():
            if key.lower() == name:
                value = candidate
                break
    return value


def resolve_client_ip(headers: Mapping[str, str], default: str = UNKNOWN_IP) -> str:
    """Return the first client address found in ``headers`` or ``default``."""

    for name in IP_HEADERS:
        value = _lookup(headers, name)
        if not value:
            continue
        if name == "x-forwarded-for":
            value = value.split(",", 1)[0]
        candidate = value.strip()
        if candidate:
            return candidate
    return default


__all__ = ["IP_HEADERS", "UNKNOWN_IP", "resolve_client_ip"]
