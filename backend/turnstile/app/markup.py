"""HTML fragments the widget script expects to find in the page."""
from __future__ import annotations

from html import escape

from .dispatch import DispatchNames, names_for
from .registry import WidgetEntry

IMPLICIT_CONTAINER_PREFIX = "cft-"
IMPLICIT_CLASS = "cf-turnstile"


def implicit_container_id(field_name: str) -> str:
    return f"{IMPLICIT_CONTAINER_PREFIX}{field_name}"


def _attrs(pairs: list[tuple[str, str | None]]) -> str:
    return "".join(
        f' {name}="{escape(value, quote=True)}"' for name, value in pairs if value is not None
    )


def script_tag(url: str) -> str:
    return f"<script{_attrs([('src', url)])} async defer></script>"


def explicit_anchor(entry: WidgetEntry) -> str:
    """Bare container; the render trigger initialises it imperatively."""

    return f"<div{_attrs([('id', entry.container_id)])}></div>"


def implicit_anchor(
    entry: WidgetEntry,
    site_key: str | None,
    names: DispatchNames | None = None,
) -> str:
    """Declarative container scanned by the implicit script variant.

    Callback attributes carry dispatch names, which the script resolves in
    the page globals when an event fires.
    """

    names = names or names_for(entry.field_name)
    pairs: list[tuple[str, str | None]] = [
        ("id", entry.container_id),
        ("class", IMPLICIT_CLASS),
        ("data-sitekey", site_key or ""),
        ("data-theme", entry.theme),
        ("data-size", entry.size),
        ("data-response-field-name", entry.field_name),
        ("data-callback", names.verify),
        ("data-error-callback", names.error),
        ("data-expired-callback", names.expire),
        ("data-timeout-callback", names.timeout),
    ]
    return f"<div{_attrs(pairs)}></div>"


__all__ = [
    "IMPLICIT_CLASS",
    "IMPLICIT_CONTAINER_PREFIX",
    "explicit_anchor",
    "implicit_anchor",
    "implicit_container_id",
    "script_tag",
]
