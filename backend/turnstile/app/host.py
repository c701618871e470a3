"""Boundary types for the host page the widget script runs in.

The coordinator never touches a real browser. It talks to the page through
:class:`HostPage`, to page globals through :class:`GlobalScope` and to the
third-party script through :class:`TurnstileAPI`. Browser bridges (Pyodide,
a headless driver, test fakes) implement these protocols.
"""
from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from .logging import get_logger


logger = get_logger("turnstile.host")

TURNSTILE_GLOBAL = "turnstile"


@dataclass(slots=True)
class ScriptTag:
    """A ``<script>`` element about to be appended to the page body."""

    src: str
    async_: bool = True
    on_load: Callable[[], None] = field(default=lambda: None, repr=False)
    on_error: Callable[[], None] = field(default=lambda: None, repr=False)


@runtime_checkable
class HostPage(Protocol):
    """The subset of the page document the script loader needs."""

    def find_script(self, src: str) -> bool:
        """Return ``True`` when a script element with ``src`` is present."""
        ...

    def append_script(self, tag: ScriptTag) -> None:
        ...

    def remove_script(self, src: str) -> None:
        ...


@runtime_checkable
class TurnstileAPI(Protocol):
    """Operations the loaded widget script exposes as ``window.turnstile``."""

    def render(self, container: str, params: Mapping[str, Any]) -> str | None:
        ...

    def reset(self, widget: str | None = None) -> None:
        ...

    def remove(self, widget: str) -> None:
        ...

    def get_response(self, widget: str | None = None) -> str | None:
        ...


class GlobalScope(MutableMapping[str, Any]):
    """Page-global namespace the widget script resolves callbacks in.

    Entries are looked up by name at call time, which is the only way the
    script can reach Python callbacks. :meth:`dispatch` is the single shared
    entry point: unknown names are ignored rather than raising into the
    script.
    """

    def __init__(self, initial: Mapping[str, Any] | None = None) -> None:
        self._entries: dict[str, Any] = dict(initial or {})

    def __getitem__(self, name: str) -> Any:
        return self._entries[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self._entries[name] = value

    def __delitem__(self, name: str) -> None:
        del self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def turnstile(self) -> TurnstileAPI | None:
        """The widget script API, once the script has initialised."""

        return self._entries.get(TURNSTILE_GLOBAL)

    def dispatch(self, name: str, *args: Any) -> Any:
        target = self._entries.get(name)
        if not callable(target):
            logger.debug("global_dispatch_ignored", name=name)
            return None
        return target(*args)


__all__ = [
    "GlobalScope",
    "HostPage",
    "ScriptTag",
    "TURNSTILE_GLOBAL",
    "TurnstileAPI",
]
