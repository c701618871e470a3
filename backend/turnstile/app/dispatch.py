"""Named entry points that route widget script events to their instance."""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from .host import GlobalScope
from .logging import get_logger
from .registry import WidgetEntry, WidgetRegistry


logger = get_logger("turnstile.dispatch")

DISPATCH_PREFIX = "__turnstile_"

# No tag is a suffix of another, so prefix + field + "_" + tag never collides
# across distinct field names.
VERIFY = "verify"
ERROR = "error"
EXPIRE = "expire"
TIMEOUT = "timeout"
EVENT_TAGS: tuple[str, ...] = (VERIFY, ERROR, EXPIRE, TIMEOUT)


@dataclass(frozen=True, slots=True)
class DispatchNames:
    verify: str
    error: str
    expire: str
    timeout: str

    def __iter__(self):
        return iter((self.verify, self.error, self.expire, self.timeout))

    def as_render_params(self) -> dict[str, str]:
        """Callback parameters in the shape the widget script expects."""

        return {
            "callback": self.verify,
            "error-callback": self.error,
            "expired-callback": self.expire,
            "timeout-callback": self.timeout,
        }


def names_for(field_name: str) -> DispatchNames:
    return DispatchNames(*(f"{DISPATCH_PREFIX}{field_name}_{tag}" for tag in EVENT_TAGS))


def _retired(*_: Any) -> None:
    return None


class CallbackDispatcher:
    """Install and retire the global callbacks of registered widgets.

    Entry points resolve the owning entry through the registry on every call,
    so an instance that has been unmounted is never reached. Retired entry
    points stay in the scope as no-ops because the script may still hold
    their names.
    """

    def __init__(self, registry: WidgetRegistry, scope: GlobalScope) -> None:
        self._registry = registry
        self._scope = scope

    names_for = staticmethod(names_for)

    def bind(self, field_name: str) -> DispatchNames:
        names = names_for(field_name)
        self._scope[names.verify] = self._entry_point(field_name, VERIFY)
        self._scope[names.error] = self._entry_point(field_name, ERROR)
        self._scope[names.expire] = self._entry_point(field_name, EXPIRE)
        self._scope[names.timeout] = self._entry_point(field_name, TIMEOUT)
        logger.debug("turnstile_dispatch_bound", field_name=field_name)
        return names

    def unbind(self, field_name: str) -> None:
        for name in names_for(field_name):
            self._scope[name] = _retired
        logger.debug("turnstile_dispatch_retired", field_name=field_name)

    def _entry_point(self, field_name: str, tag: str) -> Callable[..., None]:
        def _dispatch(*payload: Any) -> None:
            entry = self._registry.get(field_name)
            if entry is None:
                logger.debug("turnstile_dispatch_stale", field_name=field_name, event=tag)
                return
            self._deliver(entry, tag, payload)

        _dispatch.__name__ = f"{DISPATCH_PREFIX}{field_name}_{tag}"
        return _dispatch

    def _deliver(self, entry: WidgetEntry, tag: str, payload: tuple[Any, ...]) -> None:
        callbacks = entry.callbacks
        try:
            if tag == VERIFY:
                if callbacks.on_success is not None:
                    token = payload[0] if payload else ""
                    callbacks.on_success(token)
            elif tag == ERROR:
                if callbacks.on_error is not None:
                    callbacks.on_error()
            elif tag == EXPIRE:
                if callbacks.on_expire is not None:
                    callbacks.on_expire()
            elif callbacks.on_timeout is not None:
                callbacks.on_timeout()
            else:
                self._reset(entry)
        except Exception:
            logger.exception(
                "turnstile_callback_failed", field_name=entry.field_name, event=tag
            )

    def _reset(self, entry: WidgetEntry) -> None:
        api = self._scope.turnstile
        if api is None:
            logger.warning("turnstile_reset_unavailable", field_name=entry.field_name)
            return
        logger.info("turnstile_widget_timeout_reset", field_name=entry.field_name)
        api.reset(entry.selector)


__all__ = [
    "CallbackDispatcher",
    "DISPATCH_PREFIX",
    "DispatchNames",
    "EVENT_TAGS",
    "names_for",
]
