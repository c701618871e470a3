"""Render explicit-mode widgets once the widget script reports readiness."""
from __future__ import annotations

import asyncio
import enum
from typing import Any

from .dispatch import names_for
from .host import GlobalScope
from .logging import get_logger
from .registry import WidgetEntry, WidgetRegistry
from .script_loader import ScriptMode


logger = get_logger("turnstile.render")


class RenderState(str, enum.Enum):
    AWAITING_SCRIPT = "awaiting_script"
    RENDERING = "rendering"
    IDLE = "idle"


class RenderTrigger:
    """Issue one ``turnstile.render`` call per registered explicit widget.

    Entries present when the script becomes ready are rendered from a single
    registry snapshot. Afterwards every new registration is rendered on its
    own as soon as it is stored. A field is rendered at most once while it is
    registered, and an entry removed before its turn is skipped.
    """

    def __init__(
        self,
        registry: WidgetRegistry,
        scope: GlobalScope,
        *,
        site_key: str | None = None,
    ) -> None:
        self._registry = registry
        self._scope = scope
        self._site_key = site_key
        self._state = RenderState.AWAITING_SCRIPT
        self._handle: asyncio.Future[None] | None = None
        self._settled: asyncio.Future[None] | None = None
        self._rendered: dict[str, tuple[WidgetEntry, str]] = {}
        self._unsubscribe = registry.subscribe(self._on_registered)

    @property
    def state(self) -> RenderState:
        return self._state

    def is_rendered(self, field_name: str) -> bool:
        return field_name in self._rendered

    def widget_id(self, field_name: str) -> str | None:
        rendered = self._rendered.get(field_name)
        return rendered[1] if rendered is not None else None

    def watch(self, handle: asyncio.Future[None]) -> None:
        """Run :meth:`on_script_ready` once when ``handle`` completes successfully."""

        if handle is self._handle:
            return
        self._handle = handle
        handle.add_done_callback(self._on_loaded)

    def settle(self, handle: asyncio.Future[None]) -> None:
        """Process a completed ``handle`` now rather than on its done callback."""

        if handle.done():
            self._on_loaded(handle)

    def _on_loaded(self, handle: asyncio.Future[None]) -> None:
        if handle is self._settled or handle.cancelled():
            return
        error = handle.exception()
        if error is not None:
            logger.warning("turnstile_render_skipped", reason=str(error))
            return
        self._settled = handle
        self.on_script_ready()

    def on_script_ready(self) -> None:
        self._state = RenderState.RENDERING
        snapshot = self._registry.list()
        logger.debug("turnstile_render_snapshot", fields=snapshot.field_names())
        try:
            for entry in snapshot:
                self._render(entry)
        finally:
            self._state = RenderState.IDLE

    def forget(self, field_name: str) -> None:
        """Drop the rendered widget for ``field_name`` from the page."""

        rendered = self._rendered.pop(field_name, None)
        if rendered is None:
            return
        widget_id = rendered[1]
        api = self._scope.turnstile
        if api is None:
            return
        try:
            api.remove(widget_id)
        except Exception:
            logger.exception("turnstile_remove_failed", field_name=field_name)

    def close(self) -> None:
        self._unsubscribe()

    def _on_registered(self, entry: WidgetEntry) -> None:
        if self._state is RenderState.AWAITING_SCRIPT:
            return
        self._render(entry)

    def render_params(self, entry: WidgetEntry) -> dict[str, Any]:
        params: dict[str, Any] = {
            "sitekey": self._site_key,
            "response-field-name": entry.field_name,
            "size": entry.size,
            "theme": entry.theme,
        }
        params.update(names_for(entry.field_name).as_render_params())
        return params

    def _render(self, entry: WidgetEntry) -> None:
        if entry.mode is not ScriptMode.EXPLICIT:
            return
        rendered = self._rendered.get(entry.field_name)
        if rendered is not None:
            if rendered[0] is entry:
                return
            # Field reused without forget(): drop the widget of the old owner.
            self.forget(entry.field_name)
        if self._registry.get(entry.field_name) is not entry:
            logger.debug("turnstile_render_stale", field_name=entry.field_name)
            return
        api = self._scope.turnstile
        if api is None:
            logger.warning("turnstile_api_missing", field_name=entry.field_name)
            return
        try:
            widget_id = api.render(entry.selector, self.render_params(entry))
        except Exception:
            logger.exception("turnstile_render_failed", field_name=entry.field_name)
            return
        self._rendered[entry.field_name] = (entry, widget_id or entry.selector)
        logger.info("turnstile_widget_rendered", field_name=entry.field_name)


__all__ = ["RenderState", "RenderTrigger"]
