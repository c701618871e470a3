"""Widget instances and the coordinator context they share."""
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import ClassVar

from .config import DEFAULT_FIELD_NAME, DEFAULT_READY_HOOK, DEFAULT_SCRIPT_URL, TurnstileSettings
from .dispatch import CallbackDispatcher, DispatchNames, names_for
from .errors import ScriptLoadError
from .host import GlobalScope, HostPage
from .logging import get_logger
from .markup import explicit_anchor, implicit_anchor, implicit_container_id, script_tag
from .registry import Registration, WidgetCallbacks, WidgetEntry, WidgetRegistry
from .render import RenderTrigger
from .script_loader import ScriptLoader, ScriptMode


logger = get_logger("turnstile.widgets")


class TurnstileContext:
    """Coordinator shared by every widget instance of one page.

    Create one per page (or application) and pass it to each widget; it owns
    the registry, the script loader, the dispatcher and the render trigger.
    """

    def __init__(
        self,
        page: HostPage,
        scope: GlobalScope | None = None,
        *,
        site_key: str | None = None,
        script_url: str = DEFAULT_SCRIPT_URL,
        ready_hook: str = DEFAULT_READY_HOOK,
    ) -> None:
        self.page = page
        self.scope = scope if scope is not None else GlobalScope()
        self.site_key = site_key
        self.registry = WidgetRegistry()
        self.loader = ScriptLoader(page, self.scope, script_url=script_url, ready_hook=ready_hook)
        self.dispatcher = CallbackDispatcher(self.registry, self.scope)
        self.render_trigger = RenderTrigger(self.registry, self.scope, site_key=site_key)

    @classmethod
    def from_settings(
        cls,
        page: HostPage,
        config: TurnstileSettings,
        scope: GlobalScope | None = None,
    ) -> TurnstileContext:
        return cls(
            page,
            scope,
            site_key=config.site_key,
            script_url=config.script_url,
            ready_hook=config.ready_hook,
        )

    def close(self) -> None:
        """Detach the render trigger from the registry."""

        self.render_trigger.close()


class TurnstileWidget(ABC):
    """One embedded challenge, identified by its response field name.

    ``mount()`` claims the field name synchronously and fails fast with
    :class:`~backend.turnstile.app.errors.DuplicateFieldNameError` when it is
    taken. ``ready()`` waits for the script and reports failure as ``False``.
    """

    mode: ClassVar[ScriptMode] = ScriptMode.EXPLICIT

    def __init__(
        self,
        context: TurnstileContext,
        *,
        field_name: str = DEFAULT_FIELD_NAME,
        theme: str = "light",
        size: str = "normal",
        on_success: Callable[[str], None] | None = None,
        on_error: Callable[[], None] | None = None,
        on_expire: Callable[[], None] | None = None,
        on_timeout: Callable[[], None] | None = None,
    ) -> None:
        self._context = context
        self._entry = WidgetEntry(
            field_name=field_name,
            size=size,
            theme=theme,
            callbacks=WidgetCallbacks(
                on_success=on_success,
                on_error=on_error,
                on_expire=on_expire,
                on_timeout=on_timeout,
            ),
            container_id=self._container_id(field_name),
            mode=self.mode,
        )
        self._registration: Registration | None = None
        self._handle: asyncio.Future[None] | None = None

    def _container_id(self, field_name: str) -> str:
        return field_name

    @property
    def context(self) -> TurnstileContext:
        return self._context

    @property
    def field_name(self) -> str:
        return self._entry.field_name

    @property
    def entry(self) -> WidgetEntry:
        return self._entry

    @property
    def names(self) -> DispatchNames:
        return names_for(self._entry.field_name)

    @property
    def mounted(self) -> bool:
        return self._registration is not None

    def mount(self) -> DispatchNames:
        """Register the widget, bind its dispatch points and request the script.

        Must run inside the page event loop.
        """

        if self._registration is not None:
            return self.names
        self._registration = self._context.registry.register(self._entry)
        names = self._context.dispatcher.bind(self.field_name)
        self._request_script()
        logger.debug("turnstile_widget_mounted", field_name=self.field_name, mode=self.mode.value)
        return names

    def _request_script(self) -> asyncio.Future[None]:
        self._handle = self._context.loader.ensure_loaded(self.mode)
        return self._handle

    async def ready(self) -> bool:
        """Wait until the widget is usable; ``False`` when the script failed to load.

        Calling again after a failure starts a fresh load attempt.
        """

        if self._registration is None:
            raise RuntimeError(f"Turnstile widget {self.field_name!r} is not mounted")
        handle = self._handle
        if handle is None:
            handle = self._request_script()
        try:
            await asyncio.shield(handle)
        except ScriptLoadError as exc:
            self._handle = None
            logger.warning("turnstile_widget_unavailable", field_name=self.field_name, reason=str(exc))
            return False
        return self._registration is not None

    def unmount(self) -> None:
        registration, self._registration = self._registration, None
        if registration is None:
            return
        registration.cancel()
        self._context.dispatcher.unbind(self.field_name)
        logger.debug("turnstile_widget_unmounted", field_name=self.field_name)

    @abstractmethod
    def markup(self) -> str:
        """Anchor element the widget script attaches to."""

    def reset(self) -> None:
        reset_widget(self._context.scope, self._entry.selector)

    def get_response(self) -> str | None:
        return get_widget_response(self._context.scope, self._entry.selector)

    async def __aenter__(self) -> TurnstileWidget:
        self.mount()
        try:
            await self.ready()
        except BaseException:
            self.unmount()
            raise
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.unmount()


class ExplicitWidget(TurnstileWidget):
    """Widget rendered imperatively by the render trigger after ``turnstileReady``."""

    mode = ScriptMode.EXPLICIT

    def _request_script(self) -> asyncio.Future[None]:
        handle = super()._request_script()
        self._context.render_trigger.watch(handle)
        return handle

    async def ready(self) -> bool:
        if not await super().ready():
            return False
        trigger = self._context.render_trigger
        if self._handle is not None:
            trigger.settle(self._handle)
        return trigger.is_rendered(self.field_name)

    def unmount(self) -> None:
        if self._registration is None:
            return
        super().unmount()
        self._context.render_trigger.forget(self.field_name)

    def markup(self) -> str:
        return explicit_anchor(self._entry)


class ImplicitWidget(TurnstileWidget):
    """Widget declared in markup and initialised by the script's own page scan."""

    mode = ScriptMode.IMPLICIT

    def _container_id(self, field_name: str) -> str:
        return implicit_container_id(field_name)

    def markup(self) -> str:
        return implicit_anchor(self._entry, self._context.site_key, self.names)


def render_snippet(widget: TurnstileWidget) -> str:
    """Anchor markup followed by the script tag for the widget's mode."""

    url = widget.context.loader.url_for(widget.mode)
    return widget.markup() + script_tag(url)


def check_widget(scope: GlobalScope, widget: str) -> None:
    """Render ``widget`` again when the script no longer knows it."""

    api = scope.turnstile
    if api is None:
        return
    try:
        api.get_response(widget)
    except Exception as exc:
        if "not find" not in str(exc):
            raise
        logger.info("turnstile_widget_rerender", widget=widget)
        api.render(widget, {})


def reset_widget(scope: GlobalScope, widget: str) -> None:
    api = scope.turnstile
    if api is None:
        return
    check_widget(scope, widget)
    api.reset(widget)


def get_widget_response(scope: GlobalScope, widget: str) -> str | None:
    """Return the current response token of ``widget`` or ``None``."""

    api = scope.turnstile
    if api is None:
        return None
    try:
        return api.get_response(widget)
    except Exception:
        logger.warning("turnstile_response_unavailable", widget=widget, exc_info=True)
        return None


__all__ = [
    "ExplicitWidget",
    "ImplicitWidget",
    "TurnstileContext",
    "TurnstileWidget",
    "check_widget",
    "get_widget_response",
    "render_snippet",
    "reset_widget",
]
