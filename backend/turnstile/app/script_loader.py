"""Load the Turnstile widget script at most once per URL variant."""
from __future__ import annotations

import asyncio
import enum

from .config import DEFAULT_READY_HOOK, DEFAULT_SCRIPT_URL
from .errors import ScriptLoadError
from .host import GlobalScope, HostPage, ScriptTag
from .logging import get_logger


logger = get_logger("turnstile.script_loader")


class ScriptMode(str, enum.Enum):
    """Which script variant a widget needs."""

    IMPLICIT = "implicit"
    EXPLICIT = "explicit"


class ScriptLoadState(str, enum.Enum):
    NOT_REQUESTED = "not_requested"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class ScriptLoader:
    """Insert the widget script into a page and share its completion signal.

    Each :class:`ScriptMode` has its own URL, its own cached future and its
    own state, so an application mixing implicit and explicit widgets never
    receives the wrong variant. The explicit variant asks the script to call
    the global ``ready_hook`` once it has initialised; that call, not the
    element's load event, completes the future.
    """

    def __init__(
        self,
        page: HostPage,
        scope: GlobalScope,
        *,
        script_url: str = DEFAULT_SCRIPT_URL,
        ready_hook: str = DEFAULT_READY_HOOK,
    ) -> None:
        self._page = page
        self._scope = scope
        self._script_url = script_url
        self._ready_hook = ready_hook
        self._handles: dict[ScriptMode, asyncio.Future[None]] = {}
        self._states: dict[ScriptMode, ScriptLoadState] = {}

    @property
    def ready_hook(self) -> str:
        return self._ready_hook

    def url_for(self, mode: ScriptMode) -> str:
        if mode is ScriptMode.EXPLICIT:
            separator = "&" if "?" in self._script_url else "?"
            return f"{self._script_url}{separator}onload={self._ready_hook}"
        return self._script_url

    def state(self, mode: ScriptMode) -> ScriptLoadState:
        return self._states.get(mode, ScriptLoadState.NOT_REQUESTED)

    def ensure_loaded(self, mode: ScriptMode = ScriptMode.IMPLICIT) -> asyncio.Future[None]:
        """Return the shared future that completes once ``mode``'s script is usable.

        Must be called from the running event loop. Every caller for the same
        mode receives the same future until a load failure clears it.
        """

        handle = self._handles.get(mode)
        if handle is not None:
            return handle

        loop = asyncio.get_running_loop()
        handle = loop.create_future()
        self._handles[mode] = handle
        url = self.url_for(mode)

        present = self._page.find_script(url)
        # An explicit tag from page markup may still be initialising.
        if present and (mode is ScriptMode.IMPLICIT or self._scope.turnstile is not None):
            logger.debug("turnstile_script_present", url=url, mode=mode.value)
            self._states[mode] = ScriptLoadState.LOADED
            handle.set_result(None)
            return handle

        self._states[mode] = ScriptLoadState.LOADING

        def _loaded() -> None:
            if handle.done():
                return
            self._states[mode] = ScriptLoadState.LOADED
            logger.info("turnstile_script_loaded", url=url, mode=mode.value)
            handle.set_result(None)

        def _failed() -> None:
            if handle.done():
                return
            logger.error("turnstile_script_failed", url=url, mode=mode.value)
            self._states[mode] = ScriptLoadState.FAILED
            # A fresh attempt must be able to insert the tag again.
            if self._handles.get(mode) is handle:
                del self._handles[mode]
            self._page.remove_script(url)
            if mode is ScriptMode.EXPLICIT and self._scope.get(self._ready_hook) is _loaded:
                del self._scope[self._ready_hook]
            handle.set_exception(ScriptLoadError(url))
            # Already logged; callers that await the handle still receive the error.
            handle.exception()

        if mode is ScriptMode.EXPLICIT:
            self._scope[self._ready_hook] = _loaded
            on_load = _noop
        else:
            on_load = _loaded

        if present:
            logger.debug("turnstile_script_awaiting_ready", url=url, mode=mode.value)
            return handle

        logger.debug("turnstile_script_inserting", url=url, mode=mode.value)
        self._page.append_script(ScriptTag(src=url, async_=True, on_load=on_load, on_error=_failed))
        return handle


def _noop() -> None:
    return None


__all__ = ["ScriptLoadState", "ScriptLoader", "ScriptMode"]
