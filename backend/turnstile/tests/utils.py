"""In-memory stand-ins for the host page and the widget script."""
from __future__ import annotations

from typing import Any, Mapping

from backend.turnstile.app.host import TURNSTILE_GLOBAL, GlobalScope, ScriptTag


class FakePage:
    """Records script insertions and lets tests fire their load events."""

    def __init__(self, existing: tuple[str, ...] = ()) -> None:
        self.scripts: dict[str, ScriptTag | None] = {src: None for src in existing}
        self.appended: list[ScriptTag] = []
        self.removed: list[str] = []

    def find_script(self, src: str) -> bool:
        return src in self.scripts

    def append_script(self, tag: ScriptTag) -> None:
        self.appended.append(tag)
        self.scripts[tag.src] = tag

    def remove_script(self, src: str) -> None:
        self.removed.append(src)
        self.scripts.pop(src, None)

    def fire_load(self, src: str | None = None) -> None:
        self._tag(src).on_load()

    def fire_error(self, src: str | None = None) -> None:
        self._tag(src).on_error()

    def _tag(self, src: str | None) -> ScriptTag:
        if src is None:
            return self.appended[-1]
        tag = self.scripts[src]
        assert tag is not None, f"{src} was not inserted by the loader"
        return tag


class FakeTurnstileAPI:
    """Records the calls the coordinator makes on ``window.turnstile``."""

    def __init__(self) -> None:
        self.rendered: list[tuple[str, dict[str, Any]]] = []
        self.resets: list[str | None] = []
        self.removed: list[str] = []
        self.responses: dict[str, str] = {}
        self.unknown: set[str] = set()

    def render(self, container: str, params: Mapping[str, Any]) -> str:
        self.rendered.append((container, dict(params)))
        self.unknown.discard(container)
        return f"widget-{len(self.rendered)}"

    def reset(self, widget: str | None = None) -> None:
        self.resets.append(widget)

    def remove(self, widget: str) -> None:
        self.removed.append(widget)

    def get_response(self, widget: str | None = None) -> str | None:
        if widget in self.unknown:
            raise RuntimeError(f"Could not find widget {widget}")
        return self.responses.get(widget or "")

    def rendered_containers(self) -> list[str]:
        return [container for container, _ in self.rendered]


def boot_script(
    page: FakePage,
    scope: GlobalScope,
    api: FakeTurnstileAPI,
    *,
    ready_hook: str | None = None,
) -> None:
    """Simulate the widget script finishing its download and initialisation."""

    scope[TURNSTILE_GLOBAL] = api
    page.fire_load()
    if ready_hook is not None:
        scope.dispatch(ready_hook)
