"""In-memory table of live widget instances keyed by field name."""
from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field

from .config import DEFAULT_FIELD_NAME
from .errors import DuplicateFieldNameError
from .logging import get_logger
from .script_loader import ScriptMode


logger = get_logger("turnstile.registry")


@dataclass(frozen=True, slots=True)
class WidgetCallbacks:
    """Lifecycle hooks of one widget instance.

    Missing hooks are no-ops, except ``on_timeout``: leaving it unset selects
    the automatic reset of the timed-out widget.
    """

    on_success: Callable[[str], None] | None = None
    on_error: Callable[[], None] | None = None
    on_expire: Callable[[], None] | None = None
    on_timeout: Callable[[], None] | None = None


@dataclass(frozen=True, slots=True)
class WidgetEntry:
    """A registered widget instance."""

    field_name: str = DEFAULT_FIELD_NAME
    size: str = "normal"
    theme: str = "light"
    callbacks: WidgetCallbacks = field(default_factory=WidgetCallbacks)
    container_id: str = ""
    mode: ScriptMode = ScriptMode.EXPLICIT

    def __post_init__(self) -> None:
        if not self.field_name or not self.field_name.strip():
            raise ValueError("field_name must be a non-empty string")
        if not self.container_id:
            object.__setattr__(self, "container_id", self.field_name)

    @property
    def selector(self) -> str:
        """CSS selector of the element the widget renders into."""

        return f"#{self.container_id}"


RegistrationListener = Callable[[WidgetEntry], None]


class Registration:
    """Capability returned by :meth:`WidgetRegistry.register`.

    Cancelling removes exactly the entry that was registered; if the field
    name has since been taken by another instance the call does nothing.
    """

    __slots__ = ("_registry", "_entry", "_active")

    def __init__(self, registry: WidgetRegistry, entry: WidgetEntry) -> None:
        self._registry = registry
        self._entry = entry
        self._active = True

    @property
    def entry(self) -> WidgetEntry:
        return self._entry

    @property
    def active(self) -> bool:
        return self._active and self._registry.get(self._entry.field_name) is self._entry

    def cancel(self) -> None:
        if not self._active:
            return
        self._active = False
        if self._registry.get(self._entry.field_name) is self._entry:
            self._registry.deregister(self._entry.field_name)


class WidgetRegistry:
    """Field-name keyed table of live widgets.

    All mutation is synchronous, so a registration is visible to any read in
    the same event loop tick. Listeners are told about every successful
    registration after the entry is stored.
    """

    def __init__(self) -> None:
        self._entries: dict[str, WidgetEntry] = {}
        self._listeners: list[RegistrationListener] = []

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def is_taken(self, field_name: str) -> bool:
        return field_name in self._entries

    def get(self, field_name: str) -> WidgetEntry | None:
        return self._entries.get(field_name)

    def register(self, entry: WidgetEntry) -> Registration:
        if entry.field_name in self._entries:
            logger.warning("turnstile_field_duplicate", field_name=entry.field_name)
            raise DuplicateFieldNameError(entry.field_name)
        self._entries[entry.field_name] = entry
        logger.debug("turnstile_field_registered", field_name=entry.field_name)
        for listener in list(self._listeners):
            listener(entry)
        return Registration(self, entry)

    def deregister(self, field_name: str) -> None:
        if self._entries.pop(field_name, None) is not None:
            logger.debug("turnstile_field_deregistered", field_name=field_name)

    def list(self) -> RegistrySnapshot:
        """Return a snapshot of the current entries that can be iterated repeatedly."""

        return RegistrySnapshot(tuple(self._entries.values()))

    def subscribe(self, listener: RegistrationListener) -> Callable[[], None]:
        """Call ``listener`` after every registration; returns an unsubscribe function."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe


class RegistrySnapshot:
    __slots__ = ("_entries",)

    def __init__(self, entries: tuple[WidgetEntry, ...]) -> None:
        self._entries = entries

    def __iter__(self) -> Iterator[WidgetEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def field_names(self) -> list[str]:
        return [entry.field_name for entry in self._entries]


__all__ = [
    "Registration",
    "RegistrySnapshot",
    "WidgetCallbacks",
    "WidgetEntry",
    "WidgetRegistry",
]
