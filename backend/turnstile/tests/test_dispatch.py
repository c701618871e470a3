from __future__ import annotations

import pytest

from backend.turnstile.app.dispatch import CallbackDispatcher, DispatchNames, names_for
from backend.turnstile.app.host import GlobalScope
from backend.turnstile.app.registry import WidgetCallbacks, WidgetEntry, WidgetRegistry

from .utils import FakeTurnstileAPI


def _setup(**callbacks) -> tuple[WidgetRegistry, GlobalScope, CallbackDispatcher, DispatchNames]:
    registry = WidgetRegistry()
    scope = GlobalScope()
    dispatcher = CallbackDispatcher(registry, scope)
    registry.register(WidgetEntry(field_name="login", callbacks=WidgetCallbacks(**callbacks)))
    names = dispatcher.bind("login")
    return registry, scope, dispatcher, names


def test_names_are_deterministic():
    assert names_for("login") == names_for("login")
    assert names_for("login").verify == "__turnstile_login_verify"
    assert list(names_for("login")) == [
        "__turnstile_login_verify",
        "__turnstile_login_error",
        "__turnstile_login_expire",
        "__turnstile_login_timeout",
    ]


@pytest.mark.parametrize(
    ("first", "second"),
    [
        ("a", "b"),
        ("a", "a_error"),
        ("login_verify", "login"),
        ("cf-turnstile-response", "cf-turnstile-response-2"),
    ],
)
def test_names_never_collide_across_fields(first, second):
    assert set(names_for(first)).isdisjoint(names_for(second))
    assert len(set(names_for(first))) == 4


def test_render_params_shape():
    params = names_for("login").as_render_params()

    assert params == {
        "callback": "__turnstile_login_verify",
        "error-callback": "__turnstile_login_error",
        "expired-callback": "__turnstile_login_expire",
        "timeout-callback": "__turnstile_login_timeout",
    }


def test_events_reach_owning_callbacks():
    calls: list[tuple[str, ...]] = []
    _, scope, _, names = _setup(
        on_success=lambda token: calls.append(("success", token)),
        on_error=lambda: calls.append(("error",)),
        on_expire=lambda: calls.append(("expire",)),
        on_timeout=lambda: calls.append(("timeout",)),
    )

    scope.dispatch(names.verify, "tok-123")
    scope[names.error]()
    scope[names.expire]()
    scope.dispatch(names.timeout)

    assert calls == [("success", "tok-123"), ("error",), ("expire",), ("timeout",)]


def test_missing_callbacks_are_noops():
    _, scope, _, names = _setup()

    scope.dispatch(names.verify, "tok")
    scope.dispatch(names.error)
    scope.dispatch(names.expire)


def test_timeout_without_handler_resets_widget():
    _, scope, _, names = _setup()
    api = FakeTurnstileAPI()
    scope["turnstile"] = api

    scope.dispatch(names.timeout)

    assert api.resets == ["#login"]


def test_timeout_before_script_initialised_is_ignored():
    _, scope, _, names = _setup()

    scope.dispatch(names.timeout)


def test_deregistered_field_makes_entry_points_inert():
    calls: list[str] = []
    registry, scope, _, names = _setup(on_success=calls.append)
    api = FakeTurnstileAPI()
    scope["turnstile"] = api

    registry.deregister("login")
    scope.dispatch(names.verify, "late-token")
    scope.dispatch(names.timeout)

    assert calls == []
    assert api.resets == []


def test_unbind_replaces_entry_points_with_noops():
    calls: list[str] = []
    _, scope, dispatcher, names = _setup(on_success=calls.append)

    dispatcher.unbind("login")

    for name in names:
        assert callable(scope[name])
        assert scope[name]("payload") is None
    assert calls == []


def test_failing_callback_does_not_propagate():
    def boom(token: str) -> None:
        raise RuntimeError("handler exploded")

    _, scope, _, names = _setup(on_success=boom)

    scope.dispatch(names.verify, "tok")


def test_stale_dispatch_does_not_touch_other_entries():
    calls: list[str] = []
    registry = WidgetRegistry()
    scope = GlobalScope()
    dispatcher = CallbackDispatcher(registry, scope)
    registry.register(WidgetEntry(field_name="a", callbacks=WidgetCallbacks(on_success=calls.append)))
    registry.register(
        WidgetEntry(field_name="b", callbacks=WidgetCallbacks(on_success=lambda t: calls.append(f"b:{t}")))
    )
    names_a = dispatcher.bind("a")
    names_b = dispatcher.bind("b")

    registry.deregister("a")
    dispatcher.unbind("a")
    scope.dispatch(names_a.verify, "x")
    scope.dispatch(names_b.verify, "y")

    assert calls == ["b:y"]


def test_unknown_global_dispatch_is_ignored():
    scope = GlobalScope()

    assert scope.dispatch("__turnstile_missing_verify", "tok") is None
