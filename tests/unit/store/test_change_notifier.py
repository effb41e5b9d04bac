"""Unit tests for change notification."""

from __future__ import annotations

import pytest

from core.errors import TabulaConfigError
from core.types import ChangeEvent, Delta
from store.change_notifier import ChangeNotifier, NullNotifier, build_notifier

_EVENT = ChangeEvent(deltas=(Delta(identity=1, old=None, changed={"a": 1}),))


def test_trigger_calls_handlers_in_subscription_order() -> None:
    """Handlers should run in the order they subscribed."""
    notifier = ChangeNotifier()
    calls: list[str] = []
    notifier.on("add", lambda event: calls.append("first"))
    notifier.on("add", lambda event: calls.append("second"))

    notifier.trigger("add", _EVENT)

    assert calls == ["first", "second"]


def test_off_removes_handlers() -> None:
    """Unsubscribed handlers should not run."""
    notifier = ChangeNotifier()
    calls: list[ChangeEvent] = []
    notifier.on("change", calls.append)
    notifier.on("add", calls.append)

    notifier.off("change", calls.append)
    notifier.trigger("change", _EVENT)
    notifier.off()
    notifier.trigger("add", _EVENT)

    assert calls == []


def test_on_rejects_unknown_event() -> None:
    """Only supported event names can be subscribed."""
    with pytest.raises(TabulaConfigError):
        ChangeNotifier().on("sorted", lambda event: None)


def test_null_notifier_ignores_everything() -> None:
    """Non-syncable datasets should never deliver events."""
    notifier = NullNotifier()
    calls: list[ChangeEvent] = []

    notifier.on("add", calls.append)
    notifier.trigger("add", _EVENT)

    assert calls == []


def test_build_notifier_matches_capability() -> None:
    """The factory should pick the component from the syncable flag."""
    assert build_notifier(True).enabled is True
    assert build_notifier(False).enabled is False
