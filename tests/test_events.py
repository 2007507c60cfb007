import logging

import pytest

from core.errors import InvalidArgumentError
from core.events import ExpirationNotifier


def test_subscribe_returns_handler_and_notifies_all():
    notifier = ExpirationNotifier()
    calls = []

    @notifier.subscribe
    def first(key, value):
        calls.append(("first", key, value))

    notifier.subscribe(lambda key, value: calls.append(("second", key, value)))

    assert callable(first)
    assert len(notifier) == 2
    assert notifier.notify("k", 1) == 0
    assert calls == [("first", "k", 1), ("second", "k", 1)]


def test_unsubscribe():
    notifier = ExpirationNotifier()
    calls = []

    def handler(key, value):
        calls.append(key)

    notifier.subscribe(handler)
    assert notifier.unsubscribe(handler) is True
    assert notifier.unsubscribe(handler) is False

    assert notifier.notify("k", "v") == 0
    assert calls == []


def test_rejects_non_callable():
    with pytest.raises(InvalidArgumentError):
        ExpirationNotifier().subscribe("not-callable")


def test_failures_are_counted_and_logged(caplog):
    notifier = ExpirationNotifier()
    calls = []

    def broken(key, value):
        raise RuntimeError("boom")

    notifier.subscribe(broken)
    notifier.subscribe(lambda key, value: calls.append(key))

    with caplog.at_level(logging.ERROR, logger="kvcache"):
        assert notifier.notify("k", "v") == 1

    assert calls == ["k"]
    record = next(r for r in caplog.records if r.getMessage() == "item_expired_handler_error")
    assert record.key == "'k'"
    assert record.exc_info is not None
