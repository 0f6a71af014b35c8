"""Unit tests for DebouncedValue."""

from unittest.mock import Mock

from callgate.services.debounced_value import DebouncedValue


def test_value_tracks_every_set_while_settled_waits(scheduler) -> None:
    query = DebouncedValue("", 0.5, scheduler=scheduler)

    for text in ("r", "re", "rea"):
        query.set(text)
        scheduler.advance(0.1)

    assert query.value == "rea"
    assert query.settled == ""
    assert query.pending is True

    scheduler.advance(0.5)
    assert query.settled == "rea"
    assert query.pending is False


def test_on_settle_called_once_per_quiet_period(scheduler) -> None:
    listener = Mock()
    query = DebouncedValue("", 0.5, on_settle=listener, scheduler=scheduler)

    query.set("re")
    query.set("react")
    scheduler.advance(1.0)
    query.set("redux")
    scheduler.advance(1.0)

    assert [c.args for c in listener.call_args_list] == [("react",), ("redux",)]


def test_on_settle_skipped_when_value_unchanged(scheduler) -> None:
    listener = Mock()
    query = DebouncedValue("same", 0.5, on_settle=listener, scheduler=scheduler)

    query.set("other")
    query.set("same")
    scheduler.advance(1.0)

    listener.assert_not_called()
    assert query.settled == "same"


def test_dispose_drops_pending_settle(scheduler) -> None:
    listener = Mock()
    query = DebouncedValue(0, 0.5, on_settle=listener, scheduler=scheduler)

    query.set(1)
    query.dispose()
    query.set(2)
    scheduler.advance(1.0)

    listener.assert_not_called()
    assert query.value == 2
    assert query.settled == 0
