from __future__ import annotations

import json

import pytest

from beacon.kernel.debug_log import DebugLogWriter
from beacon.kernel.registry import (
    ChannelTypeError,
    DuplicateChannelError,
    ObserverRegistry,
    SignalRegistry,
)


def _read_jsonl(path):
    if not path.exists():
        return []
    return [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


def test_create_twice_raises_duplicate():
    registry = ObserverRegistry()
    registry.create("client.example")

    with pytest.raises(DuplicateChannelError) as excinfo:
        registry.create("client.example")

    assert excinfo.value.name == "client.example"


def test_create_after_destroy_is_allowed():
    registry = SignalRegistry()
    registry.create("ping")
    registry.destroy("ping")

    assert registry.create("ping").subscriber_count == 0


def test_get_returns_same_channel():
    registry = ObserverRegistry()
    first = registry.get("status")
    second = registry.get("status")

    first.set("up")

    assert first is second
    assert second.get() == "up"
    assert len(registry) == 1


def test_get_never_raises_for_existing_name():
    registry = SignalRegistry()
    created = registry.create("ping")

    assert registry.get("ping") is created


def test_destroy_gives_fresh_channel_and_inert_handles():
    registry = ObserverRegistry()
    old = registry.get("status")
    seen = []
    subscription_id = old.subscribe(seen.append)
    old.set("old")

    registry.destroy("status")
    fresh = registry.get("status")
    old.unsubscribe(subscription_id)
    old.set("stale")

    assert fresh is not old
    assert fresh.get() is None
    assert fresh.subscriber_count == 0
    assert seen == ["old"]


def test_stale_channel_destroy_does_not_remove_new_channel():
    registry = SignalRegistry()
    old = registry.get("ping")
    registry.destroy("ping")
    fresh = registry.get("ping")
    calls = []
    fresh.connect(calls.append)

    old.destroy()
    registry.fire("ping", "hello")

    assert registry.find("ping") is fresh
    assert calls == ["hello"]


def test_channel_destroy_removes_it_from_registry():
    registry = ObserverRegistry()
    observer = registry.get("status")

    observer.destroy()

    assert "status" not in registry
    assert registry.get("status") is not observer


def test_destroy_missing_name_is_noop():
    registry = ObserverRegistry()

    registry.destroy("never")
    registry.destroy("never")

    assert len(registry) == 0


def test_stale_connection_disconnect_after_registry_destroy():
    registry = SignalRegistry()
    connection = registry.connect("ping", lambda *args: None)

    registry.destroy("ping")
    connection.disconnect()
    connection.disconnect()

    assert connection.connected is False


def test_fire_on_missing_name_does_not_create():
    registry = SignalRegistry()

    registry.fire("nobody", 1, 2)

    assert registry.exists("nobody") is False


def test_connect_auto_creates_and_fire_delivers():
    registry = SignalRegistry()
    calls = []

    registry.connect("moved", lambda x, y: calls.append((x, y)))
    registry.fire("moved", 3, 4)

    assert calls == [(3, 4)]


def test_observer_conveniences():
    registry = ObserverRegistry()
    seen = []

    registry.set("score", 10)
    registry.subscribe("score", seen.append)

    assert seen == [10]
    assert registry.value("score") == 10
    assert registry.value("missing") is None
    assert "missing" not in registry


@pytest.mark.parametrize("bad_name", ["", "   ", None, 42])
def test_invalid_names_are_rejected(bad_name):
    registry = ObserverRegistry()

    with pytest.raises(ValueError):
        registry.get(bad_name)  # type: ignore[arg-type]


def test_type_mismatch_is_loose_by_default(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    registry = ObserverRegistry(debug_log=writer)
    created = registry.create("score", int)

    assert registry.get("score", str) is created

    rows = _read_jsonl(writer.active_log_file)
    mismatch = [row for row in rows if row["kind"] == "channel.type_mismatch"]
    assert mismatch
    assert mismatch[-1]["data"] == {"declared": "int", "requested": "str"}


def test_type_mismatch_raises_when_strict():
    registry = ObserverRegistry(strict_types=True)
    registry.create("score", int)

    assert registry.get("score", int) is registry.get("score")
    with pytest.raises(ChannelTypeError) as excinfo:
        registry.get("score", str)

    assert excinfo.value.declared is int
    assert excinfo.value.requested is str


def test_names_and_describe_are_sorted():
    registry = ObserverRegistry()
    registry.get("b")
    registry.get("a").set(1)

    infos = registry.describe()

    assert registry.names() == ["a", "b"]
    assert [info.name for info in infos] == ["a", "b"]
    assert infos[0].has_value is True
    assert infos[1].has_value is False


def test_lifecycle_entries_are_logged(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    registry = SignalRegistry(debug_log=writer)

    registry.create("ping")
    with pytest.raises(DuplicateChannelError):
        registry.create("ping")
    registry.destroy("ping")
    registry.destroy("ping")

    kinds = [row["kind"] for row in _read_jsonl(writer.active_log_file)]
    assert kinds == ["channel.created", "channel.duplicate_rejected", "channel.destroyed"]


def test_callback_failure_is_logged_and_raised(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    registry = ObserverRegistry(debug_log=writer)

    def explode(value):
        raise KeyError(value)

    registry.subscribe("status", explode)
    with pytest.raises(KeyError):
        registry.set("status", "down")

    failures = [row for row in _read_jsonl(writer.active_log_file) if row["kind"] == "delivery.failed"]
    assert len(failures) == 1
    assert failures[0]["level"] == "error"
    assert failures[0]["channel"] == "status"
    assert failures[0]["data"]["error_type"] == "KeyError"


def test_trace_delivery_records_each_fire(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    registry = SignalRegistry(debug_log=writer, trace_delivery=True)
    registry.connect("moved", lambda *args: None)

    registry.fire("moved", "north", 3)

    traces = [row for row in _read_jsonl(writer.active_log_file) if row["kind"] == "delivery.trace"]
    assert len(traces) == 1
    assert traces[0]["data"] == {"subscribers": 1, "payload": ["north", 3]}


def test_untyped_channel_adopts_first_requested_type():
    registry = ObserverRegistry(strict_types=True)
    created = registry.get("score")

    assert registry.get("score", int) is created
    assert created.payload_type is int
    assert registry.get("score", int) is created
    with pytest.raises(ChannelTypeError):
        registry.get("score", str)


def test_untyped_adoption_does_not_log_mismatch(tmp_path):
    writer = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    registry = SignalRegistry(debug_log=writer)
    registry.create("ping")

    registry.get("ping", tuple)

    kinds = [row["kind"] for row in _read_jsonl(writer.active_log_file)]
    assert "channel.type_mismatch" not in kinds
    assert registry.describe()[0].payload_type == "tuple"
