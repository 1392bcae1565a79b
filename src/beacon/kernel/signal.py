"""Stateless channel: live fan-out with disconnectable connections."""

from __future__ import annotations

from typing import Any

from beacon.kernel.channel import BaseChannel
from beacon.kernel.types import CHANNEL_KIND_SIGNAL, SignalCallback


class Connection:
    """Handle for one ``Signal.connect`` registration."""

    __slots__ = ("_signal", "_subscription_id", "_active")

    def __init__(self, signal: "Signal", subscription_id: int, active: bool) -> None:
        self._signal = signal
        self._subscription_id = subscription_id
        self._active = active

    def __repr__(self) -> str:
        return "Connection(signal={0!r}, id={1}, connected={2})".format(
            self._signal.name,
            self._subscription_id,
            self.connected,
        )

    @property
    def subscription_id(self) -> int:
        return self._subscription_id

    @property
    def connected(self) -> bool:
        if not self._active:
            return False
        return self._signal._is_live(self._subscription_id)

    def disconnect(self) -> None:
        if not self._active:
            return
        self._active = False
        self._signal._remove(self._subscription_id)


class Signal(BaseChannel):
    """Fire-and-forget channel; connected callbacks receive ``fire`` arguments."""

    kind = CHANNEL_KIND_SIGNAL

    def connect(self, callback: SignalCallback) -> Connection:
        with self._lock:
            subscription_id, registered = self._add(callback)
        return Connection(self, subscription_id, registered)

    def fire(self, *args: Any) -> None:
        with self._lock:
            if self._destroyed:
                return
            snapshot = self._snapshot()
        if not snapshot:
            return
        self._deliver(snapshot, args)

    def disconnect_all(self) -> None:
        with self._lock:
            self._subscribers.clear()
