"""Stateful channel that caches its last value and replays it to newcomers."""

from __future__ import annotations

from typing import Callable, Generic, Optional, TypeVar

from beacon.kernel.channel import BaseChannel
from beacon.kernel.types import CHANNEL_KIND_OBSERVER, ChannelOwner

T = TypeVar("T")

_MISSING = object()


class Observer(BaseChannel, Generic[T]):
    """A typed observer that notifies subscribers when its value changes.

    ``subscribe`` returns an integer id used later with ``unsubscribe``. A
    subscriber registered while a value is cached is called once with that
    value before ``subscribe`` returns. If that replay call raises, the
    subscription is dropped again and the exception propagates.
    """

    kind = CHANNEL_KIND_OBSERVER

    def __init__(
        self,
        name: str,
        *,
        payload_type: Optional[type] = None,
        owner: Optional[ChannelOwner] = None,
    ) -> None:
        super().__init__(name, payload_type=payload_type, owner=owner)
        self._value: object = _MISSING

    @property
    def has_value(self) -> bool:
        with self._lock:
            return self._value is not _MISSING

    def subscribe(self, callback: Callable[[T], None]) -> int:
        with self._lock:
            subscription_id, registered = self._add(callback)
            cached = self._value
        if registered and cached is not _MISSING:
            try:
                self._invoke(callback, (cached,))
            except Exception:
                self._remove(subscription_id)
                raise
        return subscription_id

    def unsubscribe(self, subscription_id: int) -> None:
        self._remove(subscription_id)

    def set(self, value: T) -> None:
        with self._lock:
            if self._destroyed:
                return
            self._value = value
            snapshot = self._snapshot()
        self._deliver(snapshot, (value,))

    def get(self) -> Optional[T]:
        with self._lock:
            if self._value is _MISSING:
                return None
            return self._value  # type: ignore[return-value]

    def clear(self) -> None:
        with self._lock:
            self._value = _MISSING

    def _discard_state(self) -> None:
        self._value = _MISSING

    def _has_cached_value(self) -> bool:
        return self._value is not _MISSING
