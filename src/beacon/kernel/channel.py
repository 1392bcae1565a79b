"""Shared subscriber bookkeeping for observer and signal channels."""

from __future__ import annotations

import itertools
import threading
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from beacon.kernel.types import ChannelInfo, ChannelOwner, now_ms, type_label


class BaseChannel:
    """One named stream with an ordered subscriber map.

    Callbacks always run with no lock held. Delivery walks a snapshot of
    ``(id, callback)`` pairs taken when the delivery starts; an entry removed
    by an earlier callback is skipped, entries added during delivery wait for
    the next one.
    """

    kind = "channel"

    def __init__(
        self,
        name: str,
        *,
        payload_type: Optional[type] = None,
        owner: Optional[ChannelOwner] = None,
    ) -> None:
        self._name = name
        self._payload_type = payload_type
        self._owner = owner
        self._lock = threading.RLock()
        self._subscribers: Dict[int, Callable[..., None]] = {}
        self._ids = itertools.count(1)
        self._destroyed = False
        self._created_at_ms = now_ms()

    def __repr__(self) -> str:
        return "{0}(name={1!r}, subscribers={2}, destroyed={3})".format(
            type(self).__name__,
            self._name,
            len(self._subscribers),
            self._destroyed,
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def payload_type(self) -> Optional[type]:
        return self._payload_type

    @property
    def destroyed(self) -> bool:
        with self._lock:
            return self._destroyed

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def info(self) -> ChannelInfo:
        with self._lock:
            return ChannelInfo(
                name=self._name,
                kind=self.kind,
                payload_type=type_label(self._payload_type),
                subscriber_count=len(self._subscribers),
                has_value=self._has_cached_value(),
                created_at_ms=self._created_at_ms,
            )

    def destroy(self) -> None:
        """Remove this channel from its registry and drop all state."""

        owner = self._owner
        if owner is not None:
            owner.release(self._name, self)
        self._teardown()

    def _adopt_payload_type(self, payload_type: type) -> type:
        """Record ``payload_type`` if none was declared; return the declared type."""

        with self._lock:
            if self._payload_type is None:
                self._payload_type = payload_type
            return self._payload_type

    def _teardown(self) -> None:
        with self._lock:
            self._destroyed = True
            self._subscribers.clear()
            self._discard_state()

    def _discard_state(self) -> None:
        return

    def _has_cached_value(self) -> bool:
        return False

    def _add(self, callback: Callable[..., None]) -> Tuple[int, bool]:
        if not callable(callback):
            raise TypeError("callback must be callable, got {0!r}".format(callback))
        subscription_id = next(self._ids)
        if self._destroyed:
            return subscription_id, False
        self._subscribers[subscription_id] = callback
        return subscription_id, True

    def _remove(self, subscription_id: int) -> bool:
        with self._lock:
            return self._subscribers.pop(subscription_id, None) is not None

    def _is_live(self, subscription_id: int) -> bool:
        with self._lock:
            return subscription_id in self._subscribers

    def _snapshot(self) -> List[Tuple[int, Callable[..., None]]]:
        return list(self._subscribers.items())

    def _deliver(self, snapshot: Sequence[Tuple[int, Callable[..., None]]], args: Tuple[Any, ...]) -> None:
        self._trace(len(snapshot), args)
        for subscription_id, callback in snapshot:
            if not self._is_live(subscription_id):
                continue
            self._invoke(callback, args)

    def _invoke(self, callback: Callable[..., None], args: Tuple[Any, ...]) -> None:
        try:
            callback(*args)
        except Exception as exc:
            owner = self._owner
            if owner is not None:
                owner.report(
                    level="error",
                    kind="delivery.failed",
                    channel=self._name,
                    message="callback failed on {0}: {1}".format(self._name, type(exc).__name__),
                    data={
                        "callback": getattr(callback, "__qualname__", repr(callback)),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
            raise

    def _trace(self, subscriber_count: int, args: Tuple[Any, ...]) -> None:
        owner = self._owner
        if owner is None or not owner.trace_delivery:
            return
        owner.report(
            level="debug",
            kind="delivery.trace",
            channel=self._name,
            message="deliver:{0}".format(self._name),
            data={"subscribers": subscriber_count, "payload": list(args)},
        )
