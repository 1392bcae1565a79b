"""Process-scoped namespaces mapping channel names to channels."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from beacon.kernel.channel import BaseChannel
from beacon.kernel.debug_log import DebugLogWriter
from beacon.kernel.observer import Observer
from beacon.kernel.signal import Connection, Signal
from beacon.kernel.types import ChannelInfo, type_label

C = TypeVar("C", bound=BaseChannel)


class RegistryError(RuntimeError):
    """Base class for channel registry failures."""


class DuplicateChannelError(RegistryError):
    """Raised when ``create`` is called for a name that is already live."""

    def __init__(self, name: str) -> None:
        super().__init__("channel '{0}' already exists".format(name))
        self.name = name


class ChannelTypeError(RegistryError):
    """Raised under ``strict_types`` when a lookup disagrees with the declared payload type."""

    def __init__(self, name: str, declared: Optional[type], requested: Optional[type]) -> None:
        super().__init__(
            "channel '{0}' carries {1}, requested as {2}".format(
                name,
                type_label(declared) or "<undeclared>",
                type_label(requested),
            )
        )
        self.name = name
        self.declared = declared
        self.requested = requested


def _validate_name(name: object) -> str:
    if not isinstance(name, str) or not name.strip():
        raise ValueError("channel name must be a non-empty string")
    return name


class ChannelRegistry(Generic[C]):
    """Create-or-get namespace shared by both channel variants.

    ``get`` is ``create`` plus a lookup. Channels hold a back-reference to the
    registry so ``channel.destroy()`` and ``registry.destroy(name)`` agree.
    """

    component = "registry"

    def __init__(
        self,
        channel_factory: Callable[..., C],
        *,
        debug_log: Optional[DebugLogWriter] = None,
        strict_types: bool = False,
        trace_delivery: bool = False,
    ) -> None:
        self._channel_factory = channel_factory
        self._channels: Dict[str, C] = {}
        self._lock = threading.RLock()
        self._debug_log = debug_log
        self._strict_types = bool(strict_types)
        self._trace_delivery = bool(trace_delivery)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._channels

    def __len__(self) -> int:
        with self._lock:
            return len(self._channels)

    @property
    def strict_types(self) -> bool:
        return self._strict_types

    @property
    def trace_delivery(self) -> bool:
        return self._trace_delivery

    def create(self, name: str, payload_type: Optional[type] = None) -> C:
        name = _validate_name(name)
        with self._lock:
            if name in self._channels:
                self.report(
                    level="warn",
                    kind="channel.duplicate_rejected",
                    channel=name,
                    message="duplicate create:{0}".format(name),
                )
                raise DuplicateChannelError(name)
            channel = self._channel_factory(name, payload_type=payload_type, owner=self)
            self._channels[name] = channel
        self.report(
            level="info",
            kind="channel.created",
            channel=name,
            message="created:{0}".format(name),
            data={"payload_type": type_label(payload_type)},
        )
        return channel

    def get(self, name: str, payload_type: Optional[type] = None) -> C:
        name = _validate_name(name)
        with self._lock:
            existing = self._channels.get(name)
            if existing is None:
                return self.create(name, payload_type)
        self._check_payload_type(existing, payload_type)
        return existing

    def find(self, name: str) -> Optional[C]:
        with self._lock:
            return self._channels.get(name)

    def exists(self, name: str) -> bool:
        return name in self

    def destroy(self, name: str) -> None:
        with self._lock:
            channel = self._channels.pop(name, None)
        if channel is None:
            return
        channel._teardown()
        self._report_destroyed(name)

    def release(self, name: str, channel: object) -> bool:
        with self._lock:
            if self._channels.get(name) is not channel:
                return False
            del self._channels[name]
        self._report_destroyed(name)
        return True

    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._channels.keys())

    def describe(self) -> List[ChannelInfo]:
        with self._lock:
            channels = [self._channels[name] for name in sorted(self._channels.keys())]
        return [channel.info() for channel in channels]

    def report(
        self,
        *,
        level: str,
        kind: str,
        channel: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self._debug_log is None:
            return
        self._debug_log.write_entry(
            level=level,
            component=self.component,
            kind=kind,
            channel=channel,
            message=message,
            data=data,
        )

    def _report_destroyed(self, name: str) -> None:
        self.report(
            level="info",
            kind="channel.destroyed",
            channel=name,
            message="destroyed:{0}".format(name),
        )

    def _check_payload_type(self, channel: C, requested: Optional[type]) -> None:
        if requested is None:
            return
        declared = channel._adopt_payload_type(requested)
        if requested == declared:
            return
        if self._strict_types:
            raise ChannelTypeError(channel.name, declared, requested)
        self.report(
            level="warn",
            kind="channel.type_mismatch",
            channel=channel.name,
            message="type mismatch:{0}".format(channel.name),
            data={"declared": type_label(declared), "requested": type_label(requested)},
        )


class ObserverRegistry(ChannelRegistry[Observer[Any]]):
    """Namespace of stateful observers."""

    component = "observer_registry"

    def __init__(
        self,
        *,
        debug_log: Optional[DebugLogWriter] = None,
        strict_types: bool = False,
        trace_delivery: bool = False,
    ) -> None:
        super().__init__(
            Observer,
            debug_log=debug_log,
            strict_types=strict_types,
            trace_delivery=trace_delivery,
        )

    def subscribe(self, name: str, callback: Callable[[Any], None]) -> int:
        return self.get(name).subscribe(callback)

    def set(self, name: str, value: Any) -> None:
        self.get(name).set(value)

    def value(self, name: str) -> Any:
        observer = self.find(name)
        if observer is None:
            return None
        return observer.get()


class SignalRegistry(ChannelRegistry[Signal]):
    """Namespace of stateless signals."""

    component = "signal_registry"

    def __init__(
        self,
        *,
        debug_log: Optional[DebugLogWriter] = None,
        strict_types: bool = False,
        trace_delivery: bool = False,
    ) -> None:
        super().__init__(
            Signal,
            debug_log=debug_log,
            strict_types=strict_types,
            trace_delivery=trace_delivery,
        )

    def connect(self, name: str, callback: Callable[..., None]) -> Connection:
        return self.get(name).connect(callback)

    def fire(self, name: str, *args: Any) -> None:
        # Lookup only: firing never creates a signal.
        signal = self.find(name)
        if signal is None:
            return
        signal.fire(*args)
