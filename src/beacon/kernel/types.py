"""Core typed contracts shared by channels, registries, and the runtime."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

CHANNEL_KIND_OBSERVER = "observer"
CHANNEL_KIND_SIGNAL = "signal"

SignalCallback = Callable[..., None]


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id(prefix: str) -> str:
    return "{0}_{1}".format(prefix, uuid.uuid4().hex)


def type_label(payload_type: Optional[type]) -> str:
    if payload_type is None:
        return ""
    return getattr(payload_type, "__qualname__", None) or str(payload_type)


@dataclass(frozen=True)
class ChannelInfo:
    name: str
    kind: str
    payload_type: str
    subscriber_count: int
    has_value: bool
    created_at_ms: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "payload_type": self.payload_type,
            "subscriber_count": self.subscriber_count,
            "has_value": self.has_value,
            "created_at_ms": self.created_at_ms,
        }


class ChannelOwner(Protocol):
    """What a channel needs from the registry that created it."""

    def release(self, name: str, channel: object) -> bool:
        ...

    def report(
        self,
        *,
        level: str,
        kind: str,
        channel: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        ...

    @property
    def trace_delivery(self) -> bool:
        ...
