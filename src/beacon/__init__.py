"""In-process named-channel observer registry."""

from beacon.config import ProjectConfigError, Settings, load_settings
from beacon.kernel.observer import Observer
from beacon.kernel.registry import (
    ChannelRegistry,
    ChannelTypeError,
    DuplicateChannelError,
    ObserverRegistry,
    RegistryError,
    SignalRegistry,
)
from beacon.kernel.runtime import Runtime
from beacon.kernel.signal import Connection, Signal
from beacon.kernel.types import ChannelInfo

__all__ = [
    "ChannelInfo",
    "ChannelRegistry",
    "ChannelTypeError",
    "Connection",
    "DuplicateChannelError",
    "Observer",
    "ObserverRegistry",
    "ProjectConfigError",
    "RegistryError",
    "Runtime",
    "Settings",
    "Signal",
    "SignalRegistry",
    "load_settings",
]

__version__ = "0.1.0"
