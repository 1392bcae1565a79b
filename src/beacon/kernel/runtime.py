"""Process runtime: wires settings, the debug log, and both channel registries."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from beacon.config import Settings
from beacon.kernel.debug_log import DebugLogWriter
from beacon.kernel.registry import ObserverRegistry, SignalRegistry
from beacon.kernel.types import ChannelInfo, new_id


class Runtime:
    """Owns one observer registry and one signal registry for the process.

    Build it once at startup and hand ``runtime.observers`` /
    ``runtime.signals`` to whatever needs them.
    """

    def __init__(self, settings: Settings, *, inspect_only: bool = False) -> None:
        self.settings = settings
        self.inspect_only = bool(inspect_only)
        self.runtime_id = new_id("rt")
        self.debug_log = DebugLogWriter(
            logs_dir=settings.logs_dir,
            enabled=settings.logs_enabled,
            runtime_id=self.runtime_id,
            log_format=settings.logs_format,
            max_file_bytes=settings.logs_max_file_bytes,
            max_files=settings.logs_max_files,
            redaction=settings.logs_redaction,
        )
        # Inspection runs keep the writer for status() but record nothing.
        registry_log = None if self.inspect_only else self.debug_log
        self.observers = ObserverRegistry(
            debug_log=registry_log,
            strict_types=settings.strict_types,
            trace_delivery=settings.trace_delivery,
        )
        self.signals = SignalRegistry(
            debug_log=registry_log,
            strict_types=settings.strict_types,
            trace_delivery=settings.trace_delivery,
        )
        self._declare_channels()

    def _declare_channels(self) -> None:
        for name in self.settings.observers:
            self.observers.get(name)
        for name in self.settings.signals:
            self.signals.get(name)
        self.log_diagnostic(
            level="info",
            component="runtime",
            kind="runtime.started",
            message="runtime started",
            data={
                "observers": list(self.settings.observers),
                "signals": list(self.settings.signals),
                "strict_types": self.settings.strict_types,
                "trace_delivery": self.settings.trace_delivery,
            },
        )

    def log_diagnostic(
        self,
        *,
        level: str,
        component: str,
        kind: str,
        message: str,
        channel: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        if self.inspect_only:
            return
        self.debug_log.write_entry(
            level=level,
            component=component,
            kind=kind,
            channel=channel,
            message=message,
            data=data,
        )

    def describe_channels(self) -> List[ChannelInfo]:
        return self.observers.describe() + self.signals.describe()

    def doctor(self, verbose: bool = False) -> Dict[str, Any]:
        report: Dict[str, Any] = {
            "runtime_id": self.runtime_id,
            "project_root": str(self.settings.project_root),
            "config_root": str(self.settings.config_root),
            "strict_types": self.settings.strict_types,
            "trace_delivery": self.settings.trace_delivery,
            "observers_declared": len(self.settings.observers),
            "signals_declared": len(self.settings.signals),
            "observers_live": len(self.observers),
            "signals_live": len(self.signals),
        }
        report.update(self.debug_log.status())
        if verbose:
            report["channels"] = [info.as_dict() for info in self.describe_channels()]
        return report

    def close(self) -> None:
        for name in self.observers.names():
            self.observers.destroy(name)
        for name in self.signals.names():
            self.signals.destroy(name)
        self.debug_log.close()
