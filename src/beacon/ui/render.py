"""Presentation helpers for beacon CLI output."""

from __future__ import annotations

import io
from typing import Any, Dict, Iterable, List

from rich import box
from rich.console import Console
from rich.table import Table


def render_notice(level: str, text: str) -> str:
    prefix_map = {
        "info": "Info",
        "warn": "Warning",
        "error": "Error",
        "success": "Success",
    }
    prefix = prefix_map.get(level, "Info")
    return "{0}: {1}".format(prefix, text)


def _render_table(table: Table, width: int = 120) -> str:
    stream = io.StringIO()
    console = Console(file=stream, width=width, highlight=False, color_system=None)
    console.print(table)
    return stream.getvalue().rstrip("\n")


def render_channel_table(channels: Iterable[Dict[str, Any]]) -> str:
    table = Table(title="Channels", box=box.SIMPLE_HEAVY)
    table.add_column("name")
    table.add_column("kind")
    table.add_column("payload_type")
    table.add_column("subscribers", justify="right")
    table.add_column("has_value")
    for row in channels:
        table.add_row(
            str(row.get("name", "")),
            str(row.get("kind", "")),
            str(row.get("payload_type") or "-"),
            str(int(row.get("subscriber_count") or 0)),
            "yes" if row.get("has_value") else "no",
        )
    return _render_table(table)


def render_log_table(rows: List[Dict[str, Any]]) -> str:
    table = Table(title="Debug Log", box=box.SIMPLE_HEAVY)
    table.add_column("ts_ms", justify="right")
    table.add_column("level")
    table.add_column("kind")
    table.add_column("channel")
    table.add_column("message", overflow="fold")
    for row in rows:
        table.add_row(
            str(row.get("ts_ms", "")),
            str(row.get("level", "")),
            str(row.get("kind", "")),
            str(row.get("channel") or "-"),
            str(row.get("message", "")),
        )
    return _render_table(table)


def render_doctor_text(report: Dict[str, Any]) -> str:
    lines = [
        "Doctor Report",
        "runtime_id={0}".format(report.get("runtime_id", "")),
        "project_root={0}".format(report.get("project_root", "")),
        "config_root={0}".format(report.get("config_root", "")),
        "",
        "Registry",
        "strict_types={0} trace_delivery={1}".format(
            bool(report.get("strict_types")),
            bool(report.get("trace_delivery")),
        ),
        "observers_declared={0} observers_live={1}".format(
            int(report.get("observers_declared") or 0),
            int(report.get("observers_live") or 0),
        ),
        "signals_declared={0} signals_live={1}".format(
            int(report.get("signals_declared") or 0),
            int(report.get("signals_live") or 0),
        ),
        "",
        "Debug Logs",
        "logs_enabled={0} logs_redaction={1}".format(
            bool(report.get("logs_enabled")),
            str(report.get("logs_redaction") or ""),
        ),
        "logs_active_size_bytes={0} logs_total_size_bytes={1}".format(
            int(report.get("logs_active_size_bytes") or 0),
            int(report.get("logs_total_size_bytes") or 0),
        ),
        "logs_max_file_bytes={0} logs_max_files={1}".format(
            int(report.get("logs_max_file_bytes") or 0),
            int(report.get("logs_max_files") or 0),
        ),
        "logs_write_errors={0}".format(int(report.get("logs_write_errors") or 0)),
    ]

    logs_active_file = report.get("logs_active_file")
    if logs_active_file:
        lines.append("logs_active_file={0}".format(logs_active_file))
    rotated = report.get("logs_rotated_files")
    if isinstance(rotated, list):
        lines.append("logs_rotated_files={0}".format(len(rotated)))

    channels = report.get("channels")
    if isinstance(channels, list) and channels:
        lines.append("")
        lines.append("Channels")
        for row in channels:
            if not isinstance(row, dict):
                continue
            lines.append(
                "{0} kind={1} subscribers={2} has_value={3}".format(
                    row.get("name", ""),
                    row.get("kind", ""),
                    int(row.get("subscriber_count") or 0),
                    bool(row.get("has_value")),
                )
            )

    return "\n".join(lines)
