"""Readouts, chart series and the recent-events list rendered from dashboard state."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, List

from .dashboard import DashboardController
from .models import Snapshot, bytes_to_gb
from .subscriber import StreamStatus
from .window import RollingWindow


@dataclass(frozen=True, slots=True)
class RecentEvent:
    id: int
    type: str
    message: str
    time: str

    @property
    def badge(self) -> str:
        if self.type == "error":
            return "destructive"
        if self.type == "warning":
            return "default"
        return "secondary"

    def as_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["badge"] = self.badge
        return payload


# Static list; these are not sourced from the telemetry stream.
RECENT_EVENTS: tuple[RecentEvent, ...] = (
    RecentEvent(id=1, type="error", message="Database connection lost", time="17:45"),
    RecentEvent(id=2, type="warning", message="High CPU usage detected", time="16:30"),
    RecentEvent(id=3, type="info", message="System update completed", time="15:15"),
    RecentEvent(id=4, type="success", message="New user registered", time="14:50"),
)

CHARTS = (
    ("cpuTemp", "cpu_temp", "CPU Temperature", "#8884d8"),
    ("cpuUsage", "cpu_usage", "CPU Usage", "#82ca9d"),
    ("memoryUsed", "memory_used", "Memory Usage", "#ffc658"),
)


def format_bytes(value: float) -> str:
    return f"{bytes_to_gb(value):.2f} GB"


def format_temperature(value: float) -> str:
    return f"{value:g}°C"


def format_load(value: float) -> str:
    return f"{value:.2f}%"


def build_readouts(snapshot: Snapshot) -> Dict[str, Dict[str, str]]:
    return {
        "cpuTemperature": {
            "value": format_temperature(snapshot.cpu_temperature.main),
            "detail": f"Max: {format_temperature(snapshot.cpu_temperature.max)}",
        },
        "cpuUsage": {
            "value": format_load(snapshot.cpu_usage.current_load),
            "detail": f"Cores: {len(snapshot.cpu_usage.cpus)}",
        },
        "memoryUsage": {
            "value": format_bytes(snapshot.memory_usage.used),
            "detail": f"of {format_bytes(snapshot.memory_usage.total)} total",
        },
    }


def build_charts(window: RollingWindow) -> List[Dict[str, Any]]:
    labels = window.series("time")
    return [
        {
            "key": key,
            "title": title,
            "color": color,
            "labels": labels,
            "values": window.series(field),
        }
        for key, field, title, color in CHARTS
    ]


def status_label(status: StreamStatus) -> str:
    if status == StreamStatus.CONNECTED:
        return "Server Online"
    if status == StreamStatus.CONNECTING:
        return "Connecting"
    return "Disconnected"


def render_dashboard(controller: DashboardController) -> Dict[str, Any]:
    """Build the JSON document served to dashboard clients."""

    return {
        "status": {
            "state": controller.status.value,
            "label": status_label(controller.status),
            "detail": controller.status_detail,
            "lastError": controller.last_error,
        },
        "snapshot": controller.snapshot.as_dict(),
        "readouts": build_readouts(controller.snapshot),
        "window": controller.window.as_list(),
        "charts": build_charts(controller.window),
        "recentEvents": [event.as_dict() for event in RECENT_EVENTS],
    }


def render_line(controller: DashboardController) -> str:
    """One-line console readout of the latest sample."""

    readouts = build_readouts(controller.snapshot)
    point = controller.window.latest()
    return " | ".join(
        [
            point.time or "--:--:--",
            f"temp {readouts['cpuTemperature']['value']} ({readouts['cpuTemperature']['detail']})",
            f"load {readouts['cpuUsage']['value']} ({readouts['cpuUsage']['detail']})",
            f"mem {readouts['memoryUsage']['value']} {readouts['memoryUsage']['detail']}",
            status_label(controller.status),
        ]
    )
