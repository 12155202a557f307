"""Telemetry data model: the latest snapshot and the chart-ready data point."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from typing import Any, Mapping, Optional, Tuple, Union

from .constants import BYTES_PER_GB

TimeValue = Union[str, int, float]

TIME_LABEL_FORMAT = "%H:%M:%S"


class MalformedPayloadError(ValueError):
    """Raised when a telemetry payload does not match the snapshot shape."""


def _require_mapping(payload: Any, path: str) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise MalformedPayloadError(f"{path} must be an object")
    return payload


def _require_reading(value: Any, path: str) -> float:
    # bool is an int subclass but never a valid reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedPayloadError(f"{path} must be a number, got {value!r}")
    try:
        reading = float(value)
    except OverflowError as exc:
        raise MalformedPayloadError(f"{path} is out of range") from exc
    if not math.isfinite(reading):
        raise MalformedPayloadError(f"{path} must be finite, got {value!r}")
    if reading < 0:
        raise MalformedPayloadError(f"{path} must be non-negative, got {value!r}")
    return value


def _require_number(container: Mapping[str, Any], key: str, path: str) -> float:
    return _require_reading(container.get(key), f"{path}.{key}")


def parse_timestamp(value: Any) -> datetime:
    """Interpret a payload timestamp.

    Numbers are epoch milliseconds. Strings are ISO-8601; a string without an
    offset is taken as local time.
    """

    if isinstance(value, bool):
        raise MalformedPayloadError(f"time must be a timestamp, got {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise MalformedPayloadError(f"time out of range: {value!r}") from exc
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError as exc:
            raise MalformedPayloadError(f"time is not ISO-8601: {value!r}") from exc
    raise MalformedPayloadError(f"time must be a timestamp, got {value!r}")


def format_time_label(value: Any, tz: Optional[tzinfo] = None) -> str:
    """Format a payload timestamp as a time-of-day label in local time."""

    return parse_timestamp(value).astimezone(tz).strftime(TIME_LABEL_FORMAT)


def bytes_to_gb(value: float) -> float:
    return value / BYTES_PER_GB


@dataclass(frozen=True, slots=True)
class CpuTemperature:
    main: float = 0
    max: float = 0


@dataclass(frozen=True, slots=True)
class CpuUsage:
    current_load: float = 0
    cpus: Tuple[float, ...] = ()


@dataclass(frozen=True, slots=True)
class MemoryUsage:
    total: float = 0
    used: float = 0
    free: float = 0


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Latest full telemetry reading, replaced wholesale on every message."""

    time: TimeValue = ""
    cpu_temperature: CpuTemperature = field(default_factory=CpuTemperature)
    cpu_usage: CpuUsage = field(default_factory=CpuUsage)
    memory_usage: MemoryUsage = field(default_factory=MemoryUsage)

    @classmethod
    def from_payload(cls, payload: Any) -> "Snapshot":
        """Validate a decoded ``metrics`` payload and build a snapshot.

        Raises:
            MalformedPayloadError: If a section or numeric field is missing,
                has the wrong type, is not finite, or is negative.
        """

        root = _require_mapping(payload, "payload")

        time_value = root.get("time")
        if isinstance(time_value, bool) or not isinstance(time_value, (str, int, float)):
            raise MalformedPayloadError(f"time must be a timestamp, got {time_value!r}")

        temperature = _require_mapping(root.get("cpuTemperature"), "cpuTemperature")
        usage = _require_mapping(root.get("cpuUsage"), "cpuUsage")
        memory = _require_mapping(root.get("memoryUsage"), "memoryUsage")

        cpus = usage.get("cpus")
        if not isinstance(cpus, (list, tuple)):
            raise MalformedPayloadError(f"cpuUsage.cpus must be a list, got {cpus!r}")

        return cls(
            time=time_value,
            cpu_temperature=CpuTemperature(
                main=_require_number(temperature, "main", "cpuTemperature"),
                max=_require_number(temperature, "max", "cpuTemperature"),
            ),
            cpu_usage=CpuUsage(
                current_load=_require_number(usage, "currentLoad", "cpuUsage"),
                cpus=tuple(
                    _require_reading(load, f"cpuUsage.cpus[{index}]")
                    for index, load in enumerate(cpus)
                ),
            ),
            memory_usage=MemoryUsage(
                total=_require_number(memory, "total", "memoryUsage"),
                used=_require_number(memory, "used", "memoryUsage"),
                free=_require_number(memory, "free", "memoryUsage"),
            ),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "cpuTemperature": {
                "main": self.cpu_temperature.main,
                "max": self.cpu_temperature.max,
            },
            "cpuUsage": {
                "currentLoad": self.cpu_usage.current_load,
                "cpus": list(self.cpu_usage.cpus),
            },
            "memoryUsage": {
                "total": self.memory_usage.total,
                "used": self.memory_usage.used,
                "free": self.memory_usage.free,
            },
        }


@dataclass(frozen=True, slots=True)
class DataPoint:
    """One chart-ready sample derived from a snapshot."""

    time: str = ""
    cpu_temp: float = 0
    cpu_usage: float = 0
    memory_used: float = 0

    @classmethod
    def placeholder(cls) -> "DataPoint":
        return cls()

    @classmethod
    def from_snapshot(
        cls, snapshot: Snapshot, *, tz: Optional[tzinfo] = None
    ) -> "DataPoint":
        return cls(
            time=format_time_label(snapshot.time, tz),
            cpu_temp=snapshot.cpu_temperature.main,
            cpu_usage=snapshot.cpu_usage.current_load,
            memory_used=bytes_to_gb(snapshot.memory_usage.used),
        )

    def as_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "cpuTemp": self.cpu_temp,
            "cpuUsage": self.cpu_usage,
            "memoryUsed": self.memory_used,
        }
