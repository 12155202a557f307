import copy
from typing import Any, Callable

import pytest

GIB = 1024**3

BASE_PAYLOAD: dict[str, Any] = {
    "time": "2024-05-01T12:34:56Z",
    "cpuTemperature": {"main": 48, "max": 61},
    "cpuUsage": {"currentLoad": 7.25, "cpus": [5.0, 9.5, 6.25, 8.25]},
    "memoryUsage": {"total": 16 * GIB, "used": 6 * GIB, "free": 10 * GIB},
}


@pytest.fixture
def make_payload() -> Callable[..., dict[str, Any]]:
    """Build a metrics payload, overriding nested sections by name."""

    def factory(**sections: Any) -> dict[str, Any]:
        payload = copy.deepcopy(BASE_PAYLOAD)
        for key, value in sections.items():
            if isinstance(value, dict) and isinstance(payload.get(key), dict):
                payload[key].update(value)
            else:
                payload[key] = value
        return payload

    return factory
