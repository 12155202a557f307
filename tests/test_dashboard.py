import json
from datetime import timezone

import pytest

from lihat.dashboard import DashboardController
from lihat.models import DataPoint, Snapshot
from lihat.sse import ServerSentEvent
from lihat.subscriber import StreamStatus


@pytest.fixture
def controller() -> DashboardController:
    return DashboardController(20, tz=timezone.utc)


def test_initial_state_is_zeroed(controller: DashboardController) -> None:
    assert controller.snapshot == Snapshot()
    assert len(controller.window) == 20
    assert controller.status == StreamStatus.IDLE


def test_first_message_updates_snapshot_and_window(controller, make_payload) -> None:
    payload = make_payload(
        cpuTemperature={"main": 55},
        cpuUsage={"currentLoad": 12.5},
        memoryUsage={"used": 4294967296},
    )

    assert controller.on_message(json.dumps(payload)) is True

    latest = controller.window.latest()
    assert len(controller.window) == 20
    assert latest.cpu_temp == 55
    assert latest.cpu_usage == 12.5
    assert f"{latest.memory_used:.2f}" == "4.00"
    assert latest.time == "12:34:56"
    assert controller.window[0] == DataPoint.placeholder()


def test_second_message_replaces_snapshot_without_merge(controller, make_payload) -> None:
    first = make_payload(cpuUsage={"cpus": [1.0, 2.0, 3.0, 4.0, 5.0, 6.0]})
    second = make_payload(
        time="2024-05-01T12:35:00Z",
        cpuTemperature={"main": 70, "max": 72},
        cpuUsage={"currentLoad": 50.0, "cpus": [50.0]},
    )

    controller.on_message(json.dumps(first))
    controller.on_message(json.dumps(second))

    assert controller.snapshot == Snapshot.from_payload(second)
    assert controller.snapshot.as_dict() == second
    assert [point.time for point in controller.window.points[-2:]] == [
        "12:34:56",
        "12:35:00",
    ]


def test_malformed_json_is_skipped(controller, make_payload, caplog) -> None:
    controller.on_message(json.dumps(make_payload()))
    snapshot = controller.snapshot
    window = controller.window

    assert controller.on_message("{not json") is False

    assert controller.snapshot is snapshot
    assert controller.window is window
    assert controller.messages_rejected == 1
    assert controller.last_error
    assert "Skipping malformed metrics payload" in caplog.text


def test_wrong_shape_is_skipped_and_stream_continues(controller, make_payload) -> None:
    assert controller.on_message(json.dumps({"time": "2024-05-01T12:00:00Z"})) is False
    assert controller.on_message(json.dumps(make_payload())) is True

    assert controller.messages_received == 2
    assert controller.messages_rejected == 1
    assert controller.last_error is None
    assert controller.window.latest().cpu_temp == 48


def test_handle_event_applies_event_data(controller, make_payload) -> None:
    controller.handle_event(
        ServerSentEvent(event="metrics", data=json.dumps(make_payload()))
    )

    assert controller.snapshot.cpu_temperature.main == 48


def test_listeners_observe_updates_and_status(controller, make_payload) -> None:
    seen: list[tuple[StreamStatus, float]] = []

    def listener(state: DashboardController) -> None:
        seen.append((state.status, state.window.latest().cpu_temp))

    def broken(state: DashboardController) -> None:
        raise RuntimeError("render failed")

    controller.add_listener(broken)
    controller.add_listener(listener)
    controller.set_status(StreamStatus.CONNECTED, "http://example")
    controller.on_message(json.dumps(make_payload()))
    controller.on_message("garbage")

    assert seen == [(StreamStatus.CONNECTED, 0), (StreamStatus.CONNECTED, 48)]

    controller.remove_listener(listener)
    controller.set_status(StreamStatus.DISCONNECTED, "closed")
    assert len(seen) == 2
    assert controller.status_detail == "closed"


@pytest.mark.parametrize(
    "raw",
    [
        '"used": ' + "1" + "0" * 400,
        '"used": NaN',
        '"used": Infinity',
    ],
)
def test_out_of_range_reading_is_rejected(controller, raw) -> None:
    data = (
        '{"time": "2024-05-01T12:34:56Z",'
        ' "cpuTemperature": {"main": 40, "max": 50},'
        ' "cpuUsage": {"currentLoad": 3.0, "cpus": [3.0]},'
        ' "memoryUsage": {"total": 1073741824, ' + raw + ', "free": 0}}'
    )

    assert controller.on_message(data) is False

    assert controller.messages_rejected == 1
    assert controller.last_error
    assert controller.snapshot == Snapshot()
    assert controller.window.latest() == DataPoint.placeholder()
