import asyncio
import logging
from unittest import mock

import pytest

from vehicle_route.PlaybackController import PlaybackController
from vehicle_route.PlaybackState import Phase
from vehicle_route.RouteBase import Route, interpolate, segment_duration_ms
from vehicle_route.directions import ORSDirections, RouteFetchError
from vehicle_route.frame_scheduler import ManualFrameScheduler

START = (25.4358, 81.8463)
END = (25.555, 81.9863)

ROUTES = [
    Route("Route 1", (START, END)),
    Route("Route 2", (START, (25.565, 81.9963))),
]


def stub_fetch(waypoints):
    # pretend the service returns straight lines through the waypoints
    return [tuple(p) for p in waypoints]


def failing_fetch(waypoints):
    raise RouteFetchError("service down")


def make_controller(fetch=stub_fetch, speed=5.0):
    sched = ManualFrameScheduler()
    return PlaybackController(ROUTES, fetch, sched, speed=speed), sched


def test_end_to_end_with_stubbed_service():
    session = mock.Mock()
    session.get.return_value.json.return_value = {
        "features": [{"geometry": {"coordinates": [[81.8463, 25.4358], [81.9863, 25.555]]}}]
    }
    ors = ORSDirections("KEY", session=session)
    ctrl, sched = make_controller(fetch=ors.fetch_route)

    assert asyncio.run(ctrl.select_route(0)) is True
    assert ctrl.state.route_coords == [START, END]
    assert ctrl.state.position == START
    assert ctrl.state.phase is Phase.IDLE

    assert ctrl.toggle_movement() is True
    duration = segment_duration_ms(START, END, 5)
    sched.tick(0.0)
    sched.tick(duration * 0.5)
    assert ctrl.state.position == pytest.approx(interpolate(START, END, 0.5))

    sched.tick(duration)
    assert ctrl.state.position == END
    assert ctrl.state.phase is Phase.STOPPED
    assert ctrl.state.moving is False


def test_select_none_or_unknown_index_is_noop():
    ctrl, _ = make_controller()

    assert asyncio.run(ctrl.select_route(None)) is False
    assert asyncio.run(ctrl.select_route(7)) is False
    assert asyncio.run(ctrl.select_route(-1)) is False
    assert ctrl.state.selected_route is None
    assert ctrl.state.route_coords == []


def test_fetch_failure_keeps_previous_route(caplog):
    ctrl, _ = make_controller()
    asyncio.run(ctrl.select_route(0))
    before = (list(ctrl.state.route_coords), ctrl.state.position)

    ctrl.fetch_route = failing_fetch
    with caplog.at_level(logging.ERROR):
        assert asyncio.run(ctrl.select_route(1)) is False

    assert "Error fetching route" in caplog.text
    assert (ctrl.state.route_coords, ctrl.state.position) == before
    # dropdown still shows the newly picked route
    assert ctrl.state.selected_index == 1


def test_toggle_without_route_does_nothing():
    ctrl, sched = make_controller()

    assert ctrl.toggle_movement() is False
    assert ctrl.state.phase is Phase.IDLE
    assert ctrl.state.position is None
    assert sched.pending == 0


def test_toggle_off_snaps_to_end():
    ctrl, sched = make_controller(fetch=lambda w: [START, interpolate(START, END, 0.5), END])
    asyncio.run(ctrl.select_route(0))

    ctrl.toggle_movement()
    sched.tick(0.0)
    sched.tick(100.0)
    assert ctrl.toggle_movement() is False

    assert ctrl.state.position == END
    assert ctrl.state.phase is Phase.STOPPED
    assert sched.tick(200.0) == 0


def test_toggle_after_stop_restarts_from_first_segment():
    ctrl, sched = make_controller(fetch=lambda w: [START, interpolate(START, END, 0.5), END])
    asyncio.run(ctrl.select_route(0))
    ctrl.toggle_movement()
    sched.tick(0.0)
    sched.tick(segment_duration_ms(START, interpolate(START, END, 0.5), 5.0))
    assert ctrl.state.segment_index == 1
    ctrl.toggle_movement()

    assert ctrl.toggle_movement() is True
    assert ctrl.state.segment_index == 0
    sched.tick(1.0)
    assert ctrl.state.position == START


def test_selecting_a_route_while_moving_resets_playback():
    ctrl, sched = make_controller()
    asyncio.run(ctrl.select_route(0))
    ctrl.toggle_movement()
    sched.tick(0.0)

    asyncio.run(ctrl.select_route(1))

    assert ctrl.state.phase is Phase.IDLE
    assert ctrl.state.moving is False
    assert ctrl.state.position == START
    assert ctrl.state.route_coords[-1] == (25.565, 81.9963)
    assert sched.tick(1.0) == 0


def test_listeners_get_route_and_position_events():
    ctrl, sched = make_controller()
    events = []
    ctrl.add_listener(lambda kind, data: events.append((kind, data)))

    asyncio.run(ctrl.select_route(0))
    assert [k for k, _ in events] == ["route", "route"]
    assert events[-1][1]["route_coords"] == [list(START), list(END)]
    assert events[-1][1]["waypoints"] == [list(START), list(END)]

    ctrl.toggle_movement()
    sched.tick(0.0)
    kind, data = events[-1]
    assert kind == "position"
    assert "route_coords" not in data
    assert data["vehicle"] == list(START)
    assert data["phase"] == "MOVING"


def test_set_speed():
    ctrl, _ = make_controller()
    ctrl.set_speed(12.5)
    assert ctrl.state.speed == 12.5
    for bad in (0, -1, float("nan"), float("inf")):
        with pytest.raises(ValueError):
            ctrl.set_speed(bad)
    with pytest.raises(ValueError):
        PlaybackController(ROUTES, stub_fetch, ManualFrameScheduler(), speed=0)


def test_snapshot():
    ctrl, _ = make_controller()
    asyncio.run(ctrl.select_route(1))
    snap = ctrl.snapshot()
    assert snap["selected_index"] == 1
    assert snap["vehicle"] == list(START)
    assert snap["phase"] == "IDLE"
    assert snap["moving"] is False
    assert snap["speed"] == 5.0
