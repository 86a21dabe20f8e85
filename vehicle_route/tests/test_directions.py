from unittest import mock

import polyline
import pytest
import requests

from vehicle_route.directions import ORSDirections, OSRMDirections, RouteFetchError, lonlat

WAYPOINTS = [(25.4358, 81.8463), (25.555, 81.9863)]


def fake_session(payload=None, exc=None, status_exc=None, json_exc=None):
    session = mock.Mock()
    if exc is not None:
        session.get.side_effect = exc
        return session
    response = session.get.return_value
    response.raise_for_status.side_effect = status_exc
    if json_exc is not None:
        response.json.side_effect = json_exc
    else:
        response.json.return_value = payload
    return session


def ors_payload(coords):
    return {"type": "FeatureCollection",
            "features": [{"geometry": {"type": "LineString", "coordinates": coords}}]}


def test_lonlat():
    assert lonlat((25.4358, 81.8463)) == "81.8463,25.4358"


def test_ors_swaps_axis_order():
    geometry = [[81.8463, 25.4358], [81.9, 25.5], [81.9863, 25.555]]
    session = fake_session(ors_payload(geometry))
    ors = ORSDirections("KEY", session=session)

    coords = ors.fetch_route(WAYPOINTS)

    assert coords == [(25.4358, 81.8463), (25.5, 81.9), (25.555, 81.9863)]


def test_ors_request_params():
    session = fake_session(ors_payload([[81.8463, 25.4358], [81.9863, 25.555]]))
    ors = ORSDirections("KEY", base_url="https://ors.example/", profile="driving-car", timeout=7, session=session)
    waypoints = [(25.4358, 81.8463), (25.5, 81.9), (25.555, 81.9863)]

    ors.fetch_route(waypoints)

    args, kwargs = session.get.call_args
    assert args[0] == "https://ors.example/v2/directions/driving-car"
    assert kwargs["timeout"] == 7
    assert kwargs["params"] == {
        "api_key": "KEY",
        "start": "81.8463,25.4358",
        "end": "81.9863,25.555",
        "waypoints": "81.8463,25.4358|81.9,25.5|81.9863,25.555",
    }


def test_ors_ignores_elevation():
    session = fake_session(ors_payload([[81.8463, 25.4358, 98.0], [81.9863, 25.555, 101.5]]))
    assert ORSDirections("KEY", session=session).fetch_route(WAYPOINTS) == WAYPOINTS


@pytest.mark.parametrize("session", [
    fake_session(exc=requests.ConnectionError("boom")),
    fake_session(exc=requests.Timeout("slow")),
    fake_session(payload={}, status_exc=requests.HTTPError("403 Forbidden")),
    fake_session(json_exc=ValueError("not json")),
    fake_session(payload={"error": {"code": 2010, "message": "no route"}}),
    fake_session(payload={"features": []}),
    fake_session(payload=ors_payload([])),
    fake_session(payload=ors_payload([["a"]])),
])
def test_ors_failures_raise_route_fetch_error(session):
    with pytest.raises(RouteFetchError):
        ORSDirections("KEY", session=session).fetch_route(WAYPOINTS)


def test_needs_two_waypoints():
    session = fake_session(ors_payload([]))
    with pytest.raises(ValueError):
        ORSDirections("KEY", session=session).fetch_route(WAYPOINTS[:1])
    session.get.assert_not_called()


def test_osrm_decodes_polyline():
    encoded = polyline.encode([(25.4358, 81.8463), (25.5, 81.9), (25.555, 81.9863)])
    session = fake_session({"code": "Ok", "routes": [{"geometry": encoded}]})
    osrm = OSRMDirections(base_url="http://localhost:5000", session=session)

    coords = osrm.fetch_route(WAYPOINTS)

    assert coords == [pytest.approx(p) for p in [(25.4358, 81.8463), (25.5, 81.9), (25.555, 81.9863)]]
    args, kwargs = session.get.call_args
    assert args[0] == "http://localhost:5000/route/v1/driving/81.8463,25.4358;81.9863,25.555"
    assert kwargs["params"] == {"overview": "full"}


def test_osrm_error_code():
    session = fake_session({"code": "NoRoute", "message": "Impossible route"})
    with pytest.raises(RouteFetchError, match="NoRoute"):
        OSRMDirections(session=session).fetch_route(WAYPOINTS)


def test_osrm_unexpected_shape():
    with pytest.raises(RouteFetchError):
        OSRMDirections(session=fake_session([1, 2, 3])).fetch_route(WAYPOINTS)
    with pytest.raises(RouteFetchError):
        OSRMDirections(session=fake_session({"code": "Ok", "routes": []})).fetch_route(WAYPOINTS)
