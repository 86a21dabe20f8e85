import html
import json
from typing import Optional, Sequence

import folium
from branca.element import MacroElement
from jinja2 import Template

from vehicle_route.RouteBase import LatLon, Route, route_length_m

ROUTE_COLOR = "blue"


def vehicle_icon() -> folium.Icon:
    return folium.Icon(color="red", icon="car", prefix="fa")


def waypoint_icon() -> folium.Icon:
    return folium.Icon(color="orange", icon="flag", prefix="fa")


def draw_map(center: LatLon,
             zoom: int = 13,
             route_coords: Sequence[LatLon] = (),
             vehicle: Optional[LatLon] = None,
             route: Optional[Route] = None) -> folium.Map:
    m = folium.Map(location=center, zoom_start=zoom)

    if route_coords:
        folium.PolyLine(list(route_coords), color=ROUTE_COLOR, weight=5, opacity=0.8,
                        tooltip=f"{route_length_m(list(route_coords)) / 1000:.1f} km").add_to(m)

    if vehicle is not None:
        folium.Marker(vehicle, tooltip="Vehicle", icon=vehicle_icon()).add_to(m)

    if route is not None:
        for i, p in enumerate(route.waypoints):
            folium.Marker(p, tooltip=f"{route.name} waypoint {i + 1}", icon=waypoint_icon()).add_to(m)

    return m


CONTROLS_HTML = """
<div style="position:absolute;z-index:10000;top:10px;right:200px">
  <select id="route-select">
    <option value="">Select a route</option>
    {options}
  </select>
  <label style="background:white;padding:4px">speed
    <input id="speed" type="number" min="0.1" step="0.5" value="{speed}" style="width:4em">
  </label>
</div>
<button id="toggle" style="position:absolute;z-index:10000;top:10px;right:10px;background:#00f;padding:10px;margin:10px;color:white;border:1px solid white;border-radius:0.7rem">Start Vehicle</button>
"""


class LiveScript(MacroElement):
    """Dropdown, button and websocket wiring; renders after its parent map is created."""

    _template = Template("""
{% macro script(this, kwargs) %}
(function () {
  var map = {{ this._parent.get_name() }};
  var routeLine = null;
  var vehicle = null;
  var waypoints = L.layerGroup().addTo(map);
  var carIcon = L.AwesomeMarkers.icon({icon: "car", prefix: "fa", markerColor: "red"});
  var flagIcon = L.AwesomeMarkers.icon({icon: "flag", prefix: "fa", markerColor: "orange"});
  var button = document.getElementById("toggle");

  function drawRoute(s) {
    if (routeLine) { map.removeLayer(routeLine); routeLine = null; }
    if (s.route_coords.length > 0) {
      routeLine = L.polyline(s.route_coords, {color: "{{ this.color }}", weight: 5}).addTo(map);
      map.fitBounds(routeLine.getBounds());
    }
    waypoints.clearLayers();
    s.waypoints.forEach(function (p) { L.marker(p, {icon: flagIcon}).addTo(waypoints); });
  }

  function drawVehicle(s) {
    button.textContent = s.moving ? "Stop Vehicle" : "Start Vehicle";
    if (!s.vehicle) { return; }
    if (vehicle) { vehicle.setLatLng(s.vehicle); }
    else { vehicle = L.marker(s.vehicle, {icon: carIcon}).addTo(map); }
  }

  var scheme = location.protocol === "https:" ? "wss://" : "ws://";
  var ws = new WebSocket(scheme + location.host + "/ws");
  ws.onmessage = function (ev) {
    var msg = JSON.parse(ev.data);
    if (msg.type === "route") { drawRoute(msg.data); }
    drawVehicle(msg.data);
  };

  document.getElementById("route-select").onchange = function (e) {
    fetch("/select?index=" + encodeURIComponent(e.target.value));
  };
  document.getElementById("speed").onchange = function (e) {
    fetch("/speed?value=" + encodeURIComponent(e.target.value));
  };
  button.onclick = function () { fetch("/toggle"); };
})();
{% endmacro %}
""")

    def __init__(self, color: str = ROUTE_COLOR):
        super().__init__()
        self._name = "LiveScript"
        self.color = color


def live_page(routes: Sequence[Route], center: LatLon, zoom: int = 13, speed: float = 5.0) -> str:
    m = draw_map(center, zoom)

    options = "\n    ".join(
        f'<option value="{i}">{html.escape(r.name)}</option>' for i, r in enumerate(routes)
    )
    root = m.get_root()
    root.html.add_child(folium.Element(CONTROLS_HTML.format(options=options, speed=json.dumps(speed))))
    LiveScript().add_to(m)
    return root.render()
