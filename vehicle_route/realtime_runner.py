import asyncio
import logging
import webbrowser

from aiohttp import WSMsgType, web

from vehicle_route import map_view
from vehicle_route.PlaybackController import PlaybackController
from vehicle_route.RouteBase import LatLon
from vehicle_route.ws_bus import broadcast_loop, publish_nowait

logger = logging.getLogger(__name__)


def _text(status: int, message: str) -> web.Response:
    return web.Response(status=status, text=message, content_type="text/plain")


async def index(request: web.Request) -> web.Response:
    app = request.app
    page = map_view.live_page(app["controller"].routes, app["center"], app["zoom"],
                              speed=app["controller"].state.speed)
    return web.Response(text=page, content_type="text/html")


async def list_routes(request: web.Request) -> web.Response:
    return web.json_response([r.to_json() for r in request.app["controller"].routes])


async def state(request: web.Request) -> web.Response:
    return web.json_response(request.app["controller"].snapshot())


async def select(request: web.Request) -> web.Response:
    v = request.query.get("index", "")
    if v == "":
        return web.json_response({"selected": False})
    try:
        idx = int(v)
    except ValueError:
        return _text(400, f"invalid index: {v}")

    ok = await request.app["controller"].select_route(idx)
    return web.json_response({"selected": ok})


async def toggle(request: web.Request) -> web.Response:
    moving = request.app["controller"].toggle_movement()
    return web.json_response({"moving": moving})


async def speed(request: web.Request) -> web.Response:
    v = request.query.get("value")
    try:
        if v is None:
            raise ValueError("missing value")
        request.app["controller"].set_speed(float(v))
    except ValueError as e:
        return _text(400, str(e))
    return _text(200, "OK")


async def static_map(request: web.Request) -> web.Response:
    s = request.app["controller"].state
    m = map_view.draw_map(request.app["center"], request.app["zoom"],
                          route_coords=s.route_coords, vehicle=s.position, route=s.selected_route)
    return web.Response(text=m.get_root().render(), content_type="text/html")


async def ws_handler(request: web.Request) -> web.WebSocketResponse:
    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)

    app = request.app
    # subscribe before the first await so no broadcast slips past this client
    app["subscribers"].add(ws)
    try:
        await ws.send_json({"type": "route", "data": app["controller"].snapshot()})
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                logger.warning("websocket closed with %s", ws.exception())
    finally:
        app["subscribers"].discard(ws)
    return ws


async def _start_bus(app: web.Application) -> None:
    app["bus_task"] = asyncio.create_task(broadcast_loop(app))


async def _stop_bus(app: web.Application) -> None:
    app["controller"].driver.reset(app["controller"].state)
    app["bus_task"].cancel()
    try:
        await app["bus_task"]
    except asyncio.CancelledError:
        pass
    for ws in list(app["subscribers"]):
        await ws.close()


def make_app(controller: PlaybackController,
             center: LatLon,
             zoom: int = 13,
             queue_size: int = 64) -> web.Application:
    app = web.Application()
    app["controller"] = controller
    app["center"] = center
    app["zoom"] = zoom
    app["subscribers"] = set()
    app["pub_q"] = asyncio.Queue(maxsize=queue_size)

    controller.add_listener(lambda event, data: publish_nowait(app, {"type": event, "data": data}))

    app.router.add_get("/", index)
    app.router.add_get("/routes", list_routes)
    app.router.add_get("/state", state)
    app.router.add_get("/select", select)
    app.router.add_get("/toggle", toggle)
    app.router.add_get("/speed", speed)
    app.router.add_get("/map.html", static_map)
    app.router.add_get("/ws", ws_handler)

    app.on_startup.append(_start_bus)
    app.on_shutdown.append(_stop_bus)
    return app


def run(app: web.Application, host: str = "127.0.0.1", port: int = 8000,
        open_browser: bool = True) -> None:
    if open_browser:
        async def _open(_app: web.Application) -> None:
            webbrowser.open(f"http://{host}:{port}/")

        app.on_startup.append(_open)

    logger.info("serving on http://%s:%d/", host, port)
    web.run_app(app, host=host, port=port, print=None)
