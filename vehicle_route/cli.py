import argparse
import logging
import webbrowser

from vehicle_route import config, logging_config, map_view
from vehicle_route.PlaybackController import PlaybackController
from vehicle_route.directions import RouteFetchError
from vehicle_route.frame_scheduler import AsyncioFrameScheduler
from vehicle_route.realtime_runner import make_app, run

log = logging.getLogger("vehicle_route.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Animate a vehicle along a predefined route on a map")
    parser.add_argument("--provider", choices=config.PROVIDERS, help="directions service (default: ROUTE_PROVIDER or ors)")
    parser.add_argument("--log-level", default="INFO")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="live map with route dropdown and start/stop button (default)")
    serve.add_argument("--host")
    serve.add_argument("--port", type=int)
    serve.add_argument("--speed", type=float, help="higher value -> shorter segment durations")
    serve.add_argument("--fps", type=float, default=60.0)
    serve.add_argument("--no-browser", action="store_true")

    parser.set_defaults(command="serve", host=None, port=None, speed=None, fps=60.0, no_browser=False)

    snap = sub.add_parser("snapshot", help="fetch one route and write a static map")
    snap.add_argument("--route", type=int, default=0, help="route index")
    snap.add_argument("--out", default="map.html")
    snap.add_argument("--no-browser", action="store_true")
    return parser


def serve(settings: config.Settings, args: argparse.Namespace) -> None:
    directions = settings.directions()
    controller = PlaybackController(
        routes=config.ROUTES,
        fetch_route=directions.fetch_route,
        scheduler=AsyncioFrameScheduler(fps=args.fps),
        speed=args.speed or settings.speed,
    )
    app = make_app(controller, config.MAP_CENTER, config.MAP_ZOOM)
    run(app, host=args.host or settings.host, port=args.port or settings.port,
        open_browser=not args.no_browser)


def snapshot(settings: config.Settings, args: argparse.Namespace) -> int:
    if not 0 <= args.route < len(config.ROUTES):
        log.error("no route with index %d", args.route)
        return 2
    route = config.ROUTES[args.route]

    try:
        coords = settings.directions().fetch_route(route.waypoints)
    except RouteFetchError:
        log.exception("Error fetching route")
        return 1

    m = map_view.draw_map(config.MAP_CENTER, config.MAP_ZOOM,
                          route_coords=coords, vehicle=coords[0], route=route)
    m.save(args.out)
    log.info("wrote %s (%d points)", args.out, len(coords))
    if not args.no_browser:
        webbrowser.open(args.out)
    return 0


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging_config.configure(args.log_level)

    settings = config.Settings.from_env()
    if args.provider:
        settings.provider = args.provider

    try:
        if args.command == "snapshot":
            return snapshot(settings, args)
        serve(settings, args)
    except config.ConfigError as e:
        log.error("%s", e)
        return 2
    return 0
