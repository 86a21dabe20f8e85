import asyncio
import logging
from typing import Any, Dict, Set

from aiohttp import web

logger = logging.getLogger(__name__)


def publish_nowait(app: web.Application, event: Dict[str, Any]) -> None:
    q: asyncio.Queue = app["pub_q"]

    # queue full: drop the oldest position frame, route events carry the polyline and must arrive
    if q.full():
        backlog = []
        while not q.empty():
            backlog.append(q.get_nowait())
            q.task_done()
        for i, old in enumerate(backlog):
            if old.get("type") != "route":
                del backlog[i]
                break
        else:
            del backlog[0]
        for old in backlog:
            q.put_nowait(old)

    q.put_nowait(event)


async def broadcast_loop(app: web.Application) -> None:
    q: asyncio.Queue = app["pub_q"]
    subs: Set[web.WebSocketResponse] = app["subscribers"]

    while True:
        event = await q.get()
        try:
            for ws in list(subs):
                if ws.closed:
                    subs.discard(ws)
                    continue
                try:
                    await ws.send_json(event)
                except ConnectionResetError:
                    logger.debug("subscriber went away")
                    subs.discard(ws)
        finally:
            q.task_done()
