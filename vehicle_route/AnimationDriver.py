from __future__ import annotations

import logging
from typing import Callable, Optional

from vehicle_route.PlaybackState import Phase, PlaybackState
from vehicle_route.RouteBase import interpolate, segment_duration_ms
from vehicle_route.frame_scheduler import FrameHandle, FrameScheduler

logger = logging.getLogger(__name__)


class AnimationDriver:
    """
    Walks state.position along state.route_coords one segment at a time.

    IDLE/STOPPED -> MOVING(0) on start()
    MOVING(i)    -> MOVING(i + 1) when segment i is done
    MOVING(last) -> STOPPED, position stays on the final coordinate
    MOVING(i)    -> STOPPED on stop(), position snaps to the final coordinate
    """

    def __init__(self,
                 scheduler: FrameScheduler,
                 on_change: Optional[Callable[[PlaybackState], None]] = None):
        self.scheduler = scheduler
        self.on_change = on_change
        self._handle: Optional[FrameHandle] = None

        # current segment
        self._seg_start_ms: Optional[float] = None
        self._seg_duration_ms = 0.0

    @property
    def running(self) -> bool:
        return self._handle is not None and not self._handle.cancelled

    def start(self, state: PlaybackState) -> bool:
        if not state.route_coords:
            return False

        self._cancel()
        state.segment_index = 0
        state.phase = Phase.MOVING
        state.moving = True
        logger.info("vehicle started, %d points, speed %s", len(state.route_coords), state.speed)
        self._begin_segment(state)
        return True

    def stop(self, state: PlaybackState) -> None:
        # cancel first: a frame still queued must not overwrite the snapped position
        self._cancel()
        last = state.last_coord()
        if last is not None:
            state.position = last
        state.phase = Phase.STOPPED
        state.moving = False
        logger.info("vehicle stopped at segment %d", state.segment_index)
        self._notify(state)

    def reset(self, state: PlaybackState) -> None:
        self._cancel()
        state.phase = Phase.IDLE
        state.moving = False
        state.segment_index = 0

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _notify(self, state: PlaybackState) -> None:
        if self.on_change is not None:
            self.on_change(state)

    def _begin_segment(self, state: PlaybackState) -> None:
        i = state.segment_index
        if i + 1 >= len(state.route_coords):
            self._cancel()
            state.phase = Phase.STOPPED
            state.moving = False
            logger.info("vehicle reached end of route")
            self._notify(state)
            return

        start = state.route_coords[i]
        end = state.route_coords[i + 1]
        self._seg_start_ms = None
        self._seg_duration_ms = segment_duration_ms(start, end, state.speed)
        logger.debug("segment %d: %.1f ms", i, self._seg_duration_ms)
        self._handle = self.scheduler.request_frame(lambda ts: self._on_frame(state, ts))

    def _on_frame(self, state: PlaybackState, timestamp_ms: float) -> None:
        if state.phase is not Phase.MOVING:
            return

        if self._seg_start_ms is None:
            self._seg_start_ms = timestamp_ms

        i = state.segment_index
        start = state.route_coords[i]
        end = state.route_coords[i + 1]

        if self._seg_duration_ms > 0.0:
            progress = (timestamp_ms - self._seg_start_ms) / self._seg_duration_ms
        else:
            progress = 1.0

        if progress < 1.0:
            state.position = interpolate(start, end, progress)
            self._notify(state)
            self._handle = self.scheduler.request_frame(lambda ts: self._on_frame(state, ts))
            return

        # segment done -> next one
        state.position = end
        state.segment_index = i + 1
        self._notify(state)
        self._begin_segment(state)
