"""Drag-to-retime for timeline entries.

The host UI owns the pointer listeners and feeds coordinates into
:class:`TimelineDrag` through ``start``/``update``/``end``. Moving an entry
only rewrites its ``time``; durations are re-derived by
:mod:`dailyreport.timeline` on the next render.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from .codec import sort_schedule
from . import config as config_module
from .config import TimelineConfig
from .schemas import DragOutcome, DragPreview, DragState, ScheduleEntry, TimeWindow
from .utils import format_time, new_id, parse_time, round_half_up

logger = logging.getLogger(__name__)

BREAK_PROJECT = "---"
BREAK_TASK = "Break"
DEFAULT_BREAK_MINUTES = 60


def calculate_new_time(
    start_minutes: int,
    offset_px: float,
    hour_height: float,
    max_hours: int,
    start_hour: int,
    snap_minutes: int = 15,
) -> str:
    """Shift ``start_minutes`` by a pixel offset, snap it, then clamp it.

    The upper bound keeps the last hour of the window free so the moved
    block always has room for at least one hour.
    """
    hour_height = max(hour_height, 1)
    snap_minutes = max(int(snap_minutes), 1)
    new_minutes = round_half_up(start_minutes + offset_px / hour_height * 60)
    new_minutes = round_half_up(new_minutes / snap_minutes) * snap_minutes
    max_minutes = (start_hour + max_hours) * 60
    new_minutes = max(0, min(max_minutes - 60, new_minutes))
    return format_time(new_minutes)


class TimelineDrag:
    """One drag gesture at a time: idle -> dragging -> resolved (back to idle)."""

    def __init__(
        self,
        *,
        start_hour: int,
        max_hours: int,
        hour_height: float = 60,
        snap_minutes: int = 15,
    ) -> None:
        self.start_hour = start_hour
        self.max_hours = max_hours
        self.hour_height = max(hour_height, 1)
        self.snap_minutes = max(int(snap_minutes), 1)
        self.state: Optional[DragState] = None
        self._offset_px: float = 0.0
        self._over_result = False

    @classmethod
    def for_window(cls, window: TimeWindow, config: Optional[TimelineConfig] = None) -> "TimelineDrag":
        config = config or config_module.settings.timeline
        return cls(
            start_hour=window.start_hour,
            max_hours=window.total_hours,
            hour_height=config.hour_height,
            snap_minutes=config.snap_minutes,
        )

    @property
    def is_dragging(self) -> bool:
        return self.state is not None

    @property
    def upper_bound(self) -> int:
        return (self.start_hour + self.max_hours) * 60 - 60

    @property
    def snap_px(self) -> float:
        return self.hour_height * self.snap_minutes / 60

    def new_time(self, start_minutes: int, offset_px: float) -> str:
        return calculate_new_time(
            start_minutes,
            offset_px,
            self.hour_height,
            self.max_hours,
            self.start_hour,
            self.snap_minutes,
        )

    def start(
        self,
        item_id: str,
        kind: str,
        pointer_y: float,
        start_minutes: int,
        *,
        is_break: bool = False,
        break_duration: Optional[int] = None,
    ) -> DragState:
        self.state = DragState(
            item_id=item_id,
            kind=kind,
            start_y=pointer_y,
            start_minutes=start_minutes,
            is_break=is_break,
            break_duration=break_duration,
        )
        self._offset_px = 0.0
        self._over_result = False
        return self.state

    def update(self, pointer_y: float, over_result: bool = False) -> Optional[DragPreview]:
        state = self.state
        if state is None:
            return None
        self._offset_px = pointer_y - state.start_y
        self._over_result = state.kind == "plan" and over_result
        snapped_px = round_half_up(self._offset_px / self.snap_px) * self.snap_px
        return DragPreview(
            offset_px=snapped_px,
            time=self.new_time(state.start_minutes, self._offset_px),
            over_result=self._over_result,
        )

    def end(
        self,
        plan: Sequence[ScheduleEntry],
        result: Sequence[ScheduleEntry],
        pointer_y: Optional[float] = None,
        over_result: Optional[bool] = None,
    ) -> Optional[DragOutcome]:
        """Resolve the gesture. Returns ``None`` when nothing changes."""
        state = self.state
        if state is None:
            return None
        if pointer_y is not None or over_result is not None:
            self.update(
                state.start_y + self._offset_px if pointer_y is None else pointer_y,
                self._over_result if over_result is None else over_result,
            )
        offset_px = self._offset_px
        copy_to_result = self._over_result
        self._reset()

        if state.kind == "plan" and copy_to_result:
            if state.is_break:
                return self._copy_break(state, offset_px, result)
            return self._copy_entry(state, offset_px, plan, result)
        if offset_px != 0:
            return self._move(state, offset_px, plan if state.kind == "plan" else result)
        return None

    def _reset(self) -> None:
        self.state = None
        self._offset_px = 0.0
        self._over_result = False

    def _copy_break(
        self, state: DragState, offset_px: float, result: Sequence[ScheduleEntry]
    ) -> DragOutcome:
        length = state.break_duration or DEFAULT_BREAK_MINUTES
        start_minutes = state.start_minutes
        if offset_px != 0:
            # Shift start only; pulling it back keeps the end inside the bound at full length.
            start_minutes = parse_time(self.new_time(start_minutes, offset_px))
            start_minutes = max(0, min(start_minutes, self.upper_bound - length))
        start_time = format_time(start_minutes)
        end_time = format_time(start_minutes + length)
        added = [
            ScheduleEntry(id=new_id("r"), time=start_time, project=BREAK_PROJECT, task=BREAK_TASK),
            ScheduleEntry(id=new_id("breakr"), time=end_time),
        ]
        logger.info("Copied break %s-%s to result", start_time, end_time)
        return DragOutcome(
            action="copy",
            kind="result",
            entries=sort_schedule([*result, *added]),
            time=start_time,
            end_time=end_time,
        )

    def _copy_entry(
        self,
        state: DragState,
        offset_px: float,
        plan: Sequence[ScheduleEntry],
        result: Sequence[ScheduleEntry],
    ) -> Optional[DragOutcome]:
        source = next((entry for entry in plan if entry.id == state.item_id), None)
        if source is None:
            logger.warning("Dragged plan entry %s no longer exists", state.item_id)
            return None
        new_time = self.new_time(state.start_minutes, offset_px) if offset_px != 0 else source.time
        copied = ScheduleEntry(id=new_id("r"), time=new_time, project=source.project, task=source.task)
        logger.info("Copied %r to result at %s", source.task, new_time)
        return DragOutcome(
            action="copy",
            kind="result",
            entries=sort_schedule([*result, copied]),
            time=new_time,
        )

    def _move(
        self, state: DragState, offset_px: float, entries: Sequence[ScheduleEntry]
    ) -> Optional[DragOutcome]:
        new_time = self.new_time(state.start_minutes, offset_px)
        updated: List[ScheduleEntry] = []
        found = False
        for entry in entries:
            if entry.id == state.item_id:
                entry = entry.model_copy(update={"time": new_time})
                found = True
            updated.append(entry)
        if not found:
            logger.warning("Dragged %s entry %s no longer exists", state.kind, state.item_id)
            return None
        logger.info("Moved %s entry %s to %s", state.kind, state.item_id, new_time)
        return DragOutcome(action="move", kind=state.kind, entries=sort_schedule(updated), time=new_time)
