from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from . import config as config_module
from .config import TimelineConfig
from .schemas import ProjectSummary, RenderSlot, ScheduleEntry, TimeWindow
from .utils import try_parse_time

logger = logging.getLogger(__name__)


def get_time_range(entries: Iterable[ScheduleEntry], config: Optional[TimelineConfig] = None) -> TimeWindow:
    """Visible window: the configured day, widened to cover every entry, capped at ``max_hours``."""
    config = config or config_module.settings.timeline
    start_hour = config.default_start_hour
    end_hour = config.default_end_hour
    minutes = [m for m in (try_parse_time(entry.time) for entry in entries) if m is not None]
    if minutes:
        start_hour = min(start_hour, min(minutes) // 60)
        end_hour = max(end_hour, max(minutes) // 60 + 1)
    total_hours = max(min(end_hour - start_hour, config.max_hours), 1)
    return TimeWindow(start_hour=start_hour, end_hour=start_hour + total_hours, total_hours=total_hours)


def _index(entries: Iterable[ScheduleEntry]) -> List[Tuple[int, ScheduleEntry]]:
    indexed: List[Tuple[int, ScheduleEntry]] = []
    for entry in entries:
        minutes = try_parse_time(entry.time)
        if minutes is None:
            logger.debug("Ignoring schedule entry %s with unparseable time %r", entry.id, entry.time)
            continue
        indexed.append((minutes, entry))
    indexed.sort(key=lambda item: item[0])
    return indexed


def _next_later(indexed: Sequence[Tuple[int, ScheduleEntry]], window_end: int) -> List[int]:
    # For each position, the first start strictly later than its own (window end if none).
    result = [window_end] * len(indexed)
    upcoming = window_end
    for position in range(len(indexed) - 1, -1, -1):
        result[position] = upcoming
        current = indexed[position][0]
        if position == 0 or indexed[position - 1][0] < current:
            upcoming = current
    return result


def _is_visible(slot: RenderSlot, window: TimeWindow) -> bool:
    if slot.start_minutes >= window.end_minutes:
        return False
    return slot.end_minutes > window.start_minutes or slot.start_minutes >= window.start_minutes


def calculate_render_slots(entries: Iterable[ScheduleEntry], window: TimeWindow) -> List[RenderSlot]:
    """Content slots. Each runs until the next later entry, the last one until the window end."""
    indexed = _index(entries)
    next_start = _next_later(indexed, window.end_minutes)
    slots: List[RenderSlot] = []
    for position, (minutes, entry) in enumerate(indexed):
        if entry.is_marker:
            continue
        slot = RenderSlot(
            id=entry.id,
            time=entry.time,
            project=entry.project,
            task=entry.task,
            start_minutes=minutes,
            duration=max(next_start[position] - minutes, 0),
        )
        if _is_visible(slot, window):
            slots.append(slot)
    return slots


def calculate_break_slots(entries: Iterable[ScheduleEntry], window: TimeWindow) -> List[RenderSlot]:
    """Break slots: from each bare-time marker up to whatever entry follows it.

    A marker with nothing after it only closes the previous block and yields
    no break. Two markers at the same time give a zero-length break.
    """
    indexed = _index(entries)
    slots: List[RenderSlot] = []
    for position, (minutes, entry) in enumerate(indexed[:-1]):
        if not entry.is_marker:
            continue
        following = indexed[position + 1][0]
        slot = RenderSlot(
            id=entry.id,
            time=entry.time,
            start_minutes=minutes,
            duration=following - minutes,
            is_break=True,
        )
        if _is_visible(slot, window):
            slots.append(slot)
    return slots


def calculate_slots(entries: Iterable[ScheduleEntry], window: TimeWindow) -> List[RenderSlot]:
    entries = list(entries)
    slots = calculate_render_slots(entries, window) + calculate_break_slots(entries, window)
    slots.sort(key=lambda slot: (slot.start_minutes, not slot.is_break))
    return slots


def slot_top(slot: RenderSlot, window: TimeWindow, hour_height: float) -> float:
    return (slot.start_minutes - window.start_minutes) / 60 * hour_height


def slot_height(slot: RenderSlot, hour_height: float) -> float:
    return slot.duration / 60 * hour_height


def total_minutes(slots: Iterable[RenderSlot]) -> int:
    return sum(slot.duration for slot in slots if not slot.is_break)


def filter_slots(slots: Iterable[RenderSlot], projects: Sequence[str]) -> List[RenderSlot]:
    """Project filter applied after durations are computed so gaps stay correct."""
    if not projects:
        return list(slots)
    return [slot for slot in slots if slot.project in projects]


def summarize_projects(
    plan_slots: Iterable[RenderSlot], result_slots: Iterable[RenderSlot]
) -> List[ProjectSummary]:
    totals: Dict[str, ProjectSummary] = {}
    for field_name, slots in (("plan_minutes", plan_slots), ("result_minutes", result_slots)):
        for slot in slots:
            if slot.is_break or not slot.project:
                continue
            summary = totals.setdefault(slot.project, ProjectSummary(project=slot.project))
            setattr(summary, field_name, getattr(summary, field_name) + slot.duration)
    return sorted(
        totals.values(),
        key=lambda summary: (-summary.result_minutes, -summary.plan_minutes),
    )
