from __future__ import annotations

from dailyreport import config as config_module
from dailyreport import timeline
from dailyreport.config import Settings, TimelineConfig
from dailyreport.schemas import RenderSlot, TimeWindow


def _spans(slots):
    return [(s.time, s.duration, s.is_break) for s in slots]


def test_breaks_and_content_between_markers(make_entry, window: TimeWindow) -> None:
    plan = [make_entry("08:00"), make_entry("09:00", "P1", "task"), make_entry("10:00")]
    slots = timeline.calculate_slots(plan, window)
    assert _spans(slots) == [("08:00", 60, True), ("09:00", 60, False)]
    assert slots[0].project == "" and slots[0].task == ""
    assert slots[1].start_minutes == 9 * 60


def test_duration_runs_to_successor(make_entry, window: TimeWindow) -> None:
    entries = [
        make_entry("10:00", "P2", "second"),
        make_entry("09:00", "P1", "first"),
        make_entry("11:30", "P3", "third"),
    ]
    slots = timeline.calculate_render_slots(entries, window)
    assert _spans(slots) == [("09:00", 60, False), ("10:00", 90, False), ("11:30", 510, False)]


def test_last_entry_runs_to_window_end(make_entry) -> None:
    window = TimeWindow(start_hour=6, end_hour=18, total_hours=12)
    slots = timeline.calculate_render_slots([make_entry("17:15", "P1", "late")], window)
    assert slots[0].duration == 45


def test_entries_at_same_time_share_the_next_later_boundary(make_entry, window: TimeWindow) -> None:
    entries = [make_entry("09:00", "P1", "a"), make_entry("09:00", "P2", "b"), make_entry("10:00")]
    slots = timeline.calculate_render_slots(entries, window)
    assert [s.duration for s in slots] == [60, 60]


def test_single_marker_yields_nothing(make_entry, window: TimeWindow) -> None:
    assert timeline.calculate_slots([make_entry("12:00")], window) == []


def test_consecutive_markers_with_same_time_give_zero_break(make_entry, window: TimeWindow) -> None:
    entries = [make_entry("12:00"), make_entry("12:00"), make_entry("13:00", "P1", "after")]
    breaks = timeline.calculate_break_slots(entries, window)
    assert [(b.time, b.duration) for b in breaks] == [("12:00", 0), ("12:00", 60)]


def test_marker_before_marker_is_a_break(make_entry, window: TimeWindow) -> None:
    entries = [make_entry("12:00"), make_entry("12:45")]
    breaks = timeline.calculate_break_slots(entries, window)
    assert [(b.time, b.duration) for b in breaks] == [("12:00", 45)]


def test_break_slot_reuses_marker_id(make_entry, window: TimeWindow) -> None:
    entries = [make_entry("12:00", id="m1"), make_entry("13:00", "P1", "x")]
    assert timeline.calculate_break_slots(entries, window)[0].id == "m1"


def test_slots_outside_window_are_clipped_but_data_kept(make_entry, window: TimeWindow) -> None:
    entries = [
        make_entry("06:00", "P1", "early"),
        make_entry("07:00"),
        make_entry("09:00", "P1", "in"),
        make_entry("21:00", "P1", "late"),
    ]
    slots = timeline.calculate_slots(entries, window)
    assert [s.time for s in slots] == ["07:00", "09:00"]
    assert len(entries) == 4


def test_pixel_geometry(window: TimeWindow) -> None:
    slot = RenderSlot(id="s", time="09:30", start_minutes=570, duration=90)
    assert timeline.slot_top(slot, window, 60) == 90
    assert timeline.slot_height(slot, 40) == 60


def test_time_range_defaults_without_entries() -> None:
    window = timeline.get_time_range([], TimelineConfig())
    assert (window.start_hour, window.end_hour, window.total_hours) == (8, 20, 12)


def test_time_range_widens_to_entries(make_entry) -> None:
    window = timeline.get_time_range([make_entry("06:30"), make_entry("22:10", "P1", "x")], TimelineConfig())
    assert (window.start_hour, window.end_hour, window.total_hours) == (6, 23, 17)


def test_time_range_is_capped_by_max_hours(make_entry) -> None:
    config = TimelineConfig(max_hours=10)
    window = timeline.get_time_range([make_entry("23:00", "P1", "x")], config)
    assert window.total_hours == 10
    assert window.end_minutes == 18 * 60


def test_totals_and_project_summary(make_entry, window: TimeWindow) -> None:
    plan = timeline.calculate_slots(
        [make_entry("09:00", "P1", "a"), make_entry("10:00", "P2", "b"), make_entry("11:00")], window
    )
    result = timeline.calculate_slots(
        [make_entry("09:00", "P2", "b"), make_entry("11:30", "P1", "a"), make_entry("12:00")], window
    )
    assert timeline.total_minutes(plan) == 120
    assert timeline.total_minutes(result) == 180
    summary = timeline.summarize_projects(plan, result)
    assert [(s.project, s.plan_minutes, s.result_minutes) for s in summary] == [
        ("P2", 60, 150),
        ("P1", 60, 30),
    ]


def test_filter_slots_after_duration(make_entry, window: TimeWindow) -> None:
    slots = timeline.calculate_render_slots(
        [make_entry("09:00", "P1", "a"), make_entry("10:00", "P2", "b"), make_entry("11:00")], window
    )
    filtered = timeline.filter_slots(slots, ["P1"])
    assert [(s.project, s.duration) for s in filtered] == [("P1", 60)]
    assert timeline.filter_slots(slots, []) == slots


def test_time_range_falls_back_to_settings(monkeypatch) -> None:
    monkeypatch.setattr(config_module, "settings", Settings(default_start_hour=6, default_end_hour=15))
    window = timeline.get_time_range([])
    assert (window.start_hour, window.end_hour, window.total_hours) == (6, 15, 9)
