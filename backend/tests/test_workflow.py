from __future__ import annotations

import datetime as dt

from dailyreport import codec, services, timeline
from dailyreport.config import TimelineConfig
from dailyreport.drag import TimelineDrag


def test_edit_session_round_trip(sample_text: str, today: dt.date) -> None:
    config = TimelineConfig()
    report = codec.parse_report("2024-06-03", sample_text, today=today)

    window = timeline.get_time_range([*report.plan, *report.result], config)
    assert (window.start_hour, window.total_hours) == (8, 12)

    plan_slots = timeline.calculate_slots(report.plan, window)
    assert [(s.time, s.duration, s.is_break) for s in plan_slots] == [
        ("09:00", 30, False),
        ("09:30", 150, False),
        ("12:00", 60, True),
        ("13:00", 420, False),
    ]

    review = next(e for e in report.plan if e.task == "Review")
    engine = TimelineDrag.for_window(window, config)
    engine.start(review.id, "plan", 500, review.minutes)
    engine.update(530, over_result=True)
    report = services.apply_drag_outcome(report, engine.end(report.plan, report.result))

    assert [(e.time, e.task) for e in report.result] == [
        ("09:15", "Standup"),
        ("10:00", "Write parser"),
        ("13:30", "Review"),
    ]
    assert len(report.plan) == 4

    saved = codec.generate_report(report)
    assert "* 13:30 [P2] Review" in saved.split("## [RESULT]")[1]
    reloaded = codec.parse_report("2024-06-03", saved, today=today)
    assert [(e.time, e.project, e.task) for e in reloaded.result] == [
        (e.time, e.project, e.task) for e in report.result
    ]
    assert codec.generate_report(reloaded) == saved


def test_noop_drag_leaves_report_untouched(sample_text: str, today: dt.date) -> None:
    report = codec.parse_report("2024-06-03", sample_text, today=today)
    engine = TimelineDrag(start_hour=8, max_hours=12)
    first = report.plan[0]
    engine.start(first.id, "plan", 10, first.minutes)
    assert services.apply_drag_outcome(report, engine.end(report.plan, report.result, pointer_y=10)) is report
