from __future__ import annotations

import datetime as dt
import logging
from collections import Counter
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .codec import group_by_project, parse_report, sort_schedule
from .schemas import (
    SCHEDULE_KINDS,
    TODO_STATUSES,
    DailyReport,
    DragOutcome,
    ScheduleEntry,
    TodoCounts,
    TodoEntry,
)
from .utils import new_id

logger = logging.getLogger(__name__)

NEXT_STATUS: Dict[str, str] = {
    "pending": "in_progress",
    "in_progress": "completed",
    "completed": "on_hold",
    "on_hold": "pending",
}


class ReportError(Exception):
    """Base error for report edit operations."""


class EntryNotFoundError(ReportError, LookupError):
    def __init__(self, kind: str, entry_id: str):
        super().__init__(f"{kind} entry {entry_id!r} not found")
        self.kind = kind
        self.entry_id = entry_id


def _check_kind(kind: str) -> str:
    if kind not in SCHEDULE_KINDS:
        raise ReportError(f"Unknown schedule kind: {kind!r}")
    return kind


def create_empty_report(date: str, author: str = "") -> DailyReport:
    return DailyReport(date=date, author=author)


def carry_over_todos(previous: DailyReport, report: DailyReport) -> DailyReport:
    """Seed ``report`` with every unfinished todo of ``previous``; ids are regenerated."""
    carried = [
        todo.model_copy(update={"id": new_id(f"carryover-{index}-")})
        for index, todo in enumerate(previous.todos)
        if todo.status != "completed"
    ]
    logger.info("Carrying over %d todos from %s to %s", len(carried), previous.date, report.date)
    return report.model_copy(update={"todos": [*report.todos, *carried]})


def load_or_create_report(
    date: str,
    content: Optional[str],
    *,
    previous_content: Optional[str] = None,
    author: str = "",
) -> DailyReport:
    """Parse an existing document, or start a fresh one seeded from the previous day."""
    if content is not None:
        return parse_report(date, content)
    report = create_empty_report(date, author)
    if previous_content is None:
        return report
    previous_date = (dt.date.fromisoformat(date) - dt.timedelta(days=1)).isoformat()
    return carry_over_todos(parse_report(previous_date, previous_content), report)


# ---------------------------------------------------------------------------
# Schedule edits


def replace_schedule(report: DailyReport, kind: str, entries: Iterable[ScheduleEntry]) -> DailyReport:
    return report.model_copy(update={_check_kind(kind): sort_schedule(entries)})


def add_schedule_entry(
    report: DailyReport, kind: str, *, time: str, project: str = "", task: str = ""
) -> DailyReport:
    _check_kind(kind)
    entry = ScheduleEntry(id=new_id(kind[0]), time=time, project=project, task=task)
    return replace_schedule(report, kind, [*report.schedule(kind), entry])


def update_schedule_entry(report: DailyReport, kind: str, entry_id: str, **updates: Any) -> DailyReport:
    _check_kind(kind)
    entries: List[ScheduleEntry] = []
    found = False
    for entry in report.schedule(kind):
        if entry.id == entry_id:
            # Round-trip through validation so a bad ``time`` is rejected here.
            entry = ScheduleEntry(**{**entry.model_dump(), **updates, "id": entry.id})
            found = True
        entries.append(entry)
    if not found:
        raise EntryNotFoundError(kind, entry_id)
    return replace_schedule(report, kind, entries)


def delete_schedule_entry(report: DailyReport, kind: str, entry_id: str) -> DailyReport:
    _check_kind(kind)
    entries = report.schedule(kind)
    remaining = [entry for entry in entries if entry.id != entry_id]
    if len(remaining) == len(entries):
        raise EntryNotFoundError(kind, entry_id)
    return report.model_copy(update={kind: remaining})


def apply_routine(report: DailyReport, routine: Sequence[ScheduleEntry]) -> DailyReport:
    copies = [entry.model_copy(update={"id": new_id(f"p{index}-")}) for index, entry in enumerate(routine)]
    return replace_schedule(report, "plan", [*report.plan, *copies])


def copy_plan_to_result(report: DailyReport) -> DailyReport:
    copies = [entry.model_copy(update={"id": new_id(f"r{index}-")}) for index, entry in enumerate(report.plan)]
    return report.model_copy(update={"result": copies})


def apply_drag_outcome(report: DailyReport, outcome: Optional[DragOutcome]) -> DailyReport:
    if outcome is None:
        return report
    return replace_schedule(report, outcome.kind, outcome.entries)


# ---------------------------------------------------------------------------
# Todo edits


def add_todo(
    report: DailyReport,
    *,
    project: str,
    task: str,
    status: str = "pending",
    description: Optional[str] = None,
    deadline: Optional[str] = None,
    priority: Optional[str] = None,
) -> DailyReport:
    todo = TodoEntry(
        id=new_id("t"),
        status=status,
        project=project,
        task=task,
        description=description,
        deadline=deadline,
        priority=priority,
    )
    return report.model_copy(update={"todos": [*report.todos, todo]})


def update_todo(report: DailyReport, todo_id: str, **updates: Any) -> DailyReport:
    todos: List[TodoEntry] = []
    found = False
    for todo in report.todos:
        if todo.id == todo_id:
            todo = TodoEntry(**{**todo.model_dump(), **updates, "id": todo.id})
            found = True
        todos.append(todo)
    if not found:
        raise EntryNotFoundError("todo", todo_id)
    return report.model_copy(update={"todos": todos})


def delete_todo(report: DailyReport, todo_id: str) -> DailyReport:
    remaining = [todo for todo in report.todos if todo.id != todo_id]
    if len(remaining) == len(report.todos):
        raise EntryNotFoundError("todo", todo_id)
    return report.model_copy(update={"todos": remaining})


def toggle_todo_status(report: DailyReport, todo_id: str) -> DailyReport:
    """pending -> in_progress -> completed -> on_hold -> pending."""
    todo = next((item for item in report.todos if item.id == todo_id), None)
    if todo is None:
        raise EntryNotFoundError("todo", todo_id)
    return update_todo(report, todo_id, status=NEXT_STATUS.get(todo.status, "pending"))


def update_notes(report: DailyReport, notes: str) -> DailyReport:
    return report.model_copy(update={"notes": notes})


def filter_todos(
    todos: Iterable[TodoEntry],
    projects: Sequence[str] = (),
    status: Optional[str] = None,
) -> List[TodoEntry]:
    selected = [todo for todo in todos if not projects or todo.project in projects]
    if status is not None:
        selected = [todo for todo in selected if todo.status == status]
    return selected


def group_todos_by_project(todos: Iterable[TodoEntry]) -> Dict[str, List[TodoEntry]]:
    return group_by_project(todos)


def count_todos_by_status(todos: Iterable[TodoEntry]) -> TodoCounts:
    counter = Counter(todo.status for todo in todos)
    return {status: counter.get(status, 0) for status in TODO_STATUSES}


def overdue_todos(todos: Iterable[TodoEntry], today: Optional[dt.date] = None) -> List[TodoEntry]:
    """Unfinished todos whose deadline is before ``today``; unparseable deadlines are skipped."""
    today = today or dt.date.today()
    overdue: List[TodoEntry] = []
    for todo in todos:
        if not todo.deadline or todo.status == "completed":
            continue
        try:
            deadline = dt.date.fromisoformat(todo.deadline)
        except ValueError:
            logger.debug("Ignoring unparseable deadline %r on todo %s", todo.deadline, todo.id)
            continue
        if deadline < today:
            overdue.append(todo)
    return overdue
