"""Markdown codec for daily reports.

The dialect is meant to survive hand-editing, so every decoder here is
permissive: lines it does not recognise are skipped, never raised on.

```
# [日報] author YYYY-MM-DD

## [PLAN]
* 09:00 [P1] task text
* 12:00

## [TODO]
### P1
- [ ] !! task text @2024-12-25
  description line
```
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import reduce
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError

from .config import settings
from .schemas import DailyReport, ScheduleEntry, TodoEntry
from .utils import new_id, try_parse_time

logger = logging.getLogger(__name__)

SCHEDULE_LINE_RE = re.compile(r"^\*\s+(\d{2}:\d{2})\s+\[([^\]]+)\]\s+(.+)$")
SCHEDULE_MARKER_RE = re.compile(r"^\*\s+(\d{2}:\d{2})\s*$")

TODO_LINE_RE = re.compile(r"^-\s+\[([xX\s*\->])\]\s+(.+)$")
TODO_PROJECT_RE = re.compile(r"^\[([^\]]+)\]\s*")
TODO_PRIORITY_RE = re.compile(r"^(!!!|!!|!)\s*")
TODO_DEADLINE_END_RE = re.compile(r"\s*@(\d{4}-\d{2}-\d{2}|\d{2}-\d{2})$")
TODO_DEADLINE_START_RE = re.compile(r"^@(\d{4}-\d{2}-\d{2}|\d{2}-\d{2})\s*")
TODO_CONTINUATION_RE = re.compile(r"^\s{2,}\S")
PROJECT_HEADING_RE = re.compile(r"^###\s+(.+)$")

TITLE_RE = re.compile(r"^#\s+\[(.+?)\]\s+(?:(.+?)\s+)?(\d{4}-\d{2}-\d{2})")

STATUS_BY_MARK: Dict[str, str] = {
    " ": "pending",
    "x": "completed",
    "X": "completed",
    "*": "in_progress",
    "-": "on_hold",
    ">": "on_hold",
}
# on_hold accepts "-" and ">" on input but is always written back as "-".
MARK_BY_STATUS: Dict[str, str] = {
    "pending": " ",
    "completed": "x",
    "in_progress": "*",
    "on_hold": "-",
}

PRIORITY_BY_MARK: Dict[str, str] = {"!!!": "high", "!!": "medium", "!": "low"}
MARK_BY_PRIORITY: Dict[str, str] = {value: key for key, value in PRIORITY_BY_MARK.items()}


class Section(str, Enum):
    NONE = "none"
    PLAN = "plan"
    RESULT = "result"
    TODO = "todo"
    NOTE = "note"


SECTION_RES: Tuple[Tuple[re.Pattern[str], Section], ...] = (
    (re.compile(r"^##\s+\[PLAN\]", re.IGNORECASE), Section.PLAN),
    (re.compile(r"^##\s+\[RESULT\]", re.IGNORECASE), Section.RESULT),
    (re.compile(r"^##\s+\[TODO\]", re.IGNORECASE), Section.TODO),
    (re.compile(r"^##\s+\[NOTE\]", re.IGNORECASE), Section.NOTE),
)

SECTION_HEADINGS: Dict[str, str] = {"plan": "## [PLAN]", "result": "## [RESULT]"}


# ---------------------------------------------------------------------------
# Schedule sections


def sort_schedule(entries: Iterable[ScheduleEntry]) -> List[ScheduleEntry]:
    """Stable ascending sort on the zero-padded ``HH:MM`` string."""
    return sorted(entries, key=lambda entry: entry.time)


def decode_schedule_line(line: str, id_prefix: str = "") -> Optional[ScheduleEntry]:
    line = line.rstrip()
    match = SCHEDULE_LINE_RE.match(line)
    if match:
        time, project, task = match.groups()
        if try_parse_time(time) is None:
            return None
        try:
            return ScheduleEntry(id=new_id(id_prefix), time=time, project=project, task=task)
        except ValidationError:
            return None
    match = SCHEDULE_MARKER_RE.match(line)
    if match and try_parse_time(match.group(1)) is not None:
        return ScheduleEntry(id=new_id(f"break{id_prefix}"), time=match.group(1))
    return None


def decode_schedule(text: str | Iterable[str], id_prefix: str = "") -> List[ScheduleEntry]:
    """Decode schedule bullet lines in line order; does not sort."""
    lines = text.splitlines() if isinstance(text, str) else text
    entries: List[ScheduleEntry] = []
    for line in lines:
        if not line.startswith("*"):
            continue
        entry = decode_schedule_line(line, id_prefix)
        if entry is None:
            logger.debug("Skipping unrecognised schedule line: %r", line)
            continue
        entries.append(entry)
    return entries


def encode_schedule_entry(entry: ScheduleEntry) -> str:
    if entry.is_marker:
        return f"* {entry.time}"
    return f"* {entry.time} [{entry.project}] {entry.task}"


def encode_schedule(entries: Iterable[ScheduleEntry]) -> List[str]:
    return [encode_schedule_entry(entry) for entry in sort_schedule(entries)]


def render_schedule_section(entries: Iterable[ScheduleEntry], kind: str) -> str:
    """Standalone ``## [PLAN]``/``## [RESULT]`` block used by the timeline's text editor."""
    heading = SECTION_HEADINGS[kind]
    return "\n".join([heading, "", *encode_schedule(entries)])


def parse_schedule_section(text: str, id_prefix: str = "") -> List[ScheduleEntry]:
    return decode_schedule(text, id_prefix)


# ---------------------------------------------------------------------------
# Todo sections


def complete_deadline(value: str, today: Optional[dt.date] = None) -> str:
    """Prefix a bare ``MM-DD`` deadline with the current year; no date validation."""
    if len(value) == 5:
        year = (today or dt.date.today()).year
        return f"{year}-{value}"
    return value


def decode_todo_line(
    line: str,
    project: str,
    *,
    today: Optional[dt.date] = None,
    id_prefix: str = "t",
) -> Optional[TodoEntry]:
    match = TODO_LINE_RE.match(line.rstrip())
    if not match:
        return None
    mark, text = match.groups()
    status = STATUS_BY_MARK.get(mark, "pending")
    priority: Optional[str] = None
    deadline: Optional[str] = None

    project_match = TODO_PROJECT_RE.match(text)
    if project_match:
        project = project_match.group(1)
        text = text[project_match.end() :]

    priority_match = TODO_PRIORITY_RE.match(text)
    if priority_match:
        priority = PRIORITY_BY_MARK[priority_match.group(1)]
        text = text[priority_match.end() :]

    deadline_match = TODO_DEADLINE_END_RE.search(text)
    if deadline_match:
        deadline = deadline_match.group(1)
        text = text[: deadline_match.start()]
    else:
        deadline_match = TODO_DEADLINE_START_RE.match(text)
        if deadline_match:
            deadline = deadline_match.group(1)
            text = text[deadline_match.end() :]

    if deadline:
        deadline = complete_deadline(deadline, today)

    return TodoEntry(
        id=new_id(id_prefix),
        status=status,
        project=project,
        task=text.strip(),
        deadline=deadline,
        priority=priority,
    )


def _append_description(todo: TodoEntry, line: str) -> TodoEntry:
    text = line.strip()
    description = f"{todo.description}\n{text}" if todo.description else text
    return todo.model_copy(update={"description": description})


def decode_todos(
    text: str | Iterable[str],
    *,
    default_project: Optional[str] = None,
    today: Optional[dt.date] = None,
) -> List[TodoEntry]:
    """Decode the body of a ``## [TODO]`` section."""
    lines = text.splitlines() if isinstance(text, str) else text
    state = _ScanState(section=Section.TODO, todo_project=default_project or settings.default_todo_project)
    state = reduce(lambda acc, line: _scan_todo(acc, line, today), lines, state)
    return state.todos


def group_by_project(todos: Iterable[TodoEntry]) -> Dict[str, List[TodoEntry]]:
    groups: Dict[str, List[TodoEntry]] = {}
    for todo in todos:
        groups.setdefault(todo.project, []).append(todo)
    return groups


def encode_todo(todo: TodoEntry) -> List[str]:
    mark = MARK_BY_STATUS[todo.status]
    parts: List[str] = []
    if todo.priority:
        parts.append(MARK_BY_PRIORITY[todo.priority])
    parts.append(todo.task)
    if todo.deadline:
        parts.append(f"@{todo.deadline}")
    lines = [f"- [{mark}] {' '.join(parts)}"]
    if todo.description:
        lines.extend(f"  {row.strip()}" for row in todo.description.splitlines() if row.strip())
    return lines


def encode_todos(todos: Iterable[TodoEntry]) -> List[str]:
    lines: List[str] = []
    for project, items in group_by_project(todos).items():
        if lines:
            lines.append("")
        lines.append(f"### {project}")
        for todo in items:
            lines.extend(encode_todo(todo))
    return lines


# ---------------------------------------------------------------------------
# Whole report


@dataclass
class _ScanState:
    section: Section = Section.NONE
    todo_project: str = "P99"
    in_todo_run: bool = False
    plan: List[ScheduleEntry] = field(default_factory=list)
    result: List[ScheduleEntry] = field(default_factory=list)
    todos: List[TodoEntry] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


def _match_section(line: str) -> Optional[Section]:
    for pattern, section in SECTION_RES:
        if pattern.match(line):
            return section
    return None


def _scan_todo(state: _ScanState, line: str, today: Optional[dt.date]) -> _ScanState:
    heading = PROJECT_HEADING_RE.match(line)
    if heading:
        return replace(state, todo_project=heading.group(1).strip(), in_todo_run=False)
    if line.startswith("-"):
        todo = decode_todo_line(line, state.todo_project, today=today)
        if todo is not None:
            state.todos.append(todo)
            return replace(state, in_todo_run=True)
    if state.in_todo_run and state.todos and TODO_CONTINUATION_RE.match(line):
        state.todos[-1] = _append_description(state.todos[-1], line)
        return state
    if line.strip():
        logger.debug("Skipping unrecognised todo line: %r", line)
    return replace(state, in_todo_run=False)


def _scan_line(state: _ScanState, line: str, today: Optional[dt.date]) -> _ScanState:
    section = _match_section(line)
    if section is not None:
        return replace(state, section=section, in_todo_run=False)

    if state.section in (Section.PLAN, Section.RESULT):
        if line.startswith("*"):
            prefix = "p" if state.section is Section.PLAN else "r"
            entry = decode_schedule_line(line, prefix)
            if entry is None:
                logger.debug("Skipping unrecognised schedule line: %r", line)
            elif state.section is Section.PLAN:
                state.plan.append(entry)
            else:
                state.result.append(entry)
        return state

    if state.section is Section.TODO:
        return _scan_todo(state, line, today)

    if state.section is Section.NOTE and not line.startswith("##"):
        state.notes.append(line)
    return state


def parse_author(text: str) -> str:
    first_line = text.splitlines()[0] if text else ""
    match = TITLE_RE.match(first_line)
    if match and match.group(2):
        return match.group(2)
    return ""


def parse_report(date: str, text: str, *, today: Optional[dt.date] = None) -> DailyReport:
    """Decode a full report document; schedules come back time-sorted."""
    initial = _ScanState(todo_project=settings.default_todo_project)
    state = reduce(lambda acc, line: _scan_line(acc, line, today), text.splitlines(), initial)
    return DailyReport(
        date=date,
        author=parse_author(text),
        plan=sort_schedule(state.plan),
        result=sort_schedule(state.result),
        todos=state.todos,
        notes="\n".join(state.notes).strip(),
    )


def generate_report(report: DailyReport, *, title: Optional[str] = None) -> str:
    title = title or settings.report_title
    heading = f"# [{title}] {report.author} {report.date}" if report.author else f"# [{title}] {report.date}"
    lines: List[str] = [heading, ""]

    lines.extend(["## [PLAN]", ""])
    lines.extend(encode_schedule(report.plan))
    lines.append("")

    lines.extend(["## [RESULT]", ""])
    lines.extend(encode_schedule(report.result))
    lines.append("")

    lines.extend(["## [TODO]", ""])
    lines.extend(encode_todos(report.todos))
    lines.append("")

    lines.extend(["## [NOTE]", ""])
    lines.append(report.notes or "")
    return "\n".join(lines)
