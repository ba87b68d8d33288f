from __future__ import annotations

from typing import Dict, List, Optional

from typing_extensions import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .utils import new_id, parse_time

TodoStatus = Literal["pending", "in_progress", "completed", "on_hold"]
TodoPriority = Literal["high", "medium", "low"]
ScheduleKind = Literal["plan", "result"]

TODO_STATUSES: tuple[str, ...] = ("pending", "in_progress", "completed", "on_hold")
SCHEDULE_KINDS: tuple[str, ...] = ("plan", "result")


class ScheduleEntry(BaseModel):
    """One ``* HH:MM [PROJECT] task`` line; empty project and task make a bare-time marker."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    time: str
    project: str = ""
    task: str = ""

    @field_validator("time")
    @classmethod
    def _validate_time(cls, value: str) -> str:
        parse_time(value)
        return value.strip()

    @field_validator("project", "task")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        value = value.strip()
        if "\n" in value or "\r" in value:
            raise ValueError("schedule text must fit on one line")
        return value

    @model_validator(mode="after")
    def _marker_or_complete(self) -> "ScheduleEntry":
        # A line needs both "[PROJECT]" and task text, or neither (bare-time marker).
        if bool(self.project) != bool(self.task):
            raise ValueError("schedule entry needs both project and task, or neither")
        if "]" in self.project:
            raise ValueError("project must not contain ']'")
        return self

    @property
    def is_marker(self) -> bool:
        return not self.project and not self.task

    @property
    def minutes(self) -> int:
        return parse_time(self.time)


class TodoEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: new_id("t"))
    status: TodoStatus = "pending"
    project: str
    task: str
    description: Optional[str] = None
    deadline: Optional[str] = None
    priority: Optional[TodoPriority] = None


class DailyReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    date: str
    author: str = ""
    plan: List[ScheduleEntry] = Field(default_factory=list)
    result: List[ScheduleEntry] = Field(default_factory=list)
    todos: List[TodoEntry] = Field(default_factory=list)
    notes: str = ""

    def schedule(self, kind: str) -> List[ScheduleEntry]:
        return list(self.plan if kind == "plan" else self.result)


class RenderSlot(BaseModel):
    """Display-only interval derived from a schedule list and the visible window."""

    model_config = ConfigDict(frozen=True)

    id: str
    time: str
    project: str = ""
    task: str = ""
    start_minutes: int
    duration: int
    is_break: bool = False

    @property
    def end_minutes(self) -> int:
        return self.start_minutes + self.duration


class TimeWindow(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_hour: int
    end_hour: int
    total_hours: int

    @property
    def start_minutes(self) -> int:
        return self.start_hour * 60

    @property
    def end_minutes(self) -> int:
        return (self.start_hour + self.total_hours) * 60


class ProjectSummary(BaseModel):
    project: str
    plan_minutes: int = 0
    result_minutes: int = 0


class DragState(BaseModel):
    """Captured when a gesture starts; immutable for the gesture's lifetime."""

    model_config = ConfigDict(frozen=True)

    item_id: str
    kind: ScheduleKind
    start_y: float
    start_minutes: int
    is_break: bool = False
    break_duration: Optional[int] = None


class DragPreview(BaseModel):
    model_config = ConfigDict(frozen=True)

    offset_px: float
    time: str
    over_result: bool = False


class DragOutcome(BaseModel):
    """Mutation emitted when a gesture resolves: the replacement list for one schedule."""

    model_config = ConfigDict(frozen=True)

    action: Literal["move", "copy"]
    kind: ScheduleKind
    entries: List[ScheduleEntry]
    time: str
    end_time: Optional[str] = None


TodoCounts = Dict[str, int]
