from __future__ import annotations

import datetime as dt

import pytest

from dailyreport.config import TimelineConfig
from dailyreport.schemas import ScheduleEntry, TimeWindow


SAMPLE_REPORT = """# [日報] Sato 2024-06-03

## [PLAN]

* 09:00 [P1] Standup
* 09:30 [P2] Write parser
* 12:00
* 13:00 [P2] Review

## [RESULT]

* 09:15 [P1] Standup
* 10:00 [P2] Write parser

## [TODO]

### P1
- [ ] !! Prepare slides @2024-06-10
  outline first
  then the demo
- [x] Send invoice
### P2
- [*] [P3] ! Fix import @06-05
- [>] Waiting on review

## [NOTE]

Good day.
Tomorrow: more tests.
"""


@pytest.fixture()
def today() -> dt.date:
    return dt.date(2024, 6, 3)


@pytest.fixture()
def sample_text() -> str:
    return SAMPLE_REPORT


@pytest.fixture()
def config() -> TimelineConfig:
    return TimelineConfig()


@pytest.fixture()
def window() -> TimeWindow:
    return TimeWindow(start_hour=8, end_hour=20, total_hours=12)


@pytest.fixture()
def make_entry():
    def _make(time: str, project: str = "", task: str = "", id: str | None = None) -> ScheduleEntry:
        if id is None:
            return ScheduleEntry(time=time, project=project, task=task)
        return ScheduleEntry(id=id, time=time, project=project, task=task)

    return _make
