from __future__ import annotations

import math
import re
import uuid
from typing import Optional

_TIME_RE = re.compile(r"^(\d{2}):(\d{2})$")


def parse_time(value: str) -> int:
    """Return the minute offset from midnight for a zero-padded ``HH:MM`` string.

    Hours are not capped at 23: the timeline window may run past midnight
    (``25:30`` is 01:30 on the following day).
    """
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid HH:MM: {value!r}")
    hours = int(match.group(1))
    minutes = int(match.group(2))
    if minutes > 59:
        raise ValueError(f"Invalid HH:MM: {value!r}")
    return hours * 60 + minutes


def try_parse_time(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return parse_time(value)
    except ValueError:
        return None


def format_time(minutes: int) -> str:
    minutes = max(int(minutes), 0)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_duration(minutes: int) -> str:
    minutes = max(int(minutes), 0)
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h{rest}m"
    if hours:
        return f"{hours}h"
    return f"{rest}m"


def round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; pointer math wants .5 to go up.
    return int(math.floor(value + 0.5))


def new_id(prefix: str = "") -> str:
    return f"{prefix}{uuid.uuid4().hex[:12]}"
