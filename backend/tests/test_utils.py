from __future__ import annotations

import pytest

from dailyreport.utils import format_duration, format_time, new_id, parse_time, round_half_up, try_parse_time


def test_parse_and_format_time() -> None:
    assert parse_time("09:05") == 545
    assert parse_time(" 25:30 ") == 1530
    assert format_time(545) == "09:05"
    assert format_time(1530) == "25:30"
    assert format_time(-5) == "00:00"


@pytest.mark.parametrize("value", ["9:05", "09:60", "0905", "", "ab:cd"])
def test_parse_time_rejects_malformed(value: str) -> None:
    with pytest.raises(ValueError):
        parse_time(value)
    assert try_parse_time(value) is None


def test_format_duration() -> None:
    assert format_duration(0) == "0m"
    assert format_duration(45) == "45m"
    assert format_duration(120) == "2h"
    assert format_duration(90) == "1h30m"


def test_round_half_up() -> None:
    assert round_half_up(2.5) == 3
    assert round_half_up(-2.5) == -2
    assert round_half_up(2.49) == 2


def test_new_id_is_prefixed_and_unique() -> None:
    first, second = new_id("r"), new_id("r")
    assert first.startswith("r")
    assert first != second
