from datetime import date, datetime

import pytest

from cadence.lib.converters import (
    _parse_date,
    _parse_datetime_optional,
    _parse_days,
    days_to_column,
    row_to_completion,
    row_to_task,
)


def test_parse_date_from_iso_string():
    assert _parse_date("2025-10-30") == date(2025, 10, 30)


def test_parse_date_from_iso_datetime_string():
    assert _parse_date("2025-10-30T14:30:00") == date(2025, 10, 30)


def test_parse_date_from_timestamp():
    ts = datetime(2025, 10, 30).timestamp()
    assert _parse_date(ts) == date(2025, 10, 30)


def test_parse_date_empty():
    assert _parse_date("") is None
    assert _parse_date(None) is None


def test_parse_datetime_optional():
    assert _parse_datetime_optional("2025-10-30T14:30:00") == datetime(2025, 10, 30, 14, 30)
    assert _parse_datetime_optional("2025-10-30 14:30:00") == datetime(2025, 10, 30, 14, 30)
    assert _parse_datetime_optional(None) is None
    assert _parse_datetime_optional("") is None


def test_days_column_in_week_order():
    assert days_to_column(frozenset({"friday", "monday"})) == "monday,friday"
    assert days_to_column(frozenset()) == ""


def test_parse_days():
    assert _parse_days("monday,friday") == {"monday", "friday"}
    assert _parse_days("") == frozenset()
    assert _parse_days(None) == frozenset()


def test_row_to_task():
    row = ("abc", "run", "green", "07:00", "monday,wednesday", "2024-01-01", None)
    task = row_to_task(row)
    assert task.id == "abc"
    assert task.name == "run"
    assert task.color == "green"
    assert task.time == "07:00"
    assert task.days == {"monday", "wednesday"}
    assert task.created_on == date(2024, 1, 1)
    assert task.updated_at is None


def test_row_to_task_defaults_color():
    task = row_to_task(("abc", "run", None, None, "", "2024-01-01", "2024-01-02T10:00:00"))
    assert task.color == "blue"
    assert task.days == frozenset()
    assert task.updated_at == datetime(2024, 1, 2, 10, 0)


def test_row_to_task_requires_created_on():
    with pytest.raises(ValueError):
        row_to_task(("abc", "run", "blue", None, "monday", None, None))


def test_row_to_completion():
    completion = row_to_completion((4, "abc", "2024-01-15", "2024-01-15T09:00:00"))
    assert completion.id == 4
    assert completion.task_id == "abc"
    assert completion.completion_date == date(2024, 1, 15)
    assert completion.created_at == datetime(2024, 1, 15, 9, 0)
