# tests/test_schedule.py
from types import SimpleNamespace

import pytest

from app.services.schedule import find_conflicts, is_valid_time, slots_conflict, sort_slots


def slot(day, start, end):
    return SimpleNamespace(day=day, start_time=start, end_time=end)


@pytest.mark.parametrize("a, b, clash", [
    (slot(0, "08:00", "09:30"), slot(0, "09:00", "10:30"), True),
    (slot(0, "08:00", "09:30"), slot(0, "09:30", "11:00"), False),  # touching ends
    (slot(0, "08:00", "12:00"), slot(0, "09:00", "10:00"), True),   # containment
    (slot(0, "08:00", "09:30"), slot(1, "08:00", "09:30"), False),
    (slot(3, "13:00", "15:00"), slot(3, "13:00", "15:00"), True),
])
def test_slots_conflict(a, b, clash):
    assert slots_conflict(a, b) is clash
    assert slots_conflict(b, a) is clash


def test_find_conflicts_reports_label_and_day_in_order():
    candidate = [slot(0, "09:00", "10:30"), slot(2, "08:30", "09:00")]
    held = [
        ("CS101", slot(0, "08:00", "09:30")),
        ("CS101", slot(2, "08:00", "09:30")),
        ("HUM101", slot(2, "08:45", "10:00")),
    ]

    assert find_conflicts(candidate, held) == [("CS101", 0), ("CS101", 2), ("HUM101", 2)]


def test_find_conflicts_empty():
    assert find_conflicts([slot(0, "08:00", "09:00")], []) == []


@pytest.mark.parametrize("value, ok", [
    ("08:00", True),
    ("23:59", True),
    ("8:00", False),
    ("24:00", False),
    ("12:60", False),
    ("", False),
])
def test_is_valid_time(value, ok):
    assert is_valid_time(value) is ok


def test_sort_slots_by_day_then_start():
    slots = [slot(2, "08:00", "09:00"), slot(0, "10:00", "11:00"), slot(0, "08:00", "09:00")]
    assert [(s.day, s.start_time) for s in sort_slots(slots)] == [(0, "08:00"), (0, "10:00"), (2, "08:00")]
