# app/services/schedule.py - Weekly time-slot helpers shared by enrollment and section services
import re
from typing import Iterable, List, Protocol, Tuple

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DAY_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


class Slot(Protocol):
    day: int
    start_time: str
    end_time: str


def is_valid_time(value: str) -> bool:
    """True for zero-padded 24-hour "HH:MM" strings"""
    return bool(value) and _TIME_RE.match(value) is not None


def slots_conflict(new: Slot, existing: Slot) -> bool:
    """
    Two slots clash when they fall on the same day and their half-open
    [start, end) intervals overlap. Zero-padded "HH:MM" strings order
    lexically, so plain string comparison is enough.
    """
    if new.day != existing.day:
        return False
    return new.start_time < existing.end_time and new.end_time > existing.start_time


def find_conflicts(candidate: Iterable[Slot], held: Iterable[Tuple[str, Slot]]) -> List[Tuple[str, int]]:
    """
    Compare every candidate slot against every held slot.

    ``held`` pairs a label (course code) with a slot. Returns (label, day)
    for each clash, in discovery order.
    """
    held = list(held)
    conflicts = []
    for slot in candidate:
        for label, other in held:
            if slots_conflict(slot, other):
                conflicts.append((label, slot.day))
    return conflicts


def sort_slots(slots: Iterable[Slot]) -> list:
    return sorted(slots, key=lambda s: (s.day, s.start_time))
