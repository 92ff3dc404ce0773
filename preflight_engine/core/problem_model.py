# preflight_engine/core/problem_model.py

"""
Input records for a pre-flight pass: exam assignments, examiners (teachers)
and students. Records are immutable; move simulation derives new copies.
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Dict, FrozenSet, Optional, Tuple

logger = logging.getLogger(__name__)

_SLOT_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})(?:\s*-\s*\d{1,2}:\d{2})?\s*$")


def parse_slot_start(
    time_slot: Optional[str], named_slots: Optional[Dict[str, str]] = None
) -> Optional[time]:
    """
    Resolve the start time of a slot given as ``"HH:MM"``, ``"HH:MM-HH:MM"``
    or a named slot such as ``"morning"``. Returns None when unparseable.
    """
    if not time_slot:
        return None
    raw = time_slot.strip()
    if named_slots and raw.lower() in named_slots:
        raw = named_slots[raw.lower()]
    match = _SLOT_PATTERN.match(raw)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


@dataclass(frozen=True)
class Assignment:
    id: str
    date: date
    time_slot: str
    student_id: str
    examiner1_id: Optional[str] = None
    examiner2_id: Optional[str] = None
    backup_examiner_id: Optional[str] = None
    violations: Tuple[str, ...] = ()

    def examiner_ids(self) -> Tuple[str, ...]:
        """Distinct examiner identities, primary first."""
        ids = []
        for examiner_id in (self.examiner1_id, self.examiner2_id):
            if examiner_id and examiner_id not in ids:
                ids.append(examiner_id)
        return tuple(ids)

    def start_datetime(
        self, named_slots: Optional[Dict[str, str]] = None
    ) -> Optional[datetime]:
        start = parse_slot_start(self.time_slot, named_slots)
        if start is None or self.date is None:
            return None
        return datetime.combine(self.date, start)


@dataclass(frozen=True)
class UnavailablePeriod:
    start_date: date
    end_date: date
    reason: str = ""

    def covers(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class DutyRotation:
    """
    Four-group duty rotation. The day shift and night shift move one group
    forward every day; the remaining two groups rest.
    """

    BASE_DATE = date(2025, 9, 4)
    GROUPS: Tuple[str, ...] = ("1", "2", "3", "4")

    # cycle position -> (day shift group, night shift group)
    PATTERN: Dict[int, Tuple[str, str]] = {
        0: ("2", "1"),
        1: ("3", "2"),
        2: ("4", "3"),
        3: ("1", "4"),
    }

    def __init__(self, base_date: Optional[date] = None):
        self.base_date = base_date or self.BASE_DATE

    def cycle_position(self, day: date) -> int:
        return (day - self.base_date).days % len(self.PATTERN)

    def day_shift_group(self, day: date) -> str:
        return self.PATTERN[self.cycle_position(day)][0]

    def night_shift_group(self, day: date) -> str:
        return self.PATTERN[self.cycle_position(day)][1]

    def rest_groups(self, day: date) -> Tuple[str, ...]:
        day_group, night_group = self.PATTERN[self.cycle_position(day)]
        return tuple(g for g in self.GROUPS if g not in (day_group, night_group))


@dataclass(frozen=True)
class Teacher:
    id: str
    name: str
    department: str
    title: str = ""
    group: Optional[str] = None
    duty_dates: FrozenSet[date] = frozenset()
    duty_weekdays: FrozenSet[int] = frozenset()  # Monday == 0
    unavailable_periods: Tuple[UnavailablePeriod, ...] = ()
    unavailable_slots: FrozenSet[Tuple[date, str]] = frozenset()

    def is_on_duty(self, day: date, rotation: Optional[DutyRotation] = None) -> bool:
        """Duty-shift indicator: True when the teacher works the day shift."""
        if day in self.duty_dates or day.weekday() in self.duty_weekdays:
            return True
        if rotation is not None and self.group:
            return rotation.day_shift_group(day) == self.group
        return False

    def is_available(self, day: date, time_slot: Optional[str] = None) -> bool:
        if any(period.covers(day) for period in self.unavailable_periods):
            return False
        if time_slot is not None and (day, time_slot) in self.unavailable_slots:
            return False
        return True


@dataclass(frozen=True)
class Student:
    id: str
    name: str
    department: str
    group: str = ""


def shift_date(assignment: Assignment, new_date: date) -> Assignment:
    """Copy-on-write helper used by move simulation."""
    return replace(assignment, date=new_date)


def exam_window(
    assignment: Assignment,
    duration_hours: float,
    named_slots: Optional[Dict[str, str]] = None,
) -> Optional[Tuple[datetime, datetime]]:
    start = assignment.start_datetime(named_slots)
    if start is None:
        return None
    return start, start + timedelta(hours=duration_hours)
