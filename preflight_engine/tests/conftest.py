# preflight_engine/tests/conftest.py

"""
Pytest configuration and fixtures for pre-flight engine tests.
"""

import logging
from datetime import date, timedelta
from typing import List, Optional

import pytest

from preflight_engine.core.problem_model import Assignment, Student, Teacher
from preflight_engine.utils.logging import PreflightLogger

# Configure logging for tests
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

MONDAY = date(2024, 1, 8)


def make_assignment(
    assignment_id: str,
    day: date,
    time_slot: str = "08:00",
    student_id: str = "S1",
    examiner1_id: Optional[str] = "T1",
    examiner2_id: Optional[str] = None,
) -> Assignment:
    return Assignment(
        id=assignment_id,
        date=day,
        time_slot=time_slot,
        student_id=student_id,
        examiner1_id=examiner1_id,
        examiner2_id=examiner2_id,
    )


def weekdays_from(start: date, count: int) -> List[date]:
    days = []
    current = start
    while len(days) < count:
        if current.weekday() < 5:
            days.append(current)
        current += timedelta(days=1)
    return days


@pytest.fixture
def monday():
    return MONDAY


@pytest.fixture
def candidate_dates():
    """Monday to Friday of the exam week"""
    return [MONDAY + timedelta(days=i) for i in range(5)]


@pytest.fixture
def teachers():
    return [
        Teacher(id="T1", name="Teacher One", department="Cardiology"),
        Teacher(id="T2", name="Teacher Two", department="Neurology"),
        Teacher(id="T3", name="Teacher Three", department="Surgery"),
    ]


@pytest.fixture
def students():
    return [
        Student(id="S1", name="Student One", department="Surgery", group="A"),
        Student(id="S2", name="Student Two", department="Neurology", group="B"),
    ]


@pytest.fixture
def preflight_logger():
    return PreflightLogger(name="preflight_engine.tests")


@pytest.fixture
def skewed_assignments():
    """Ten exams spread 8/1/1 over Monday to Wednesday"""
    assignments = [
        make_assignment(f"A{i:02d}", MONDAY, student_id=f"S{i}", examiner1_id=None)
        for i in range(1, 9)
    ]
    assignments.append(
        make_assignment("A09", MONDAY + timedelta(days=1), examiner1_id=None)
    )
    assignments.append(
        make_assignment("A10", MONDAY + timedelta(days=2), examiner1_id=None)
    )
    return assignments


@pytest.fixture
def balanced_assignments():
    """Twelve exams spread 4/4/4 over Monday to Wednesday"""
    return [
        make_assignment(
            f"B{day * 4 + i:02d}", MONDAY + timedelta(days=day), examiner1_id=None
        )
        for day in range(3)
        for i in range(4)
    ]
