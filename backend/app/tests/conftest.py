# backend/app/tests/conftest.py

from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from preflight_engine.adaptive.weight_adjuster import WeightAdjuster

from ..api.deps import get_weight_adjuster
from ..main import app


def assignment_payload(
    assignment_id: str,
    day: str,
    time_slot: str = "08:00",
    student_id: str = "S1",
    examiner1_id: Optional[str] = "T1",
    examiner2_id: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "id": assignment_id,
        "date": day,
        "time_slot": time_slot,
        "student_id": student_id,
        "examiner1_id": examiner1_id,
        "examiner2_id": examiner2_id,
    }


@pytest.fixture
def weight_adjuster() -> WeightAdjuster:
    """A fresh adjuster per test so weight history never leaks between tests."""
    return WeightAdjuster()


@pytest_asyncio.fixture
async def client(weight_adjuster) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the shared adjuster overridden."""
    app.dependency_overrides[get_weight_adjuster] = lambda: weight_adjuster

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://testserver"
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def teachers() -> List[Dict[str, Any]]:
    return [
        {
            "id": "T1",
            "name": "Dr. One",
            "department": "Cardiology",
            "duty_dates": ["2024-01-08"],
        },
        {"id": "T2", "name": "Dr. Two", "department": "Neurology"},
    ]


@pytest.fixture
def students() -> List[Dict[str, Any]]:
    return [{"id": "S1", "name": "Student One", "department": "Surgery"}]


@pytest.fixture
def duty_conflict_request(teachers, students) -> Dict[str, Any]:
    """One exam examined by a teacher who is on duty that day."""
    return {
        "assignments": [
            assignment_payload("A1", "2024-01-08", examiner2_id="T2"),
        ],
        "teachers": teachers,
        "students": students,
    }


@pytest.fixture
def skewed_assignments() -> List[Dict[str, Any]]:
    """Eight exams on Monday, one on Tuesday and one on Wednesday."""
    assignments = [
        assignment_payload(f"A{i:02d}", "2024-01-08", examiner1_id=None)
        for i in range(1, 9)
    ]
    assignments.append(assignment_payload("A09", "2024-01-09", examiner1_id=None))
    assignments.append(assignment_payload("A10", "2024-01-10", examiner1_id=None))
    return assignments


@pytest.fixture
def candidate_dates() -> List[str]:
    return ["2024-01-08", "2024-01-09", "2024-01-10", "2024-01-11", "2024-01-12"]
