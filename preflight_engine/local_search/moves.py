# preflight_engine/local_search/moves.py

"""
Neighborhood moves of the time-spreading local search and their evaluations.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..core.problem_model import Assignment, shift_date


class MoveKind(Enum):
    RELOCATE = "relocate"
    SWAP = "swap"
    REDISTRIBUTE = "redistribute"

    @property
    def rank(self) -> int:
        """Preference order when expected improvements tie"""
        return _KIND_RANK[self]


_KIND_RANK = {MoveKind.RELOCATE: 0, MoveKind.SWAP: 1, MoveKind.REDISTRIBUTE: 2}


@dataclass(frozen=True)
class TimeSpreadingMove:
    kind: MoveKind
    source_assignment_id: str
    target_date: Optional[date] = None
    swap_assignment_id: Optional[str] = None
    description: str = ""
    expected_improvement: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "source_assignment_id": self.source_assignment_id,
            "target_date": self.target_date.isoformat() if self.target_date else None,
            "swap_assignment_id": self.swap_assignment_id,
            "description": self.description,
            "expected_improvement": self.expected_improvement,
        }


@dataclass
class MoveEvaluationResult:
    move: TimeSpreadingMove
    current_score: float
    new_score: float
    improvement: float
    feasible: bool
    constraint_violations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "move": self.move.to_dict(),
            "current_score": self.current_score,
            "new_score": self.new_score,
            "improvement": self.improvement,
            "feasible": self.feasible,
            "constraint_violations": list(self.constraint_violations),
        }


def group_by_date(assignments: Iterable[Assignment]) -> Dict[date, List[Assignment]]:
    """Assignments per day, days in chronological order, input order within a day"""
    grouped: Dict[date, List[Assignment]] = defaultdict(list)
    for assignment in assignments:
        if assignment.date is not None:
            grouped[assignment.date].append(assignment)
    return {day: grouped[day] for day in sorted(grouped)}


def reschedule(
    assignments: Iterable[Assignment], new_dates: Mapping[str, date]
) -> List[Assignment]:
    """New assignment list with the given ids moved; the input is untouched."""
    return [
        shift_date(a, new_dates[a.id]) if a.id in new_dates else a
        for a in assignments
    ]
