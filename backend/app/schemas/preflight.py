# app/schemas/preflight.py
"""Pydantic v2 schemas for the pre-flight validation API."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from preflight_engine.core.constraint_types import (
    ConflictSeverity,
    ConflictType,
    ConstraintCategory,
    ConstraintType,
)
from preflight_engine.core.problem_model import (
    Assignment,
    Student,
    Teacher,
    UnavailablePeriod,
)
from preflight_engine.local_search.moves import MoveKind, TimeSpreadingMove


# --- Input records ---


class UnavailablePeriodSchema(BaseModel):
    start_date: dt.date
    end_date: dt.date
    reason: str = ""


class UnavailableSlotSchema(BaseModel):
    date: dt.date
    time_slot: str


class AssignmentSchema(BaseModel):
    id: str
    date: Optional[dt.date] = None
    time_slot: str = ""
    student_id: str
    examiner1_id: Optional[str] = None
    examiner2_id: Optional[str] = None
    backup_examiner_id: Optional[str] = None
    violations: List[str] = Field(default_factory=list)

    def to_model(self) -> Assignment:
        return Assignment(
            id=self.id,
            date=self.date,
            time_slot=self.time_slot,
            student_id=self.student_id,
            examiner1_id=self.examiner1_id,
            examiner2_id=self.examiner2_id,
            backup_examiner_id=self.backup_examiner_id,
            violations=tuple(self.violations),
        )

    @classmethod
    def from_model(cls, assignment: Assignment) -> "AssignmentSchema":
        return cls(
            id=assignment.id,
            date=assignment.date,
            time_slot=assignment.time_slot,
            student_id=assignment.student_id,
            examiner1_id=assignment.examiner1_id,
            examiner2_id=assignment.examiner2_id,
            backup_examiner_id=assignment.backup_examiner_id,
            violations=list(assignment.violations),
        )


class TeacherSchema(BaseModel):
    id: str
    name: str
    department: str
    title: str = ""
    group: Optional[str] = None
    duty_dates: List[dt.date] = Field(default_factory=list)
    duty_weekdays: List[int] = Field(default_factory=list)
    unavailable_periods: List[UnavailablePeriodSchema] = Field(default_factory=list)
    unavailable_slots: List[UnavailableSlotSchema] = Field(default_factory=list)

    def to_model(self) -> Teacher:
        return Teacher(
            id=self.id,
            name=self.name,
            department=self.department,
            title=self.title,
            group=self.group,
            duty_dates=frozenset(self.duty_dates),
            duty_weekdays=frozenset(self.duty_weekdays),
            unavailable_periods=tuple(
                UnavailablePeriod(p.start_date, p.end_date, p.reason)
                for p in self.unavailable_periods
            ),
            unavailable_slots=frozenset(
                (slot.date, slot.time_slot) for slot in self.unavailable_slots
            ),
        )


class StudentSchema(BaseModel):
    id: str
    name: str
    department: str
    group: str = ""

    def to_model(self) -> Student:
        return Student(
            id=self.id, name=self.name, department=self.department, group=self.group
        )


class ValidationRequest(BaseModel):
    assignments: List[AssignmentSchema]
    teachers: List[TeacherSchema] = Field(default_factory=list)
    students: List[StudentSchema] = Field(default_factory=list)


# --- Validation responses ---


class ConflictRead(BaseModel):
    id: str
    type: ConflictType
    severity: ConflictSeverity
    description: str
    affected_assignments: List[str]
    affected_teachers: List[str]
    affected_students: List[str]
    suggested_actions: List[str]
    estimated_impact: float


class ValidationResponse(BaseModel):
    is_valid: bool
    total_conflicts: int
    conflicts_by_severity: Dict[ConflictSeverity, int]
    conflicts: List[ConflictRead]
    overall_risk_score: float
    recommendations: List[str]
    estimated_resolution_time: int


class CorrectionSuggestionRead(BaseModel):
    conflict_id: str
    action: str
    priority: int
    estimated_effort: int
    expected_improvement: int


class SuggestionsResponse(BaseModel):
    validation: ValidationResponse
    suggestions: List[CorrectionSuggestionRead]


# --- Weights ---


class ConstraintWeightRead(BaseModel):
    id: str
    name: str
    constraint_type: ConstraintType
    base_weight: float
    current_weight: float
    priority: int
    category: ConstraintCategory
    is_adjustable: bool
    min_weight: float
    max_weight: float


class SystemStateSchema(BaseModel):
    """Conflict picture to adjust against; counts default to zero."""

    conflict_count: Optional[int] = Field(default=None, ge=0)
    conflicts_by_severity: Dict[ConflictSeverity, int] = Field(default_factory=dict)
    conflicts_by_type: Dict[ConflictType, int] = Field(default_factory=dict)
    overall_risk_score: float = Field(default=0.0, ge=0, le=100)
    scheduling_success: bool = True


class WeightAdjustRequest(BaseModel):
    """Either an explicit state or a schedule to validate first."""

    state: Optional[SystemStateSchema] = None
    validation: Optional[ValidationRequest] = None


class WeightAdjustResponse(BaseModel):
    adjusted: Dict[str, float]
    weights: List[ConstraintWeightRead]
    recommendations: List[str]


class WeightHistoryRead(BaseModel):
    timestamp: dt.datetime
    constraint_id: str
    old_weight: float
    new_weight: float
    reason: str
    triggered_by: str


class WeightConfiguration(BaseModel):
    constraints: List[Dict[str, Any]] = Field(default_factory=list)
    rules: Optional[List[Dict[str, Any]]] = None
    history: List[Dict[str, Any]] = Field(default_factory=list)
    export_time: Optional[dt.datetime] = None


# --- Moves ---


class MoveSchema(BaseModel):
    kind: MoveKind
    source_assignment_id: str
    target_date: Optional[dt.date] = None
    swap_assignment_id: Optional[str] = None
    description: str = ""
    expected_improvement: float = 0.0

    def to_model(self) -> TimeSpreadingMove:
        return TimeSpreadingMove(
            kind=self.kind,
            source_assignment_id=self.source_assignment_id,
            target_date=self.target_date,
            swap_assignment_id=self.swap_assignment_id,
            description=self.description,
            expected_improvement=self.expected_improvement,
        )


class TimeDistributionRead(BaseModel):
    daily_counts: Dict[dt.date, int]
    mean: float
    variance: float
    std_dev: float
    concentration_score: float
    total_exams: int
    active_days: int
    max_exams_per_day: int
    min_exams_per_day: int


class MoveProposalRequest(BaseModel):
    assignments: List[AssignmentSchema]
    candidate_dates: List[dt.date] = Field(default_factory=list)


class MoveProposalResponse(BaseModel):
    stats: TimeDistributionRead
    needs_optimization: bool
    suggestions: List[str]
    moves: List[MoveSchema]


class MoveEvaluationRequest(BaseModel):
    assignments: List[AssignmentSchema]
    move: MoveSchema


class MoveEvaluationRead(BaseModel):
    move: MoveSchema
    current_score: float
    new_score: float
    improvement: float
    feasible: bool
    constraint_violations: List[str]


class RepairRequest(BaseModel):
    assignments: List[AssignmentSchema]
    candidate_dates: List[dt.date] = Field(default_factory=list)
    max_moves: Optional[int] = Field(default=None, ge=0)


class RepairResponse(BaseModel):
    assignments: List[AssignmentSchema]
    applied_moves: List[MoveEvaluationRead]
    initial_stats: TimeDistributionRead
    final_stats: TimeDistributionRead
    iterations: int
    stop_reason: str
    total_improvement: float
