# preflight_engine/analysis/conflict_scanner.py

"""
Multi-dimensional conflict scan of a candidate exam schedule.

Seven independent detectors run over the same assignment set:
duty-shift, department, time-overlap, workload, availability, legal-rest
and continuous-work. Each produces typed ConflictDetectionResult entries.
Records whose references cannot be resolved are skipped by the detector
that needs them and are never reported as violations.
"""

import logging
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import PreflightStage, ScannerConfig
from ..core.constraint_types import (
    ConflictDetectionResult,
    ConflictSeverity,
    ConflictType,
)
from ..core.problem_model import Assignment, DutyRotation, Student, Teacher
from ..utils.logging import PreflightLogger, get_preflight_logger

logger = logging.getLogger(__name__)

_EXAMINER_ROLES = ("examiner1", "examiner2")


class _ScanContext:
    """Identity maps built once per scan."""

    def __init__(
        self,
        assignments: Sequence[Assignment],
        teachers: Iterable[Teacher],
        students: Iterable[Student],
    ):
        self.assignments = [a for a in assignments if _is_well_formed(a)]
        self.teachers: Dict[str, Teacher] = {t.id: t for t in teachers if t.id}
        self.students: Dict[str, Student] = {s.id: s for s in students if s.id}

        skipped = len(assignments) - len(self.assignments)
        if skipped:
            logger.debug(f"Skipping {skipped} malformed assignment(s)")

        # teacher id -> assignments in input order
        self.by_teacher: Dict[str, List[Assignment]] = defaultdict(list)
        for assignment in self.assignments:
            for examiner_id in assignment.examiner_ids():
                self.by_teacher[examiner_id].append(assignment)

    def teacher(self, teacher_id: Optional[str]) -> Optional[Teacher]:
        if not teacher_id:
            return None
        teacher = self.teachers.get(teacher_id)
        if teacher is None:
            logger.debug(f"Unresolved teacher reference: {teacher_id}")
        return teacher


def _is_well_formed(assignment: Assignment) -> bool:
    return bool(assignment.id) and isinstance(assignment.date, date)


class ConflictScanner:
    """Runs every detector and concatenates their results in a fixed order."""

    def __init__(
        self,
        config: Optional[ScannerConfig] = None,
        rotation: Optional[DutyRotation] = None,
        preflight_logger: Optional[PreflightLogger] = None,
    ):
        self.config = config or ScannerConfig()
        self.rotation = rotation
        self.preflight_logger = preflight_logger or get_preflight_logger()

        self._detectors: List[
            Tuple[ConflictType, Callable[[_ScanContext], List[ConflictDetectionResult]]]
        ] = [
            (ConflictType.DUTY_SHIFT, self._detect_duty_shift_conflicts),
            (ConflictType.DEPARTMENT, self._detect_department_conflicts),
            (ConflictType.TIME_OVERLAP, self._detect_time_overlap_conflicts),
            (ConflictType.WORKLOAD, self._detect_workload_conflicts),
            (ConflictType.AVAILABILITY, self._detect_availability_conflicts),
            (ConflictType.LEGAL_REST, self._detect_legal_rest_conflicts),
            (ConflictType.CONTINUOUS_WORK, self._detect_continuous_work_conflicts),
        ]

    def scan(
        self,
        assignments: Sequence[Assignment],
        teachers: Iterable[Teacher],
        students: Iterable[Student],
    ) -> List[ConflictDetectionResult]:
        assignments = list(assignments)
        if not assignments:
            return []

        conflicts: List[ConflictDetectionResult] = []
        with self.preflight_logger.stage_context(
            PreflightStage.SCAN, {"assignments": len(assignments)}
        ):
            context = _ScanContext(assignments, teachers, students)
            for conflict_type, detector in self._detectors:
                with self.preflight_logger.operation_timer(
                    f"detect_{conflict_type.value}"
                ):
                    found = detector(context)
                if found:
                    self.preflight_logger.increment_counter(
                        f"{conflict_type.value}_conflicts", len(found)
                    )
                conflicts.extend(found)

        logger.info(
            f"Conflict scan finished: {len(conflicts)} conflict(s) "
            f"in {len(assignments)} assignment(s)"
        )
        return conflicts

    # ------------------------------------------------------------------
    # Detectors
    # ------------------------------------------------------------------

    def _detect_duty_shift_conflicts(
        self, ctx: _ScanContext
    ) -> List[ConflictDetectionResult]:
        conflicts = []
        for assignment in ctx.assignments:
            for role, examiner_id in zip(
                _EXAMINER_ROLES, (assignment.examiner1_id, assignment.examiner2_id)
            ):
                teacher = ctx.teacher(examiner_id)
                if teacher is None:
                    continue
                if not teacher.is_on_duty(assignment.date, self.rotation):
                    continue
                conflicts.append(
                    ConflictDetectionResult(
                        id=f"duty_conflict_{assignment.id}_{role}",
                        conflict_type=ConflictType.DUTY_SHIFT,
                        severity=ConflictSeverity.CRITICAL,
                        description=(
                            f"{_role_label(role)} {teacher.name} is on the day shift "
                            f"on {assignment.date.isoformat()} and cannot examine"
                        ),
                        affected_assignments=(assignment.id,),
                        affected_teachers=(teacher.id,),
                        affected_students=_student_ids(assignment),
                        suggested_actions=(
                            f"Replace {_role_label(role).lower()} "
                            "with an off-duty teacher",
                            "Move the exam to a date outside the duty shift",
                            "Request a duty-shift swap",
                        ),
                        estimated_impact=95,
                    )
                )
        return conflicts

    def _detect_department_conflicts(
        self, ctx: _ScanContext
    ) -> List[ConflictDetectionResult]:
        conflicts = []
        for assignment in ctx.assignments:
            examiner2 = ctx.teacher(assignment.examiner2_id)
            student = ctx.students.get(assignment.student_id)
            if examiner2 is None or student is None:
                continue
            if not student.department or examiner2.department != student.department:
                continue
            conflicts.append(
                ConflictDetectionResult(
                    id=f"dept_conflict_{assignment.id}_examiner2",
                    conflict_type=ConflictType.DEPARTMENT,
                    severity=ConflictSeverity.HIGH,
                    description=(
                        f"Examiner 2 {examiner2.name} and student {student.name} "
                        f"belong to the same department ({student.department})"
                    ),
                    affected_assignments=(assignment.id,),
                    affected_teachers=(examiner2.id,),
                    affected_students=(student.id,),
                    suggested_actions=(
                        "Replace examiner 2 with a teacher from another department",
                        "Prefer an experienced cross-department examiner",
                    ),
                    estimated_impact=80,
                )
            )
        return conflicts

    def _detect_time_overlap_conflicts(
        self, ctx: _ScanContext
    ) -> List[ConflictDetectionResult]:
        conflicts = []
        for teacher_id, assignments in ctx.by_teacher.items():
            if ctx.teacher(teacher_id) is None:
                continue
            timed = self._sorted_windows(assignments)
            for i, (first, start1, end1) in enumerate(timed):
                for second, start2, _ in timed[i + 1 :]:
                    if start2.date() != start1.date() or start2 >= end1:
                        break
                    conflicts.append(
                        ConflictDetectionResult(
                            id=f"time_overlap_{first.id}_{second.id}_{teacher_id}",
                            conflict_type=ConflictType.TIME_OVERLAP,
                            severity=ConflictSeverity.CRITICAL,
                            description=(
                                f"Teacher {teacher_id} has overlapping exams on "
                                f"{first.date.isoformat()} at {first.time_slot} "
                                f"and {second.time_slot}"
                            ),
                            affected_assignments=(first.id, second.id),
                            affected_teachers=(teacher_id,),
                            affected_students=_student_ids(first, second),
                            suggested_actions=(
                                "Shift the start time of one of the exams",
                                "Assign a different examiner to one of the exams",
                                "Reschedule one of the exams to another date",
                            ),
                            estimated_impact=100,
                        )
                    )
        return conflicts

    def _detect_workload_conflicts(
        self, ctx: _ScanContext
    ) -> List[ConflictDetectionResult]:
        cfg = self.config
        conflicts = []
        for teacher_id, assignments in ctx.by_teacher.items():
            teacher = ctx.teacher(teacher_id)
            if teacher is None:
                continue
            workload = len(assignments)
            cap = self.workload_cap(teacher)
            if workload <= cap:
                continue
            excess = workload - cap
            severity = (
                ConflictSeverity.HIGH
                if workload > cap * cfg.workload_severe_ratio
                else ConflictSeverity.MEDIUM
            )
            conflicts.append(
                ConflictDetectionResult(
                    id=f"workload_{teacher_id}",
                    conflict_type=ConflictType.WORKLOAD,
                    severity=severity,
                    description=(
                        f"Teacher {teacher.name} is overloaded ({workload}/{cap})"
                    ),
                    affected_assignments=tuple(a.id for a in assignments),
                    affected_teachers=(teacher_id,),
                    suggested_actions=(
                        "Reassign some exams to other examiners",
                        "Extend the exam period to spread the workload",
                        "Add temporary examiners",
                    ),
                    estimated_impact=min(90, 50 + excess * 10),
                )
            )
        return conflicts

    def _detect_availability_conflicts(
        self, ctx: _ScanContext
    ) -> List[ConflictDetectionResult]:
        conflicts = []
        for assignment in ctx.assignments:
            for role, examiner_id in zip(
                _EXAMINER_ROLES, (assignment.examiner1_id, assignment.examiner2_id)
            ):
                teacher = ctx.teacher(examiner_id)
                if teacher is None:
                    continue
                if teacher.is_available(assignment.date, assignment.time_slot):
                    continue
                conflicts.append(
                    ConflictDetectionResult(
                        id=f"availability_{assignment.id}_{role}",
                        conflict_type=ConflictType.AVAILABILITY,
                        severity=ConflictSeverity.HIGH,
                        description=(
                            f"{_role_label(role)} {teacher.name} is unavailable on "
                            f"{assignment.date.isoformat()} {assignment.time_slot}"
                        ),
                        affected_assignments=(assignment.id,),
                        affected_teachers=(teacher.id,),
                        affected_students=_student_ids(assignment),
                        suggested_actions=(
                            f"Replace {_role_label(role).lower()} "
                            "with an available teacher",
                            "Move the exam to a slot the examiner is available for",
                            "Confirm the examiner's leave or travel plans",
                        ),
                        estimated_impact=85,
                    )
                )
        return conflicts

    def _detect_legal_rest_conflicts(
        self, ctx: _ScanContext
    ) -> List[ConflictDetectionResult]:
        conflicts = []
        for assignment in ctx.assignments:
            if not self.is_legal_rest_day(assignment.date):
                continue
            conflicts.append(
                ConflictDetectionResult(
                    id=f"legal_rest_{assignment.id}",
                    conflict_type=ConflictType.LEGAL_REST,
                    severity=ConflictSeverity.MEDIUM,
                    description=(
                        f"Exam scheduled on a rest day {assignment.date.isoformat()}"
                    ),
                    affected_assignments=(assignment.id,),
                    affected_teachers=assignment.examiner_ids(),
                    affected_students=_student_ids(assignment),
                    suggested_actions=(
                        "Move the exam to a working day",
                        "Confirm overtime compensation",
                        "Obtain the examiners' consent",
                    ),
                    estimated_impact=60,
                )
            )
        return conflicts

    def _detect_continuous_work_conflicts(
        self, ctx: _ScanContext
    ) -> List[ConflictDetectionResult]:
        cfg = self.config
        conflicts = []
        for teacher_id, assignments in ctx.by_teacher.items():
            teacher = ctx.teacher(teacher_id)
            if teacher is None:
                continue
            timed = self._sorted_windows(assignments)

            run: List[Assignment] = []
            hours = 0.0
            for i, (assignment, _, end) in enumerate(timed):
                run.append(assignment)
                hours += cfg.exam_duration_hours

                if i + 1 < len(timed):
                    next_start = timed[i + 1][1]
                    gap_hours = (next_start - end) / timedelta(hours=1)
                    if gap_hours <= cfg.min_rest_gap_hours:
                        continue

                if hours > cfg.max_continuous_hours:
                    conflicts.append(
                        self._continuous_work_result(teacher, i, run, hours)
                    )
                run = []
                hours = 0.0
        return conflicts

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _continuous_work_result(
        self, teacher: Teacher, index: int, run: List[Assignment], hours: float
    ) -> ConflictDetectionResult:
        severity = (
            ConflictSeverity.HIGH
            if hours > self.config.severe_continuous_hours
            else ConflictSeverity.MEDIUM
        )
        return ConflictDetectionResult(
            id=f"continuous_work_{teacher.id}_{index}",
            conflict_type=ConflictType.CONTINUOUS_WORK,
            severity=severity,
            description=(
                f"Teacher {teacher.name} works {hours:g} hours without a break"
            ),
            affected_assignments=tuple(a.id for a in run),
            affected_teachers=(teacher.id,),
            affected_students=_student_ids(*run),
            suggested_actions=(
                "Schedule enough rest between consecutive exams",
                "Reassign some exams to other examiners",
                "Spread the exams over more time slots",
            ),
            estimated_impact=min(90, 40 + hours * 5),
        )

    def _sorted_windows(
        self, assignments: List[Assignment]
    ) -> List[Tuple[Assignment, datetime, datetime]]:
        """Assignments with a parseable slot, sorted by start time."""
        duration = timedelta(hours=self.config.exam_duration_hours)
        timed = []
        for index, assignment in enumerate(assignments):
            start = assignment.start_datetime(self.config.named_slot_starts)
            if start is None:
                logger.debug(
                    f"Skipping assignment {assignment.id}: "
                    f"unparseable time slot {assignment.time_slot!r}"
                )
                continue
            timed.append((start, index, assignment))
        timed.sort(key=lambda item: (item[0], item[1]))
        return [(a, start, start + duration) for start, _, a in timed]

    def workload_cap(self, teacher: Teacher) -> int:
        title = (teacher.title or "").lower()
        if any(keyword in title for keyword in self.config.senior_title_keywords):
            return self.config.senior_workload_cap
        return self.config.default_workload_cap

    def is_legal_rest_day(self, day: date) -> bool:
        return day.weekday() >= 5 or day in self.config.holidays


def _role_label(role: str) -> str:
    return "Examiner 1" if role == "examiner1" else "Examiner 2"


def _student_ids(*assignments: Assignment) -> Tuple[str, ...]:
    ids: List[str] = []
    for assignment in assignments:
        if assignment.student_id and assignment.student_id not in ids:
            ids.append(assignment.student_id)
    return tuple(ids)
