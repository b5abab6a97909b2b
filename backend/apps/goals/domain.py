"""Typed goal records and the pure aggregation rules built on them.

Nothing in this module touches the database. ``apps.goals.records`` maps
ORM rows into these records; views and services hand the records to the
functions below.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from .models import (
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_OVERDUE,
    STATUS_PENDING,
)

ZERO = Decimal("0")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_half_up(value) -> int:
    return int(to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calculate_progress(current_value, target_value) -> int:
    """Percentage of ``target_value`` reached, clamped to 0..100.

    A non-positive target has no meaningful ratio and yields 0.
    """
    target = to_decimal(target_value)
    if target <= 0:
        return 0
    percent = round_half_up(to_decimal(current_value) / target * 100)
    return max(0, min(percent, 100))


@dataclass(frozen=True)
class EmployeeRef:
    id: int
    name: str
    email: str = ""
    position: str = ""


@dataclass(frozen=True)
class GoalRecord:
    id: int
    name: str
    sector: str
    metric_type: str
    start_date: date
    end_date: date
    description: str = ""
    metric_unit: str = ""
    target_value: Decimal | None = None


@dataclass(frozen=True)
class GoalInstanceRecord:
    id: int
    assigned_goal_id: int
    period_start: date
    period_end: date
    target_value: Decimal = ZERO
    current_value: Decimal = ZERO
    progress: int = 0
    status: str = STATUS_PENDING
    notes: str = ""


@dataclass(frozen=True)
class AssignedGoalRecord:
    id: int
    goal_id: int
    employee: EmployeeRef | None
    goal_type: str
    target_value: Decimal = ZERO
    current_value: Decimal = ZERO
    progress: int = 0
    status: str = STATUS_PENDING
    instances: tuple[GoalInstanceRecord, ...] = ()


@dataclass(frozen=True)
class ProgressTotals:
    target_value: Decimal = ZERO
    current_value: Decimal = ZERO

    def __add__(self, other: "ProgressTotals") -> "ProgressTotals":
        return ProgressTotals(
            target_value=self.target_value + other.target_value,
            current_value=self.current_value + other.current_value,
        )

    @property
    def progress(self) -> int:
        return calculate_progress(self.current_value, self.target_value)

    @classmethod
    def from_assignments(cls, assignments: Iterable[AssignedGoalRecord]) -> "ProgressTotals":
        totals = cls()
        for assignment in assignments:
            totals = totals + cls(
                target_value=to_decimal(assignment.target_value),
                current_value=to_decimal(assignment.current_value),
            )
        return totals


@dataclass(frozen=True)
class GoalWithDetails:
    goal: GoalRecord
    assignments: tuple[AssignedGoalRecord, ...] = ()
    assigned_to: tuple[EmployeeRef, ...] = ()
    total_target_value: Decimal = ZERO
    total_current_value: Decimal = ZERO
    overall_progress: int = 0

    @property
    def instances(self) -> tuple[GoalInstanceRecord, ...]:
        return tuple(instance for assignment in self.assignments for instance in assignment.instances)


@dataclass(frozen=True)
class InstanceBuckets:
    active: tuple[GoalInstanceRecord, ...] = ()
    history: tuple[GoalInstanceRecord, ...] = ()
    upcoming: tuple[GoalInstanceRecord, ...] = ()

    @property
    def current(self) -> GoalInstanceRecord | None:
        return self.active[0] if self.active else None


@dataclass(frozen=True)
class GoalStatistics:
    total_goals: int = 0
    completed_goals: int = 0
    in_progress_goals: int = 0
    overdue_goals: int = 0
    pending_goals: int = 0
    completion_rate: int = 0


def aggregate_goal(goal: GoalRecord, assignments: Iterable[AssignedGoalRecord]) -> GoalWithDetails:
    assignments = tuple(assignments)
    assigned_to = []
    seen_ids = set()
    for assignment in assignments:
        employee = assignment.employee
        if employee is None or employee.id in seen_ids:
            continue
        seen_ids.add(employee.id)
        assigned_to.append(employee)

    totals = ProgressTotals.from_assignments(assignments)
    return GoalWithDetails(
        goal=goal,
        assignments=assignments,
        assigned_to=tuple(assigned_to),
        total_target_value=totals.target_value,
        total_current_value=totals.current_value,
        overall_progress=totals.progress,
    )


def _as_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def classify_instances(instances: Iterable[GoalInstanceRecord], now) -> InstanceBuckets:
    """Split instances into active, history and upcoming relative to ``now``.

    Both period bounds are inclusive, so an instance ending today is still
    active. Each bucket is ordered by period start, most recent first.
    """
    today = _as_date(now)
    active = []
    history = []
    upcoming = []
    for instance in instances:
        if instance.period_start > today:
            upcoming.append(instance)
        elif instance.period_end < today:
            history.append(instance)
        else:
            active.append(instance)

    def by_start(rows):
        return tuple(sorted(rows, key=lambda row: row.period_start, reverse=True))

    return InstanceBuckets(active=by_start(active), history=by_start(history), upcoming=by_start(upcoming))


def calculate_goal_statistics(goals: Iterable[GoalWithDetails]) -> GoalStatistics:
    """Count goals by the status of their assignments.

    "completed" and "pending" need every assignment in that status while
    "in-progress" and "overdue" need only one, so a goal can count towards
    several buckets. A goal without assignments satisfies both "every"
    checks and counts as completed and as pending.
    """
    goals = list(goals)
    total = len(goals)
    completed = in_progress = overdue = pending = 0
    for goal in goals:
        statuses = [assignment.status for assignment in goal.assignments]
        if all(status == STATUS_COMPLETED for status in statuses):
            completed += 1
        if any(status == STATUS_IN_PROGRESS for status in statuses):
            in_progress += 1
        if any(status == STATUS_OVERDUE for status in statuses):
            overdue += 1
        if all(status == STATUS_PENDING for status in statuses):
            pending += 1

    completion_rate = round_half_up(Decimal(completed) / Decimal(total) * 100) if total else 0
    return GoalStatistics(
        total_goals=total,
        completed_goals=completed,
        in_progress_goals=in_progress,
        overdue_goals=overdue,
        pending_goals=pending,
        completion_rate=completion_rate,
    )


def status_for_progress(progress: int) -> str:
    if progress >= 100:
        return STATUS_COMPLETED
    return STATUS_IN_PROGRESS
