from django.db.models import Prefetch

from .domain import (
    AssignedGoalRecord,
    EmployeeRef,
    GoalInstanceRecord,
    GoalRecord,
    GoalWithDetails,
    aggregate_goal,
    to_decimal,
)
from .models import AssignedGoal, Goal, GoalInstance


def employee_ref(employee) -> EmployeeRef | None:
    if employee is None:
        return None
    return EmployeeRef(
        id=employee.id,
        name=employee.full_name,
        email=employee.email,
        position=employee.position,
    )


def goal_record(goal: Goal) -> GoalRecord:
    return GoalRecord(
        id=goal.id,
        name=goal.name,
        description=goal.description,
        sector=goal.sector,
        metric_type=goal.metric_type,
        metric_unit=goal.metric_unit,
        target_value=goal.target_value,
        start_date=goal.start_date,
        end_date=goal.end_date,
    )


def instance_record(instance: GoalInstance) -> GoalInstanceRecord:
    return GoalInstanceRecord(
        id=instance.id,
        assigned_goal_id=instance.assigned_goal_id,
        period_start=instance.period_start,
        period_end=instance.period_end,
        target_value=to_decimal(instance.target_value),
        current_value=to_decimal(instance.current_value),
        progress=instance.progress,
        status=instance.status,
        notes=instance.notes,
    )


def assigned_goal_record(assignment: AssignedGoal) -> AssignedGoalRecord:
    return AssignedGoalRecord(
        id=assignment.id,
        goal_id=assignment.goal_id,
        employee=employee_ref(assignment.employee),
        goal_type=assignment.goal_type,
        target_value=to_decimal(assignment.target_value),
        current_value=to_decimal(assignment.current_value),
        progress=assignment.progress,
        status=assignment.status,
        instances=tuple(instance_record(instance) for instance in assignment.instances.all()),
    )


def _assignment_queryset():
    return AssignedGoal.objects.select_related("employee").prefetch_related(
        Prefetch("instances", queryset=GoalInstance.objects.order_by("-period_start", "id"))
    )


def _goal_queryset():
    return Goal.objects.prefetch_related(Prefetch("assignments", queryset=_assignment_queryset()))


def build_goal_details(goal: Goal) -> GoalWithDetails:
    return aggregate_goal(
        goal_record(goal),
        [assigned_goal_record(assignment) for assignment in goal.assignments.all()],
    )


def load_goal_details(goal_id: int) -> GoalWithDetails | None:
    goal = _goal_queryset().filter(id=goal_id).first()
    if goal is None:
        return None
    return build_goal_details(goal)


def load_goals_with_details(*, sector: str | None = None) -> list[GoalWithDetails]:
    goals = _goal_queryset().order_by("-created_at", "-id")
    if sector:
        goals = goals.filter(sector=sector)
    return [build_goal_details(goal) for goal in goals]


def load_employee_goals(employee_id: int) -> list[GoalWithDetails]:
    """One entry per goal, aggregated over this employee's assignments only."""
    assignments = _assignment_queryset().select_related("goal").filter(employee_id=employee_id).order_by(
        "-goal__created_at", "goal_id", "id"
    )
    grouped = {}
    goals = {}
    for assignment in assignments:
        goals.setdefault(assignment.goal_id, assignment.goal)
        grouped.setdefault(assignment.goal_id, []).append(assigned_goal_record(assignment))
    return [aggregate_goal(goal_record(goals[goal_id]), rows) for goal_id, rows in grouped.items()]
