"""Goal mutations and queries.

Public operations never raise for expected failures. Validation, missing
rows and database errors are logged and turned into ``None``/``False`` (or
an empty list for list queries), so callers only check the returned value.
Multi-step operations are not transactional unless stated otherwise: a
failure partway leaves the completed steps in place.
"""
import logging
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import wraps

from django.db import DatabaseError, transaction
from django.utils import timezone

from apps.accounts.models import SECTOR_CHOICES, Employee

from .cache import cached, employee_goals_key, goal_details_key, invalidate_goal_queries
from .domain import calculate_progress, status_for_progress, to_decimal
from .errors import GoalError, NotFoundError, PartialCascadeFailure, ValidationError
from .models import (
    GOAL_TYPE_CHOICES,
    METRIC_TYPE_CHOICES,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_OVERDUE,
    STATUS_PENDING,
    STATUS_STOPPED,
    AssignedGoal,
    Goal,
    GoalInstance,
    TrackingRecord,
    VALUE_FIELD_OPTIONS,
)
from .periods import period_bounds
from .records import load_employee_goals, load_goal_details, load_goals_with_details

logger = logging.getLogger(__name__)

OPEN_STATUSES = (STATUS_PENDING, STATUS_IN_PROGRESS)

# Amounts are stored in DecimalField(max_digits=14, decimal_places=2) columns.
VALUE_QUANTUM = Decimal(1).scaleb(-VALUE_FIELD_OPTIONS["decimal_places"])
VALUE_LIMIT = Decimal(10) ** (VALUE_FIELD_OPTIONS["max_digits"] - VALUE_FIELD_OPTIONS["decimal_places"])


def operation_boundary(failure_value):
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GoalError as exc:
                logger.warning("%s failed: %s", func.__name__, exc)
            except DatabaseError:
                logger.exception("%s failed with a database error", func.__name__)
            return failure_value

        return wrapper

    return decorator


def _column_amount(value, name: str) -> Decimal:
    """Round ``value`` to cents, rejecting what a value column cannot hold."""
    try:
        amount = to_decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{name} must be a number, got {value!r}") from None
    if not amount.is_finite():
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if abs(amount) < VALUE_LIMIT:
        amount = amount.quantize(VALUE_QUANTUM, rounding=ROUND_HALF_UP)
    if abs(amount) >= VALUE_LIMIT:
        raise ValidationError(f"{name} must be below {VALUE_LIMIT}, got {value!r}")
    return amount


def _positive_amount(value, name: str) -> Decimal:
    amount = _column_amount(value, name)
    if amount <= 0:
        raise ValidationError(f"{name} must be at least {VALUE_QUANTUM}, got {value!r}")
    return amount


def _status_for_new_target(status: str, progress: int) -> str:
    """Keep completed and in-progress in line with progress against a new target."""
    if status in (STATUS_COMPLETED, STATUS_IN_PROGRESS):
        return status_for_progress(progress)
    return status


def _get_assignment(assigned_goal_id) -> AssignedGoal:
    assignment = AssignedGoal.objects.select_related("goal", "employee").filter(id=assigned_goal_id).first()
    if assignment is None:
        raise NotFoundError(f"Assigned goal {assigned_goal_id} does not exist")
    return assignment


def _invalidate_assignment(assignment: AssignedGoal) -> None:
    invalidate_goal_queries(goal_ids=[assignment.goal_id], employee_ids=[assignment.employee_id])


def _open_instance(assignment: AssignedGoal, day: date):
    period_start, period_end = period_bounds(assignment.goal_type, day)
    return GoalInstance.objects.get_or_create(
        assigned_goal=assignment,
        period_start=period_start,
        defaults={
            "period_end": period_end,
            "target_value": assignment.target_value,
            "status": STATUS_PENDING,
        },
    )


@operation_boundary(None)
def create_goal(
    *,
    name: str,
    sector: str,
    metric_type: str,
    start_date: date,
    end_date: date,
    description: str = "",
    metric_unit: str = "",
    target_value=None,
) -> Goal | None:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Goal name is required")
    if sector not in dict(SECTOR_CHOICES):
        raise ValidationError(f"Unknown sector {sector!r}")
    if metric_type not in dict(METRIC_TYPE_CHOICES):
        raise ValidationError(f"Unknown metric type {metric_type!r}")
    if start_date > end_date:
        raise ValidationError("Start date must not be after end date")
    if target_value is not None:
        target_value = _column_amount(target_value, "base target")
        if target_value < 0:
            raise ValidationError("Base target must not be negative")

    goal = Goal.objects.create(
        name=name,
        description=description,
        sector=sector,
        metric_type=metric_type,
        metric_unit=metric_unit,
        target_value=target_value,
        start_date=start_date,
        end_date=end_date,
    )
    logger.info("Created goal %s (%s)", goal.id, goal.name)
    return goal


@operation_boundary(False)
def assign_goal(goal_id, assignees, goal_type: str, *, today: date | None = None) -> bool:
    """Assign a goal to employees given as ``(employee_id, target)`` pairs.

    Each assignment starts ``pending`` with the instance of the period that
    contains today (or the goal start date, when the goal has not started).
    """
    if goal_type not in dict(GOAL_TYPE_CHOICES):
        raise ValidationError(f"Unknown goal type {goal_type!r}")
    pairs = [(employee_id, _positive_amount(target, "target")) for employee_id, target in assignees]
    if not pairs:
        raise ValidationError("At least one employee is required")

    goal = Goal.objects.filter(id=goal_id).first()
    if goal is None:
        raise NotFoundError(f"Goal {goal_id} does not exist")
    employee_ids = [employee_id for employee_id, _ in pairs]
    employees = Employee.objects.in_bulk(employee_ids)
    missing = [employee_id for employee_id in employee_ids if int(employee_id) not in employees]
    if missing:
        raise NotFoundError(f"Employees {missing} do not exist")
    already_assigned = set(
        AssignedGoal.objects.filter(goal=goal, employee_id__in=employee_ids).values_list("employee_id", flat=True)
    )
    if already_assigned:
        raise ValidationError(f"Employees {sorted(already_assigned)} already have this goal")

    anchor = max(today or timezone.localdate(), goal.start_date)
    for employee_id, target in pairs:
        assignment = AssignedGoal.objects.create(
            goal=goal,
            employee=employees[int(employee_id)],
            target_value=target,
            goal_type=goal_type,
            status=STATUS_PENDING,
        )
        _open_instance(assignment, anchor)

    invalidate_goal_queries(goal_ids=[goal.id], employee_ids=employee_ids)
    return True


@operation_boundary(None)
def update_target(assigned_goal_id, new_target, *, today: date | None = None) -> AssignedGoal | None:
    """Set a new target and carry it to instances starting today or later.

    Instances that already started keep the target they were tracked
    against. Completed and in-progress rows follow their new progress, so a
    completed row below 100% reopens; pending, overdue and stopped rows keep
    their status.
    """
    target = _positive_amount(new_target, "target")
    today = today or timezone.localdate()
    assignment = _get_assignment(assigned_goal_id)

    assignment.target_value = target
    assignment.progress = calculate_progress(assignment.current_value, target)
    assignment.status = _status_for_new_target(assignment.status, assignment.progress)
    assignment.save(update_fields=["target_value", "progress", "status", "updated_at"])

    for instance in assignment.instances.filter(period_start__gte=today):
        instance.target_value = target
        instance.progress = calculate_progress(instance.current_value, target)
        instance.status = _status_for_new_target(instance.status, instance.progress)
        instance.save(update_fields=["target_value", "progress", "status", "updated_at"])

    _invalidate_assignment(assignment)
    return assignment


@operation_boundary(None)
def extend_target(assigned_goal_id, delta) -> AssignedGoal | None:
    """Raise the target by ``delta`` and reopen the assignment.

    Meant for completed assignments, but the status is not checked here;
    the goal detail view only offers the action once an assignment is
    completed.
    """
    delta = _positive_amount(delta, "delta")
    assignment = _get_assignment(assigned_goal_id)
    latest = assignment.instances.order_by("-period_end", "-id").first()

    new_target = _column_amount(to_decimal(assignment.target_value) + delta, "extended target")
    assignment.target_value = new_target
    assignment.status = STATUS_IN_PROGRESS
    assignment.progress = calculate_progress(assignment.current_value, new_target)
    assignment.save(update_fields=["target_value", "status", "progress", "updated_at"])

    if latest is not None:
        latest.target_value = new_target
        latest.status = STATUS_IN_PROGRESS
        latest.progress = calculate_progress(latest.current_value, new_target)
        latest.save(update_fields=["target_value", "status", "progress", "updated_at"])

    _invalidate_assignment(assignment)
    return assignment


@operation_boundary(None)
def stop_goal(instance_id) -> GoalInstance | None:
    instance = GoalInstance.objects.select_related("assigned_goal").filter(id=instance_id).first()
    if instance is None:
        raise NotFoundError(f"Goal instance {instance_id} does not exist")

    instance.status = STATUS_STOPPED
    instance.save(update_fields=["status", "updated_at"])

    assignment = instance.assigned_goal
    assignment.status = STATUS_STOPPED
    try:
        assignment.save(update_fields=["status", "updated_at"])
    except DatabaseError:
        logger.exception("Stopped instance %s but not its assignment %s", instance.id, assignment.id)

    _invalidate_assignment(assignment)
    return instance


def _delete_row(row, label: str, completed_steps: list[str]) -> None:
    try:
        row.delete()
    except DatabaseError as exc:
        raise PartialCascadeFailure(f"Could not delete {label}: {exc}", completed_steps=completed_steps) from exc
    completed_steps.append(label)


def _delete_instances(assignments, completed_steps: list[str]) -> None:
    for assignment in assignments:
        for instance in assignment.instances.order_by("period_start", "id"):
            _delete_row(instance, f"instance {instance.id}", completed_steps)


@operation_boundary(False)
def remove_assignee_from_goal(assigned_goal_id) -> bool:
    assignment = _get_assignment(assigned_goal_id)
    completed_steps = []
    try:
        _delete_instances([assignment], completed_steps)
        _delete_row(assignment, f"assignment {assignment.id}", completed_steps)
    finally:
        _invalidate_assignment(assignment)
    return True


def _cascade_delete_goal(goal_id) -> None:
    goal = Goal.objects.filter(id=goal_id).first()
    if goal is None:
        raise NotFoundError(f"Goal {goal_id} does not exist")
    assignments = list(goal.assignments.order_by("id"))
    completed_steps = []
    try:
        _delete_instances(assignments, completed_steps)
        for assignment in assignments:
            _delete_row(assignment, f"assignment {assignment.id}", completed_steps)
        _delete_row(goal, f"goal {goal_id}", completed_steps)
    finally:
        invalidate_goal_queries(
            goal_ids=[goal_id],
            employee_ids=[assignment.employee_id for assignment in assignments],
        )


@operation_boundary(False)
def delete_goal(goal_id, *, atomic: bool = False) -> bool:
    """Delete a goal's instances, then its assignments, then the goal.

    Stops at the first failing row and returns ``False``; the goal itself is
    only deleted once everything below it is gone. Rows deleted before the
    failure stay deleted unless ``atomic`` is set, in which case the whole
    cascade runs in one transaction and rolls back.
    """
    try:
        if atomic:
            with transaction.atomic():
                _cascade_delete_goal(goal_id)
        else:
            _cascade_delete_goal(goal_id)
    except PartialCascadeFailure as exc:
        logger.error(
            "Deleting goal %s stopped after %d step(s)%s: %s",
            goal_id,
            len(exc.completed_steps),
            " (rolled back)" if atomic else "",
            exc,
        )
        return False
    logger.info("Deleted goal %s", goal_id)
    return True


@operation_boundary(None)
def record_progress(assigned_goal_id, value, *, record_date: date | None = None, notes: str = ""):
    """Append a tracking record and roll it into the matching instance.

    The assignment mirrors its latest instance afterwards.
    """
    amount = _positive_amount(value, "value")
    record_date = record_date or timezone.localdate()
    assignment = _get_assignment(assigned_goal_id)
    if assignment.status == STATUS_STOPPED:
        raise ValidationError(f"Assigned goal {assignment.id} is stopped")

    with transaction.atomic():
        record = TrackingRecord.objects.create(
            assigned_goal=assignment,
            value=amount,
            record_date=record_date,
            notes=notes,
        )
        instance, _ = _open_instance(assignment, record_date)
        instance.current_value = _column_amount(to_decimal(instance.current_value) + amount, "instance total")
        instance.progress = calculate_progress(instance.current_value, instance.target_value)
        if instance.progress < 100 and instance.period_end < timezone.localdate():
            instance.status = STATUS_OVERDUE
        else:
            instance.status = status_for_progress(instance.progress)
        instance.save(update_fields=["current_value", "progress", "status", "updated_at"])

        latest = assignment.instances.order_by("-period_end", "-id").first()
        assignment.current_value = latest.current_value
        assignment.progress = calculate_progress(latest.current_value, assignment.target_value)
        assignment.status = latest.status
        assignment.save(update_fields=["current_value", "progress", "status", "updated_at"])

    _invalidate_assignment(assignment)
    return record


@operation_boundary(None)
def refresh_instances(*, today: date | None = None) -> dict | None:
    """Open current-period instances and mark lapsed ones overdue."""
    today = today or timezone.localdate()
    opened = 0
    goal_ids = set()
    employee_ids = set()

    running = AssignedGoal.objects.select_related("goal").exclude(status=STATUS_STOPPED).filter(
        goal__start_date__lte=today,
        goal__end_date__gte=today,
    )
    for assignment in running:
        _, created = _open_instance(assignment, today)
        if created:
            opened += 1
            goal_ids.add(assignment.goal_id)
            employee_ids.add(assignment.employee_id)

    lapsed = GoalInstance.objects.select_related("assigned_goal").filter(
        period_end__lt=today,
        status__in=OPEN_STATUSES,
    )
    overdue = 0
    for instance in lapsed:
        instance.status = STATUS_OVERDUE
        instance.save(update_fields=["status", "updated_at"])
        overdue += 1
        goal_ids.add(instance.assigned_goal.goal_id)
        employee_ids.add(instance.assigned_goal.employee_id)

    expired = AssignedGoal.objects.filter(goal__end_date__lt=today, status__in=OPEN_STATUSES)
    for assignment in expired:
        assignment.status = STATUS_OVERDUE
        assignment.save(update_fields=["status", "updated_at"])
        goal_ids.add(assignment.goal_id)
        employee_ids.add(assignment.employee_id)

    invalidate_goal_queries(goal_ids=goal_ids, employee_ids=employee_ids)
    return {"opened": opened, "overdue": overdue}


@operation_boundary(None)
def get_goal_details(goal_id):
    return cached(goal_details_key(goal_id), lambda: load_goal_details(goal_id))


@operation_boundary([])
def get_goals_with_details(*, sector: str | None = None):
    return load_goals_with_details(sector=sector)


@operation_boundary([])
def get_employee_goals(employee_id):
    return cached(employee_goals_key(employee_id), lambda: load_employee_goals(employee_id))


@operation_boundary([])
def get_tracking_records(assigned_goal_id):
    return list(TrackingRecord.objects.filter(assigned_goal_id=assigned_goal_id))
