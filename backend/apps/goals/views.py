from django.http import Http404, HttpRequest, HttpResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils import timezone

from apps.accounts.auth import ROLE_ADMIN, ROLE_EMPLOYEE, require_roles
from apps.accounts.models import EMPLOYMENT_ACTIVE, SECTOR_CHOICES, Employee

from . import services
from .domain import calculate_goal_statistics, classify_instances
from .forms import AssignGoalForm, GoalForm, TrackingRecordForm
from .models import (
    STATUS_CHOICES,
    STATUS_COMPLETED,
    STATUS_IN_PROGRESS,
    STATUS_OVERDUE,
    STATUS_PENDING,
    AssignedGoal,
)
from .periods import period_label

GENERIC_FAILURE = "The action could not be completed. Please try again."
SECTOR_OPTIONS = [value for value, _ in SECTOR_CHOICES]
STATUS_FILTER_OPTIONS = [STATUS_COMPLETED, STATUS_IN_PROGRESS, STATUS_OVERDUE, STATUS_PENDING]
SAVED_MESSAGES = {
    "assign_goal": "Employees assigned.",
    "update_target": "Target updated.",
    "extend_target": "Goal extended.",
    "stop_goal": "Goal stopped.",
    "remove_assignee": "Employee removed from the goal.",
    "record_progress": "Progress recorded.",
    "created": "Goal created.",
}


def _post_id(post_data, key: str) -> int | None:
    value = (post_data.get(key) or "").strip()
    if not value.isdigit():
        return None
    return int(value)


def _matches_status(goal, status: str) -> bool:
    statuses = [assignment.status for assignment in goal.assignments]
    if status in {STATUS_COMPLETED, STATUS_PENDING}:
        return all(value == status for value in statuses)
    return status in statuses


def _assignment_rows(goal, *, today, with_records: bool = False):
    rows = []
    for assignment in goal.assignments:
        buckets = classify_instances(assignment.instances, today)
        rows.append(
            {
                "assignment": assignment,
                "employee_name": assignment.employee.name if assignment.employee else "-",
                "buckets": buckets,
                "current_instance": buckets.current,
                "current_label": period_label(assignment.goal_type, buckets.current.period_start)
                if buckets.current
                else "-",
                "can_extend": assignment.status == STATUS_COMPLETED,
                "records": services.get_tracking_records(assignment.id) if with_records else [],
            }
        )
    return rows


def _goal_rows(goals):
    return [
        {
            "goal": details.goal,
            "assigned_names": ", ".join(employee.name for employee in details.assigned_to) or "-",
            "total_target_value": details.total_target_value,
            "total_current_value": details.total_current_value,
            "overall_progress": details.overall_progress,
        }
        for details in goals
    ]


@require_roles(ROLE_ADMIN, ROLE_EMPLOYEE)
def goal_index(request: HttpRequest) -> HttpResponse:
    sector = request.GET.get("sector") or ""
    if sector not in SECTOR_OPTIONS:
        sector = ""
    status = request.GET.get("status") or ""
    if status not in STATUS_FILTER_OPTIONS:
        status = ""

    goals = services.get_goals_with_details(sector=sector or None)
    if status:
        goals = [goal for goal in goals if _matches_status(goal, status)]

    return render(
        request,
        "goals/goal_index.html",
        {
            "rows": _goal_rows(goals),
            "statistics": calculate_goal_statistics(goals),
            "sector_options": SECTOR_OPTIONS,
            "status_options": STATUS_FILTER_OPTIONS,
            "selected_sector": sector,
            "selected_status": status,
            "deleted": request.GET.get("deleted") == "1",
        },
    )


@require_roles(ROLE_ADMIN)
def goal_create(request: HttpRequest) -> HttpResponse:
    form_error = None
    if request.method == "POST":
        form = GoalForm(request.POST)
        if form.is_valid():
            goal = services.create_goal(**form.cleaned_data)
            if goal is not None:
                return redirect(f"{reverse('goal_detail', args=[goal.id])}?saved=created")
            form_error = GENERIC_FAILURE
    else:
        today = timezone.localdate()
        form = GoalForm(initial={"start_date": today, "end_date": today.replace(month=12, day=31)})

    return render(request, "goals/goal_form.html", {"form": form, "form_error": form_error})


def _handle_goal_action(request: HttpRequest, *, goal_id: int, action: str):
    """Run one POSTed action. Returns ``(redirect_url, error)``."""
    detail_url = reverse("goal_detail", args=[goal_id])

    if action == "assign_goal":
        form = AssignGoalForm(request.POST, employees=Employee.objects.all())
        if not form.is_valid():
            return None, "Choose at least one employee and a positive target."
        assignees = [(employee.id, form.cleaned_data["target_value"]) for employee in form.cleaned_data["employees"]]
        ok = services.assign_goal(goal_id, assignees, form.cleaned_data["goal_type"])
        return (f"{detail_url}?saved={action}", None) if ok else (None, GENERIC_FAILURE)

    if action == "delete_goal":
        atomic = request.POST.get("atomic") == "1"
        if services.delete_goal(goal_id, atomic=atomic):
            return f"{reverse('goal_index')}?deleted=1", None
        return None, "The goal could not be deleted. Some of its data may already be removed."

    if action == "stop_goal":
        instance_id = _post_id(request.POST, "instance_id")
        ok = instance_id is not None and services.stop_goal(instance_id) is not None
        return (f"{detail_url}?saved={action}", None) if ok else (None, GENERIC_FAILURE)

    if action == "record_progress":
        form = TrackingRecordForm(request.POST)
        if not form.is_valid():
            return None, "Enter a positive value."
        if not AssignedGoal.objects.filter(id=form.cleaned_data["assigned_goal_id"], goal_id=goal_id).exists():
            return None, GENERIC_FAILURE
        record = services.record_progress(
            form.cleaned_data["assigned_goal_id"],
            form.cleaned_data["value"],
            record_date=form.cleaned_data["record_date"],
            notes=form.cleaned_data["notes"],
        )
        return (f"{detail_url}?saved={action}", None) if record is not None else (None, GENERIC_FAILURE)

    assigned_goal_id = _post_id(request.POST, "assigned_goal_id")
    if assigned_goal_id is None or not AssignedGoal.objects.filter(id=assigned_goal_id, goal_id=goal_id).exists():
        return None, GENERIC_FAILURE

    if action == "update_target":
        result = services.update_target(assigned_goal_id, request.POST.get("value"))
    elif action == "extend_target":
        if AssignedGoal.objects.get(id=assigned_goal_id).status != STATUS_COMPLETED:
            return None, "Only completed goals can be extended."
        result = services.extend_target(assigned_goal_id, request.POST.get("value"))
    elif action == "remove_assignee":
        result = services.remove_assignee_from_goal(assigned_goal_id) or None
    else:
        return None, GENERIC_FAILURE
    return (f"{detail_url}?saved={action}", None) if result is not None else (None, GENERIC_FAILURE)


@require_roles(ROLE_ADMIN)
def goal_detail(request: HttpRequest, goal_id: int) -> HttpResponse:
    form_error = None
    if request.method == "POST":
        redirect_url, form_error = _handle_goal_action(
            request,
            goal_id=goal_id,
            action=request.POST.get("action") or "",
        )
        if redirect_url:
            return redirect(redirect_url)

    details = services.get_goal_details(goal_id)
    if details is None:
        raise Http404("Goal not found")

    assigned_ids = {employee.id for employee in details.assigned_to}
    available = Employee.objects.filter(employment_status=EMPLOYMENT_ACTIVE).exclude(id__in=assigned_ids)
    today = timezone.localdate()
    return render(
        request,
        "goals/goal_detail.html",
        {
            "details": details,
            "goal": details.goal,
            "assignment_rows": _assignment_rows(details, today=today, with_records=True),
            "assign_form": AssignGoalForm(employees=available),
            "status_choices": STATUS_CHOICES,
            "saved_message": SAVED_MESSAGES.get(request.GET.get("saved") or ""),
            "form_error": form_error,
            "today": today,
        },
    )


@require_roles(ROLE_ADMIN, ROLE_EMPLOYEE)
def employee_goals(request: HttpRequest, employee_id: int) -> HttpResponse:
    employee = get_object_or_404(Employee, id=employee_id)
    form_error = None
    if request.method == "POST" and request.POST.get("action") == "record_progress":
        form = TrackingRecordForm(request.POST)
        owns_assignment = form.is_valid() and AssignedGoal.objects.filter(
            id=form.cleaned_data["assigned_goal_id"],
            employee=employee,
        ).exists()
        if owns_assignment:
            record = services.record_progress(
                form.cleaned_data["assigned_goal_id"],
                form.cleaned_data["value"],
                record_date=form.cleaned_data["record_date"],
                notes=form.cleaned_data["notes"],
            )
            if record is not None:
                return redirect(f"{request.path}?saved=record_progress")
        form_error = GENERIC_FAILURE

    today = timezone.localdate()
    goals = services.get_employee_goals(employee.id)
    goal_rows = [
        {
            "details": details,
            "goal": details.goal,
            "assignment_rows": _assignment_rows(details, today=today, with_records=True),
        }
        for details in goals
    ]
    return render(
        request,
        "goals/employee_goals.html",
        {
            "employee": employee,
            "goal_rows": goal_rows,
            "statistics": calculate_goal_statistics(goals),
            "saved_message": SAVED_MESSAGES.get(request.GET.get("saved") or ""),
            "form_error": form_error,
        },
    )
