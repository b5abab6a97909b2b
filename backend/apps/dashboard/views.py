from django.http import HttpRequest, HttpResponse
from django.shortcuts import render
from django.utils import timezone

from apps.accounts.auth import ROLE_ADMIN, require_roles
from apps.accounts.models import SECTOR_CHOICES
from apps.goals.domain import ProgressTotals, calculate_goal_statistics, to_decimal
from apps.goals.models import STATUS_COMPLETED, STATUS_OVERDUE
from apps.goals.services import get_goals_with_details


def build_sector_rows(goals):
    rows = []
    for sector, label in SECTOR_CHOICES:
        sector_goals = [details for details in goals if details.goal.sector == sector]
        statistics = calculate_goal_statistics(sector_goals)
        totals = ProgressTotals()
        for details in sector_goals:
            totals = totals + ProgressTotals(details.total_target_value, details.total_current_value)
        rows.append(
            {
                "sector": sector,
                "label": label,
                "statistics": statistics,
                "progress": totals.progress,
            }
        )
    return rows


def build_employee_rows(goals):
    merged = {}
    for details in goals:
        for assignment in details.assignments:
            employee = assignment.employee
            if employee is None:
                continue
            if employee.id not in merged:
                merged[employee.id] = {
                    "employee": employee,
                    "goal_count": 0,
                    "completed": 0,
                    "overdue": 0,
                    "totals": ProgressTotals(),
                }
            row = merged[employee.id]
            row["goal_count"] += 1
            row["completed"] += assignment.status == STATUS_COMPLETED
            row["overdue"] += assignment.status == STATUS_OVERDUE
            row["totals"] = row["totals"] + ProgressTotals(
                to_decimal(assignment.target_value),
                to_decimal(assignment.current_value),
            )

    rows = []
    for row in merged.values():
        rows.append({**row, "progress": row["totals"].progress})
    return sorted(rows, key=lambda row: (-row["progress"], -row["completed"], row["employee"].name))


@require_roles(ROLE_ADMIN)
def dashboard_index(request: HttpRequest) -> HttpResponse:
    goals = get_goals_with_details()
    return render(
        request,
        "dashboard/dashboard.html",
        {
            "today": timezone.localdate(),
            "statistics": calculate_goal_statistics(goals),
            "sector_rows": build_sector_rows(goals),
            "employee_rows": build_employee_rows(goals),
        },
    )
