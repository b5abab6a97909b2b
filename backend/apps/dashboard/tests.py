from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, TestCase
from django.urls import reverse

from apps.accounts.models import Employee
from apps.goals.domain import AssignedGoalRecord, EmployeeRef, GoalRecord, aggregate_goal
from apps.goals.models import AssignedGoal, Goal

from .views import build_employee_rows, build_sector_rows


def goal_details(goal_id, sector, assignments):
    goal = GoalRecord(
        id=goal_id,
        name=f"Goal {goal_id}",
        sector=sector,
        metric_type="count",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 12, 31),
    )
    return aggregate_goal(goal, assignments)


def assignment(assignment_id, employee, target, current, status):
    return AssignedGoalRecord(
        id=assignment_id,
        goal_id=1,
        employee=employee,
        goal_type="Monthly",
        target_value=Decimal(target),
        current_value=Decimal(current),
        status=status,
    )


class DashboardRowTests(SimpleTestCase):
    def setUp(self):
        self.alice = EmployeeRef(id=1, name="Alice")
        self.bob = EmployeeRef(id=2, name="Bob")
        self.goals = [
            goal_details(1, "HR", [assignment(1, self.alice, 100, 100, "completed")]),
            goal_details(
                2,
                "HR",
                [
                    assignment(2, self.alice, 100, 20, "in-progress"),
                    assignment(3, self.bob, 50, 10, "overdue"),
                ],
            ),
            goal_details(3, "Sales", [assignment(4, self.bob, 10, 10, "completed")]),
        ]

    def test_sector_rows_cover_every_sector(self):
        rows = {row["sector"]: row for row in build_sector_rows(self.goals)}

        self.assertEqual(set(rows), {"HR", "Sales", "Finance", "Operations", "Marketing"})
        self.assertEqual(rows["HR"]["statistics"].total_goals, 2)
        self.assertEqual(rows["HR"]["statistics"].completed_goals, 1)
        self.assertEqual(rows["HR"]["statistics"].overdue_goals, 1)
        self.assertEqual(rows["HR"]["progress"], 52)
        self.assertEqual(rows["Sales"]["progress"], 100)
        self.assertEqual(rows["Finance"]["statistics"].total_goals, 0)
        self.assertEqual(rows["Finance"]["progress"], 0)

    def test_employee_rows_are_ranked_by_progress(self):
        rows = build_employee_rows(self.goals)

        self.assertEqual([row["employee"].name for row in rows], ["Alice", "Bob"])
        alice, bob = rows
        self.assertEqual(alice["goal_count"], 2)
        self.assertEqual(alice["completed"], 1)
        self.assertEqual(alice["progress"], 60)
        self.assertEqual(bob["overdue"], 1)
        self.assertEqual(bob["progress"], 33)

    def test_assignments_without_employee_are_skipped(self):
        rows = build_employee_rows([goal_details(4, "HR", [assignment(5, None, 10, 5, "in-progress")])])
        self.assertEqual(rows, [])


class DashboardViewTests(TestCase):
    def test_admin_sees_dashboard(self):
        session = self.client.session
        session["role"] = "admin"
        session.save()
        employee = Employee.objects.create(first_name="Dana", last_name="Scully", email="dana@example.com")
        goal = Goal.objects.create(
            name="Interviews",
            sector="HR",
            metric_type="count",
            start_date=date(2026, 1, 1),
            end_date=date(2026, 12, 31),
        )
        AssignedGoal.objects.create(goal=goal, employee=employee, target_value=10, current_value=5, status="in-progress")

        response = self.client.get(reverse("dashboard_index"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Dana Scully")
        self.assertEqual(response.context["statistics"].in_progress_goals, 1)

    def test_employee_is_redirected_home(self):
        session = self.client.session
        session["role"] = "employee"
        session.save()

        response = self.client.get(reverse("dashboard_index"))

        self.assertRedirects(response, reverse("home"), fetch_redirect_response=False)
