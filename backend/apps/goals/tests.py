from datetime import date, datetime, timedelta
from decimal import Decimal
from io import StringIO
from unittest.mock import patch

from django.core.cache import cache
from django.core.management import call_command
from django.db import DatabaseError
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from django.utils import timezone

from apps.accounts.models import Employee

from . import services
from .cache import employee_goals_key, goal_details_key
from .domain import (
    AssignedGoalRecord,
    EmployeeRef,
    GoalInstanceRecord,
    GoalRecord,
    GoalWithDetails,
    ProgressTotals,
    aggregate_goal,
    calculate_goal_statistics,
    calculate_progress,
    classify_instances,
)
from .models import AssignedGoal, Goal, GoalInstance, TrackingRecord
from .periods import period_bounds

TODAY = date(2026, 10, 19)


def goal_record(goal_id=1, target_value=None):
    return GoalRecord(
        id=goal_id,
        name=f"Goal {goal_id}",
        sector="HR",
        metric_type="count",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 12, 31),
        target_value=target_value,
    )


def assignment_record(assignment_id, *, employee=None, target=100, current=0, status="pending", instances=()):
    return AssignedGoalRecord(
        id=assignment_id,
        goal_id=1,
        employee=employee,
        goal_type="Monthly",
        target_value=Decimal(target),
        current_value=Decimal(current),
        status=status,
        instances=tuple(instances),
    )


def instance_record(instance_id, start, end):
    return GoalInstanceRecord(id=instance_id, assigned_goal_id=1, period_start=start, period_end=end)


def details_with_statuses(goal_id, *statuses):
    return aggregate_goal(
        goal_record(goal_id),
        [assignment_record(index, status=status) for index, status in enumerate(statuses, start=1)],
    )


class ProgressTests(SimpleTestCase):
    def test_progress_is_rounded_percentage(self):
        self.assertEqual(calculate_progress(40, 100), 40)
        self.assertEqual(calculate_progress(1, 3), 33)
        self.assertEqual(calculate_progress(2, 3), 67)

    def test_progress_rounds_half_up(self):
        self.assertEqual(calculate_progress(1, 8), 13)
        self.assertEqual(calculate_progress(Decimal("0.5"), 100), 1)

    def test_progress_is_clamped(self):
        self.assertEqual(calculate_progress(150, 100), 100)
        self.assertEqual(calculate_progress(-5, 100), 0)

    def test_zero_target_gives_zero_progress(self):
        self.assertEqual(calculate_progress(5, 0), 0)
        self.assertEqual(calculate_progress(0, 0), 0)
        self.assertEqual(calculate_progress(5, -10), 0)
        self.assertEqual(calculate_progress(5, None), 0)


class AggregateGoalTests(SimpleTestCase):
    def test_totals_across_assignees(self):
        alice = EmployeeRef(id=1, name="Alice")
        bob = EmployeeRef(id=2, name="Bob")
        details = aggregate_goal(
            goal_record(target_value=None),
            [
                assignment_record(1, employee=alice, target=100, current=40),
                assignment_record(2, employee=bob, target=50, current=50),
            ],
        )
        self.assertEqual(details.total_target_value, 150)
        self.assertEqual(details.total_current_value, 90)
        self.assertEqual(details.overall_progress, 60)
        self.assertEqual(details.assigned_to, (alice, bob))

    def test_assignments_without_employee_are_left_out_of_assigned_to(self):
        alice = EmployeeRef(id=1, name="Alice")
        details = aggregate_goal(
            goal_record(),
            [
                assignment_record(1, employee=alice, target=10, current=5),
                assignment_record(2, employee=None, target=10, current=5),
                assignment_record(3, employee=alice, target=10, current=5),
            ],
        )
        self.assertEqual(details.assigned_to, (alice,))
        self.assertEqual(details.total_target_value, 30)
        self.assertEqual(details.overall_progress, 50)

    def test_no_assignments_gives_zero_progress(self):
        details = aggregate_goal(goal_record(), [])
        self.assertEqual(details.total_target_value, 0)
        self.assertEqual(details.overall_progress, 0)
        self.assertEqual(details.assigned_to, ())

    def test_totals_combine_over_disjoint_subsets(self):
        assignments = [
            assignment_record(1, target=100, current=40),
            assignment_record(2, target=50, current=50),
            assignment_record(3, target=Decimal("12.5"), current=Decimal("0.25")),
        ]
        combined = ProgressTotals.from_assignments(assignments[:1]) + ProgressTotals.from_assignments(assignments[1:])
        self.assertEqual(combined, ProgressTotals.from_assignments(assignments))
        self.assertEqual(combined.progress, aggregate_goal(goal_record(), assignments).overall_progress)

    def test_instances_flatten_assignment_instances(self):
        first = instance_record(1, date(2026, 10, 1), date(2026, 10, 31))
        second = instance_record(2, date(2026, 9, 1), date(2026, 9, 30))
        details = aggregate_goal(
            goal_record(),
            [assignment_record(1, instances=[first]), assignment_record(2, instances=[second])],
        )
        self.assertEqual(details.instances, (first, second))


class ClassifyInstancesTests(SimpleTestCase):
    def setUp(self):
        self.past = instance_record(1, date(2026, 9, 1), date(2026, 9, 30))
        self.older = instance_record(2, date(2026, 8, 1), date(2026, 8, 31))
        self.current = instance_record(3, date(2026, 10, 1), date(2026, 10, 31))
        self.ends_today = instance_record(4, date(2026, 10, 13), TODAY)
        self.starts_today = instance_record(5, TODAY, date(2026, 10, 25))
        self.future = instance_record(6, date(2026, 11, 1), date(2026, 11, 30))
        self.later = instance_record(7, date(2026, 12, 1), date(2026, 12, 31))
        self.instances = [
            self.older,
            self.future,
            self.current,
            self.ends_today,
            self.past,
            self.starts_today,
            self.later,
        ]

    def test_partitions_by_period_bounds(self):
        buckets = classify_instances(self.instances, TODAY)
        self.assertEqual(buckets.active, (self.starts_today, self.ends_today, self.current))
        self.assertEqual(buckets.history, (self.past, self.older))
        self.assertEqual(buckets.upcoming, (self.later, self.future))
        self.assertEqual(buckets.current, self.starts_today)

    def test_partitions_are_disjoint_and_exhaustive(self):
        for offset in range(-90, 90, 7):
            now = TODAY + timedelta(days=offset)
            buckets = classify_instances(self.instances, now)
            ids = [row.id for row in buckets.active + buckets.history + buckets.upcoming]
            self.assertEqual(sorted(ids), sorted(row.id for row in self.instances))

    def test_accepts_datetime(self):
        buckets = classify_instances([self.ends_today], datetime(2026, 10, 19, 23, 59))
        self.assertEqual(buckets.active, (self.ends_today,))

    def test_empty_input(self):
        buckets = classify_instances([], TODAY)
        self.assertEqual(buckets.active, ())
        self.assertIsNone(buckets.current)


class GoalStatisticsTests(SimpleTestCase):
    def test_completed_needs_every_assignment_in_progress_needs_any(self):
        goals = [
            details_with_statuses(1, "completed", "completed"),
            details_with_statuses(2, "completed", "in-progress"),
            details_with_statuses(3, "pending", "pending"),
            details_with_statuses(4, "overdue", "pending"),
        ]
        statistics = calculate_goal_statistics(goals)
        self.assertEqual(statistics.total_goals, 4)
        self.assertEqual(statistics.completed_goals, 1)
        self.assertEqual(statistics.in_progress_goals, 1)
        self.assertEqual(statistics.overdue_goals, 1)
        self.assertEqual(statistics.pending_goals, 1)
        self.assertEqual(statistics.completion_rate, 25)

    def test_asymmetry_lets_a_goal_count_twice(self):
        # Kept on purpose: one overdue assignment plus one in progress lands in both buckets.
        statistics = calculate_goal_statistics([details_with_statuses(1, "overdue", "in-progress")])
        self.assertEqual(statistics.in_progress_goals, 1)
        self.assertEqual(statistics.overdue_goals, 1)
        self.assertEqual(statistics.completed_goals, 0)

    def test_unassigned_goal_counts_as_completed_and_pending(self):
        statistics = calculate_goal_statistics([GoalWithDetails(goal=goal_record())])
        self.assertEqual(statistics.total_goals, 1)
        self.assertEqual(statistics.completed_goals, 1)
        self.assertEqual(statistics.pending_goals, 1)
        self.assertEqual(statistics.in_progress_goals, 0)
        self.assertEqual(statistics.completion_rate, 100)

    def test_empty_list_is_all_zero(self):
        statistics = calculate_goal_statistics([])
        self.assertEqual(statistics.total_goals, 0)
        self.assertEqual(statistics.completion_rate, 0)

    def test_completion_rate_rounds(self):
        goals = [
            details_with_statuses(1, "completed"),
            details_with_statuses(2, "pending"),
            details_with_statuses(3, "pending"),
        ]
        self.assertEqual(calculate_goal_statistics(goals).completion_rate, 33)


class PeriodBoundsTests(SimpleTestCase):
    def test_daily(self):
        self.assertEqual(period_bounds("Daily", TODAY), (TODAY, TODAY))

    def test_weekly_runs_monday_to_sunday(self):
        self.assertEqual(period_bounds("Weekly", date(2026, 10, 22)), (date(2026, 10, 19), date(2026, 10, 25)))

    def test_monthly_handles_month_length(self):
        self.assertEqual(period_bounds("Monthly", date(2028, 2, 10)), (date(2028, 2, 1), date(2028, 2, 29)))

    def test_yearly(self):
        self.assertEqual(period_bounds("Yearly", TODAY), (date(2026, 1, 1), date(2026, 12, 31)))

    def test_unknown_goal_type(self):
        with self.assertRaises(ValueError):
            period_bounds("Hourly", TODAY)


class GoalDataMixin:
    def make_employee(self, first_name):
        return Employee.objects.create(
            first_name=first_name,
            last_name="Tester",
            email=f"{first_name.lower()}@example.com",
            position="Recruiter",
        )

    def make_goal(self, **overrides):
        values = {
            "name": "Candidate submissions",
            "sector": "HR",
            "metric_type": "count",
            "metric_unit": "candidates",
            "start_date": date(2024, 1, 1),
            "end_date": date(2030, 12, 31),
        }
        values.update(overrides)
        return Goal.objects.create(**values)

    def make_assignment(self, goal, employee, *, target=100, current=0, status="pending", goal_type="Monthly"):
        return AssignedGoal.objects.create(
            goal=goal,
            employee=employee,
            target_value=target,
            current_value=current,
            status=status,
            goal_type=goal_type,
        )

    def make_instance(self, assignment, start, end, *, target=100, current=0, status="pending"):
        return GoalInstance.objects.create(
            assigned_goal=assignment,
            period_start=start,
            period_end=end,
            target_value=target,
            current_value=current,
            status=status,
        )

    def make_goal_with_instances(self, assignments=2, instances=3):
        goal = self.make_goal()
        for index in range(assignments):
            assignment = self.make_assignment(goal, self.make_employee(f"Person{index}"))
            for month in range(1, instances + 1):
                start = date(2026, month, 1)
                self.make_instance(assignment, start, start + timedelta(days=27))
        return goal


class UpdateTargetTests(GoalDataMixin, TestCase):
    def setUp(self):
        cache.clear()
        self.goal = self.make_goal()
        self.assignment = self.make_assignment(self.goal, self.make_employee("Alice"), current=50)
        self.past = self.make_instance(self.assignment, date(2026, 9, 1), date(2026, 9, 30), current=100)
        self.current = self.make_instance(self.assignment, date(2026, 10, 1), date(2026, 10, 31), current=50)
        self.starting_today = self.make_instance(self.assignment, TODAY, date(2026, 10, 25))
        self.future = self.make_instance(self.assignment, date(2026, 11, 1), date(2026, 11, 30))

    def test_target_reaches_instances_starting_today_or_later(self):
        result = services.update_target(self.assignment.id, 150, today=TODAY)

        self.assertIsNotNone(result)
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 150)
        self.assertEqual(self.assignment.progress, 33)
        for instance in (self.starting_today, self.future):
            instance.refresh_from_db()
            self.assertEqual(instance.target_value, 150)
        for instance in (self.past, self.current):
            instance.refresh_from_db()
            self.assertEqual(instance.target_value, 100)

    def test_non_positive_target_changes_nothing(self):
        self.assertIsNone(services.update_target(self.assignment.id, 0, today=TODAY))
        self.assertIsNone(services.update_target(self.assignment.id, "-3", today=TODAY))
        self.assertIsNone(services.update_target(self.assignment.id, "abc", today=TODAY))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 100)

    def test_target_too_large_for_column_is_rejected(self):
        self.assertIsNone(services.update_target(self.assignment.id, "1e20", today=TODAY))
        self.assertIsNone(services.update_target(self.assignment.id, "1000000000000", today=TODAY))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 100)
        self.assertEqual(services.get_goal_details(self.goal.id).total_target_value, 100)

    def test_sub_cent_target_is_rejected(self):
        self.assertIsNone(services.update_target(self.assignment.id, "0.001", today=TODAY))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 100)

    def test_target_is_rounded_to_cents(self):
        result = services.update_target(self.assignment.id, "12.345", today=TODAY)
        self.assertEqual(result.target_value, Decimal("12.35"))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, Decimal("12.35"))

    def test_pending_assignment_keeps_status(self):
        result = services.update_target(self.assignment.id, 150, today=TODAY)
        self.assertEqual(result.status, "pending")

    def test_raising_target_reopens_completed_assignment(self):
        done = self.make_assignment(self.goal, self.make_employee("Bob"), target=100, current=100, status="completed")
        upcoming = self.make_instance(done, date(2026, 11, 1), date(2026, 11, 30), current=100, status="completed")

        result = services.update_target(done.id, 150, today=TODAY)

        self.assertEqual(result.progress, 67)
        self.assertEqual(result.status, "in-progress")
        upcoming.refresh_from_db()
        self.assertEqual(upcoming.progress, 67)
        self.assertEqual(upcoming.status, "in-progress")

    def test_lowering_target_completes_in_progress_assignment(self):
        running = self.make_assignment(
            self.goal, self.make_employee("Cara"), target=100, current=50, status="in-progress"
        )

        result = services.update_target(running.id, 50, today=TODAY)

        self.assertEqual(result.progress, 100)
        self.assertEqual(result.status, "completed")

    def test_missing_assignment_returns_none(self):
        self.assertIsNone(services.update_target(999999, 10, today=TODAY))

    def test_database_error_returns_none(self):
        with patch.object(AssignedGoal, "save", side_effect=DatabaseError("disk full")):
            self.assertIsNone(services.update_target(self.assignment.id, 150, today=TODAY))

    def test_success_invalidates_cached_queries(self):
        services.get_goal_details(self.goal.id)
        services.get_employee_goals(self.assignment.employee_id)
        self.assertIsNotNone(cache.get(goal_details_key(self.goal.id)))
        self.assertIsNotNone(cache.get(employee_goals_key(self.assignment.employee_id)))

        services.update_target(self.assignment.id, 150, today=TODAY)

        self.assertIsNone(cache.get(goal_details_key(self.goal.id)))
        self.assertIsNone(cache.get(employee_goals_key(self.assignment.employee_id)))
        self.assertEqual(services.get_goal_details(self.goal.id).total_target_value, 150)


class ExtendTargetTests(GoalDataMixin, TestCase):
    def setUp(self):
        cache.clear()
        self.goal = self.make_goal()
        self.assignment = self.make_assignment(
            self.goal,
            self.make_employee("Alice"),
            target=100,
            current=100,
            status="completed",
        )
        self.older = self.make_instance(
            self.assignment, date(2026, 9, 1), date(2026, 9, 30), current=100, status="completed"
        )
        self.latest = self.make_instance(
            self.assignment, date(2026, 10, 1), date(2026, 10, 31), current=100, status="completed"
        )

    def test_extension_adds_delta_and_reopens(self):
        result = services.extend_target(self.assignment.id, 20)

        self.assertEqual(result.target_value, 120)
        self.assertEqual(result.status, "in-progress")
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 120)
        self.assertEqual(self.assignment.status, "in-progress")
        self.assertEqual(self.assignment.progress, 83)

        self.latest.refresh_from_db()
        self.assertEqual(self.latest.target_value, 120)
        self.assertEqual(self.latest.status, "in-progress")
        self.older.refresh_from_db()
        self.assertEqual(self.older.target_value, 100)
        self.assertEqual(self.older.status, "completed")

    def test_extension_does_not_check_status(self):
        self.assignment.status = "pending"
        self.assignment.save()

        result = services.extend_target(self.assignment.id, 5)

        self.assertEqual(result.target_value, 105)
        self.assertEqual(result.status, "in-progress")

    def test_non_positive_delta_is_rejected(self):
        self.assertIsNone(services.extend_target(self.assignment.id, 0))
        self.assertIsNone(services.extend_target(self.assignment.id, -10))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 100)
        self.assertEqual(self.assignment.status, "completed")

    def test_sub_cent_delta_is_rejected(self):
        self.assertIsNone(services.extend_target(self.assignment.id, "0.001"))
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 100)
        self.assertEqual(self.assignment.status, "completed")

    def test_extension_past_column_limit_is_rejected(self):
        self.assignment.target_value = Decimal("999999999999.99")
        self.assignment.save()

        self.assertIsNone(services.extend_target(self.assignment.id, 1))
        self.assertIsNone(services.extend_target(self.assignment.id, "1e20"))

        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, Decimal("999999999999.99"))
        self.assertEqual(self.assignment.status, "completed")

    def test_assignment_without_instances_is_extended_alone(self):
        lonely = self.make_assignment(self.goal, self.make_employee("Bob"), target=10, status="completed")
        result = services.extend_target(lonely.id, Decimal("2.5"))
        self.assertEqual(result.target_value, Decimal("12.5"))


class StopGoalTests(GoalDataMixin, TestCase):
    def setUp(self):
        self.goal = self.make_goal()
        self.assignment = self.make_assignment(self.goal, self.make_employee("Alice"), status="in-progress")
        self.instance = self.make_instance(self.assignment, date(2026, 10, 1), date(2026, 10, 31))

    def test_stop_marks_instance_and_assignment(self):
        result = services.stop_goal(self.instance.id)

        self.assertEqual(result.status, "stopped")
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.status, "stopped")

    def test_missing_instance_returns_none(self):
        self.assertIsNone(services.stop_goal(424242))

    def test_assignment_failure_still_returns_stopped_instance(self):
        with patch.object(AssignedGoal, "save", side_effect=DatabaseError("locked")):
            result = services.stop_goal(self.instance.id)

        self.assertIsNotNone(result)
        self.instance.refresh_from_db()
        self.assertEqual(self.instance.status, "stopped")


class RemoveAssigneeTests(GoalDataMixin, TestCase):
    def test_removes_instances_then_assignment(self):
        goal = self.make_goal_with_instances(assignments=2, instances=3)
        removed, kept = list(goal.assignments.order_by("id"))
        TrackingRecord.objects.create(assigned_goal=removed, value=3)

        self.assertTrue(services.remove_assignee_from_goal(removed.id))

        self.assertFalse(AssignedGoal.objects.filter(id=removed.id).exists())
        self.assertFalse(GoalInstance.objects.filter(assigned_goal_id=removed.id).exists())
        self.assertFalse(TrackingRecord.objects.filter(assigned_goal_id=removed.id).exists())
        self.assertEqual(kept.instances.count(), 3)
        self.assertTrue(Goal.objects.filter(id=goal.id).exists())

    def test_missing_assignment_returns_false(self):
        self.assertFalse(services.remove_assignee_from_goal(31337))


class DeleteGoalTests(GoalDataMixin, TestCase):
    def setUp(self):
        self.goal = self.make_goal_with_instances(assignments=2, instances=3)

    def _recording_patches(self, calls, *, fail_instance_at=None):
        originals = {
            "instance": GoalInstance.delete,
            "assignment": AssignedGoal.delete,
            "goal": Goal.delete,
        }

        def recorder(kind):
            def side_effect(obj, *args, **kwargs):
                calls.append(kind)
                if kind == "instance" and calls.count("instance") == fail_instance_at:
                    raise DatabaseError("connection lost")
                return originals[kind](obj, *args, **kwargs)

            return side_effect

        return (
            patch.object(GoalInstance, "delete", autospec=True, side_effect=recorder("instance")),
            patch.object(AssignedGoal, "delete", autospec=True, side_effect=recorder("assignment")),
            patch.object(Goal, "delete", autospec=True, side_effect=recorder("goal")),
        )

    def test_deletes_instances_then_assignments_then_goal(self):
        calls = []
        instance_patch, assignment_patch, goal_patch = self._recording_patches(calls)
        with instance_patch, assignment_patch, goal_patch:
            self.assertTrue(services.delete_goal(self.goal.id))

        self.assertEqual(calls, ["instance"] * 6 + ["assignment"] * 2 + ["goal"])
        self.assertFalse(Goal.objects.filter(id=self.goal.id).exists())
        self.assertEqual(AssignedGoal.objects.count(), 0)
        self.assertEqual(GoalInstance.objects.count(), 0)

    def test_failure_on_fifth_instance_keeps_goal(self):
        calls = []
        instance_patch, assignment_patch, goal_patch = self._recording_patches(calls, fail_instance_at=5)
        with instance_patch, assignment_patch, goal_patch:
            self.assertFalse(services.delete_goal(self.goal.id))

        self.assertEqual(calls, ["instance"] * 5)
        self.assertTrue(Goal.objects.filter(id=self.goal.id).exists())
        self.assertEqual(AssignedGoal.objects.filter(goal=self.goal).count(), 2)
        # Fail-stop without rollback: the first four deletes stay applied.
        self.assertEqual(GoalInstance.objects.count(), 2)

    def test_atomic_mode_rolls_back_partial_cascade(self):
        calls = []
        instance_patch, assignment_patch, goal_patch = self._recording_patches(calls, fail_instance_at=5)
        with instance_patch, assignment_patch, goal_patch:
            self.assertFalse(services.delete_goal(self.goal.id, atomic=True))

        self.assertTrue(Goal.objects.filter(id=self.goal.id).exists())
        self.assertEqual(GoalInstance.objects.count(), 6)

    def test_goal_without_assignments_is_deleted(self):
        empty = self.make_goal(name="Empty")
        self.assertTrue(services.delete_goal(empty.id))
        self.assertFalse(Goal.objects.filter(id=empty.id).exists())

    def test_missing_goal_returns_false(self):
        self.assertFalse(services.delete_goal(987654))

    def test_goal_with_children_cannot_be_deleted_directly(self):
        with self.assertRaises(DatabaseError):
            self.goal.delete()


class AssignGoalTests(GoalDataMixin, TestCase):
    def setUp(self):
        self.goal = self.make_goal()
        self.alice = self.make_employee("Alice")
        self.bob = self.make_employee("Bob")

    def test_creates_pending_assignments_with_current_instance(self):
        ok = services.assign_goal(self.goal.id, [(self.alice.id, 100), (self.bob.id, 50)], "Weekly", today=TODAY)

        self.assertTrue(ok)
        assignments = AssignedGoal.objects.filter(goal=self.goal).order_by("target_value")
        self.assertEqual([a.target_value for a in assignments], [50, 100])
        self.assertTrue(all(a.status == "pending" for a in assignments))
        instance = assignments[0].instances.get()
        self.assertEqual((instance.period_start, instance.period_end), (date(2026, 10, 19), date(2026, 10, 25)))
        self.assertEqual(instance.target_value, 50)

    def test_future_goal_opens_first_period(self):
        future_goal = self.make_goal(name="Next year", start_date=date(2027, 3, 10), end_date=date(2027, 12, 31))
        services.assign_goal(future_goal.id, [(self.alice.id, 10)], "Monthly", today=TODAY)
        instance = GoalInstance.objects.get(assigned_goal__goal=future_goal)
        self.assertEqual(instance.period_start, date(2027, 3, 1))

    def test_rejects_duplicates_and_bad_input(self):
        self.assertTrue(services.assign_goal(self.goal.id, [(self.alice.id, 10)], "Daily", today=TODAY))
        self.assertFalse(services.assign_goal(self.goal.id, [(self.alice.id, 10)], "Daily", today=TODAY))
        self.assertFalse(services.assign_goal(self.goal.id, [(self.bob.id, 0)], "Daily", today=TODAY))
        self.assertFalse(services.assign_goal(self.goal.id, [(self.bob.id, 10)], "Hourly", today=TODAY))
        self.assertFalse(services.assign_goal(self.goal.id, [(99999, 10)], "Daily", today=TODAY))
        self.assertFalse(services.assign_goal(self.goal.id, [], "Daily", today=TODAY))
        self.assertEqual(AssignedGoal.objects.filter(goal=self.goal).count(), 1)


class RecordProgressTests(GoalDataMixin, TestCase):
    def setUp(self):
        self.goal = self.make_goal()
        self.assignment = self.make_assignment(self.goal, self.make_employee("Alice"), target=10)
        self.today = timezone.localdate()

    def test_record_rolls_into_instance_and_assignment(self):
        record = services.record_progress(self.assignment.id, 4, notes="first batch")

        self.assertEqual(record.value, 4)
        instance = self.assignment.instances.get()
        self.assertEqual(instance.period_start, self.today.replace(day=1))
        self.assertEqual(instance.current_value, 4)
        self.assertEqual(instance.progress, 40)
        self.assertEqual(instance.status, "in-progress")
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.current_value, 4)
        self.assertEqual(self.assignment.status, "in-progress")

    def test_reaching_target_completes(self):
        services.record_progress(self.assignment.id, 4)
        services.record_progress(self.assignment.id, 6)

        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.progress, 100)
        self.assertEqual(self.assignment.status, "completed")
        self.assertEqual(TrackingRecord.objects.filter(assigned_goal=self.assignment).count(), 2)

    def test_stopped_assignment_rejects_records(self):
        self.assignment.status = "stopped"
        self.assignment.save()
        self.assertIsNone(services.record_progress(self.assignment.id, 1))
        self.assertFalse(TrackingRecord.objects.exists())

    def test_non_positive_value_is_rejected(self):
        self.assertIsNone(services.record_progress(self.assignment.id, 0))
        self.assertFalse(TrackingRecord.objects.exists())

    def test_value_too_large_for_column_is_rejected(self):
        self.assertIsNone(services.record_progress(self.assignment.id, "1e20"))
        self.assertFalse(TrackingRecord.objects.exists())
        self.assertFalse(GoalInstance.objects.filter(assigned_goal=self.assignment).exists())

    def test_tracking_records_are_listed_newest_first(self):
        services.record_progress(self.assignment.id, 1, record_date=self.today - timedelta(days=1))
        services.record_progress(self.assignment.id, 2, record_date=self.today)
        values = [record.value for record in services.get_tracking_records(self.assignment.id)]
        self.assertEqual(values, [2, 1])


class RefreshInstancesTests(GoalDataMixin, TestCase):
    def setUp(self):
        self.goal = self.make_goal()
        self.weekly = self.make_assignment(self.goal, self.make_employee("Alice"), goal_type="Weekly")
        self.lapsed = self.make_instance(self.weekly, date(2026, 10, 5), date(2026, 10, 11), status="in-progress")
        self.closed_goal = self.make_goal(name="Last year", start_date=date(2025, 1, 1), end_date=date(2025, 12, 31))
        self.expired = self.make_assignment(self.closed_goal, self.make_employee("Bob"), status="in-progress")

    def test_opens_current_period_and_marks_overdue(self):
        counts = services.refresh_instances(today=TODAY)

        self.assertEqual(counts, {"opened": 1, "overdue": 1})
        self.assertTrue(self.weekly.instances.filter(period_start=date(2026, 10, 19)).exists())
        self.lapsed.refresh_from_db()
        self.assertEqual(self.lapsed.status, "overdue")
        self.expired.refresh_from_db()
        self.assertEqual(self.expired.status, "overdue")

    def test_second_run_opens_nothing(self):
        services.refresh_instances(today=TODAY)
        self.assertEqual(services.refresh_instances(today=TODAY), {"opened": 0, "overdue": 0})

    def test_management_command_prints_counts(self):
        out = StringIO()
        call_command("refresh_goal_instances", "--date", "2026-10-19", stdout=out)
        self.assertIn("opened=1", out.getvalue())
        self.assertIn("overdue=1", out.getvalue())


class CreateGoalTests(TestCase):
    def test_creates_goal(self):
        goal = services.create_goal(
            name="  Onboarding  ",
            sector="Sales",
            metric_type="currency",
            metric_unit="USD",
            start_date=date(2026, 1, 1),
            end_date=date(2026, 6, 30),
        )
        self.assertEqual(goal.name, "Onboarding")
        self.assertIsNone(goal.target_value)

    def test_invalid_input_returns_none(self):
        base = {
            "name": "Goal",
            "sector": "HR",
            "metric_type": "count",
            "start_date": date(2026, 1, 1),
            "end_date": date(2026, 6, 30),
        }
        self.assertIsNone(services.create_goal(**{**base, "name": " "}))
        self.assertIsNone(services.create_goal(**{**base, "sector": "Legal"}))
        self.assertIsNone(services.create_goal(**{**base, "metric_type": "points"}))
        self.assertIsNone(services.create_goal(**{**base, "end_date": date(2025, 1, 1)}))
        self.assertIsNone(services.create_goal(**{**base, "target_value": -1}))
        self.assertIsNone(services.create_goal(**{**base, "target_value": "1e20"}))
        self.assertFalse(Goal.objects.exists())


class GoalViewTests(GoalDataMixin, TestCase):
    def setUp(self):
        cache.clear()
        session = self.client.session
        session["role"] = "admin"
        session.save()
        self.goal = self.make_goal()
        self.alice = self.make_employee("Alice")
        self.assignment = self.make_assignment(self.goal, self.alice, target=100, current=40, status="in-progress")

    def test_goal_index_lists_goals_with_statistics(self):
        response = self.client.get(reverse("goal_index"))

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Candidate submissions")
        self.assertEqual(response.context["statistics"].in_progress_goals, 1)

    def test_goal_index_status_filter(self):
        response = self.client.get(reverse("goal_index") + "?status=completed")
        self.assertEqual(response.context["rows"], [])
        self.assertNotContains(response, "Candidate submissions")

    def test_status_filter_lists_unassigned_goal_as_pending(self):
        self.make_goal(name="Unstaffed")

        response = self.client.get(reverse("goal_index") + "?status=pending")

        self.assertContains(response, "Unstaffed")
        self.assertNotContains(response, "Candidate submissions")

    def test_create_goal_redirects_to_detail(self):
        response = self.client.post(
            reverse("goal_create"),
            {
                "name": "Placements",
                "sector": "Sales",
                "metric_type": "count",
                "metric_unit": "hires",
                "start_date": "2026-01-01",
                "end_date": "2026-12-31",
            },
        )
        goal = Goal.objects.get(name="Placements")
        self.assertRedirects(response, f"{reverse('goal_detail', args=[goal.id])}?saved=created")

    def test_create_goal_rejects_reversed_dates(self):
        response = self.client.post(
            reverse("goal_create"),
            {
                "name": "Backwards",
                "sector": "HR",
                "metric_type": "count",
                "start_date": "2026-12-31",
                "end_date": "2026-01-01",
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(Goal.objects.filter(name="Backwards").exists())

    def test_goal_detail_shows_overall_progress(self):
        response = self.client.get(reverse("goal_detail", args=[self.goal.id]))

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.context["details"].overall_progress, 40)
        self.assertContains(response, "Alice Tester")

    def test_goal_detail_missing_goal_is_404(self):
        response = self.client.get(reverse("goal_detail", args=[123456]))
        self.assertEqual(response.status_code, 404)

    def test_extend_is_refused_for_unfinished_assignment(self):
        response = self.client.post(
            reverse("goal_detail", args=[self.goal.id]),
            {"action": "extend_target", "assigned_goal_id": str(self.assignment.id), "value": "20"},
        )

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Only completed goals can be extended.")
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 100)

    def test_extend_completed_assignment(self):
        self.assignment.status = "completed"
        self.assignment.current_value = 100
        self.assignment.save()

        response = self.client.post(
            reverse("goal_detail", args=[self.goal.id]),
            {"action": "extend_target", "assigned_goal_id": str(self.assignment.id), "value": "20"},
        )

        self.assertEqual(response.status_code, 302)
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 120)
        self.assertEqual(self.assignment.status, "in-progress")

    def test_oversized_target_is_refused_and_pages_still_render(self):
        response = self.client.post(
            reverse("goal_detail", args=[self.goal.id]),
            {"action": "update_target", "assigned_goal_id": str(self.assignment.id), "value": "1e20"},
        )

        self.assertContains(response, "The action could not be completed.")
        self.assignment.refresh_from_db()
        self.assertEqual(self.assignment.target_value, 100)
        for url in (reverse("goal_detail", args=[self.goal.id]), reverse("goal_index"), reverse("dashboard_index")):
            self.assertEqual(self.client.get(url).status_code, 200)

    def test_update_target_with_invalid_value_shows_error(self):
        response = self.client.post(
            reverse("goal_detail", args=[self.goal.id]),
            {"action": "update_target", "assigned_goal_id": str(self.assignment.id), "value": "0"},
        )
        self.assertContains(response, "The action could not be completed.")

    def test_assign_employees(self):
        bob = self.make_employee("Bob")
        response = self.client.post(
            reverse("goal_detail", args=[self.goal.id]),
            {"action": "assign_goal", "employees": [bob.id], "target_value": "30", "goal_type": "Monthly"},
        )
        self.assertEqual(response.status_code, 302)
        self.assertTrue(AssignedGoal.objects.filter(goal=self.goal, employee=bob).exists())

    def test_delete_goal_redirects_to_index(self):
        self.make_instance(self.assignment, date(2026, 10, 1), date(2026, 10, 31))
        response = self.client.post(reverse("goal_detail", args=[self.goal.id]), {"action": "delete_goal"})

        self.assertRedirects(response, f"{reverse('goal_index')}?deleted=1")
        self.assertFalse(Goal.objects.filter(id=self.goal.id).exists())

    def test_employee_page_records_progress(self):
        session = self.client.session
        session["role"] = "employee"
        session.save()

        response = self.client.post(
            reverse("employee_goals", args=[self.alice.id]),
            {"action": "record_progress", "assigned_goal_id": str(self.assignment.id), "value": "5"},
        )

        self.assertEqual(response.status_code, 302)
        self.assertEqual(TrackingRecord.objects.get(assigned_goal=self.assignment).value, 5)

    def test_employee_page_refuses_other_employees_assignment(self):
        bob = self.make_employee("Bob")
        response = self.client.post(
            reverse("employee_goals", args=[bob.id]),
            {"action": "record_progress", "assigned_goal_id": str(self.assignment.id), "value": "5"},
        )
        self.assertEqual(response.status_code, 200)
        self.assertFalse(TrackingRecord.objects.exists())
