from django.db import models
from django.utils import timezone

from apps.accounts.models import SECTOR_CHOICES, Employee

METRIC_PERCENTAGE = "percentage"
METRIC_CURRENCY = "currency"
METRIC_COUNT = "count"
METRIC_HOURS = "hours"
METRIC_CUSTOM = "custom"
METRIC_TYPE_CHOICES = [
    (METRIC_PERCENTAGE, "percentage"),
    (METRIC_CURRENCY, "currency"),
    (METRIC_COUNT, "count"),
    (METRIC_HOURS, "hours"),
    (METRIC_CUSTOM, "custom"),
]

GOAL_TYPE_DAILY = "Daily"
GOAL_TYPE_WEEKLY = "Weekly"
GOAL_TYPE_MONTHLY = "Monthly"
GOAL_TYPE_YEARLY = "Yearly"
GOAL_TYPE_CHOICES = [
    (GOAL_TYPE_DAILY, "Daily"),
    (GOAL_TYPE_WEEKLY, "Weekly"),
    (GOAL_TYPE_MONTHLY, "Monthly"),
    (GOAL_TYPE_YEARLY, "Yearly"),
]

STATUS_PENDING = "pending"
STATUS_IN_PROGRESS = "in-progress"
STATUS_COMPLETED = "completed"
STATUS_OVERDUE = "overdue"
STATUS_STOPPED = "stopped"
STATUS_CHOICES = [
    (STATUS_PENDING, "pending"),
    (STATUS_IN_PROGRESS, "in-progress"),
    (STATUS_COMPLETED, "completed"),
    (STATUS_OVERDUE, "overdue"),
    (STATUS_STOPPED, "stopped"),
]

VALUE_FIELD_OPTIONS = {"max_digits": 14, "decimal_places": 2}


class Goal(models.Model):
    name = models.CharField(max_length=128)
    description = models.TextField(blank=True)
    sector = models.CharField(max_length=16, choices=SECTOR_CHOICES)
    metric_type = models.CharField(max_length=16, choices=METRIC_TYPE_CHOICES)
    metric_unit = models.CharField(max_length=16, blank=True)
    target_value = models.DecimalField(null=True, blank=True, **VALUE_FIELD_OPTIONS)
    start_date = models.DateField()
    end_date = models.DateField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self) -> str:
        return f"{self.name} [{self.sector}]"


class AssignedGoal(models.Model):
    goal = models.ForeignKey(
        Goal,
        on_delete=models.PROTECT,
        related_name="assignments",
    )
    employee = models.ForeignKey(
        Employee,
        on_delete=models.PROTECT,
        related_name="assigned_goals",
    )
    target_value = models.DecimalField(default=0, **VALUE_FIELD_OPTIONS)
    current_value = models.DecimalField(default=0, **VALUE_FIELD_OPTIONS)
    progress = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    goal_type = models.CharField(max_length=8, choices=GOAL_TYPE_CHOICES, default=GOAL_TYPE_MONTHLY)
    notes = models.TextField(blank=True)
    assigned_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["goal_id", "employee__first_name", "id"]

    def __str__(self) -> str:
        return f"{self.goal.name} -> {self.employee.full_name}"


class GoalInstance(models.Model):
    assigned_goal = models.ForeignKey(
        AssignedGoal,
        on_delete=models.PROTECT,
        related_name="instances",
    )
    period_start = models.DateField()
    period_end = models.DateField()
    target_value = models.DecimalField(default=0, **VALUE_FIELD_OPTIONS)
    current_value = models.DecimalField(default=0, **VALUE_FIELD_OPTIONS)
    progress = models.PositiveSmallIntegerField(default=0)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_PENDING)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-period_start", "id"]
        unique_together = ("assigned_goal", "period_start")

    def __str__(self) -> str:
        return f"{self.assigned_goal_id} ({self.period_start} - {self.period_end})"


class TrackingRecord(models.Model):
    assigned_goal = models.ForeignKey(
        AssignedGoal,
        on_delete=models.CASCADE,
        related_name="tracking_records",
    )
    value = models.DecimalField(**VALUE_FIELD_OPTIONS)
    record_date = models.DateField(default=timezone.localdate)
    notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-record_date", "-created_at", "-id"]
