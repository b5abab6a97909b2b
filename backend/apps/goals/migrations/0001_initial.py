from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


STATUS_CHOICES = [
    ("pending", "pending"),
    ("in-progress", "in-progress"),
    ("completed", "completed"),
    ("overdue", "overdue"),
    ("stopped", "stopped"),
]


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Goal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=128)),
                ("description", models.TextField(blank=True)),
                (
                    "sector",
                    models.CharField(
                        choices=[
                            ("HR", "HR"),
                            ("Sales", "Sales"),
                            ("Finance", "Finance"),
                            ("Operations", "Operations"),
                            ("Marketing", "Marketing"),
                        ],
                        max_length=16,
                    ),
                ),
                (
                    "metric_type",
                    models.CharField(
                        choices=[
                            ("percentage", "percentage"),
                            ("currency", "currency"),
                            ("count", "count"),
                            ("hours", "hours"),
                            ("custom", "custom"),
                        ],
                        max_length=16,
                    ),
                ),
                ("metric_unit", models.CharField(blank=True, max_length=16)),
                ("target_value", models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="AssignedGoal",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("target_value", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("current_value", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("progress", models.PositiveSmallIntegerField(default=0)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="pending", max_length=16)),
                (
                    "goal_type",
                    models.CharField(
                        choices=[
                            ("Daily", "Daily"),
                            ("Weekly", "Weekly"),
                            ("Monthly", "Monthly"),
                            ("Yearly", "Yearly"),
                        ],
                        default="Monthly",
                        max_length=8,
                    ),
                ),
                ("notes", models.TextField(blank=True)),
                ("assigned_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "employee",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assigned_goals",
                        to="accounts.employee",
                    ),
                ),
                (
                    "goal",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="assignments",
                        to="goals.goal",
                    ),
                ),
            ],
            options={
                "ordering": ["goal_id", "employee__first_name", "id"],
            },
        ),
        migrations.CreateModel(
            name="GoalInstance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("period_start", models.DateField()),
                ("period_end", models.DateField()),
                ("target_value", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("current_value", models.DecimalField(decimal_places=2, default=0, max_digits=14)),
                ("progress", models.PositiveSmallIntegerField(default=0)),
                ("status", models.CharField(choices=STATUS_CHOICES, default="pending", max_length=16)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "assigned_goal",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="instances",
                        to="goals.assignedgoal",
                    ),
                ),
            ],
            options={
                "ordering": ["-period_start", "id"],
                "unique_together": {("assigned_goal", "period_start")},
            },
        ),
        migrations.CreateModel(
            name="TrackingRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("value", models.DecimalField(decimal_places=2, max_digits=14)),
                ("record_date", models.DateField(default=django.utils.timezone.localdate)),
                ("notes", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "assigned_goal",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="tracking_records",
                        to="goals.assignedgoal",
                    ),
                ),
            ],
            options={
                "ordering": ["-record_date", "-created_at", "-id"],
            },
        ),
    ]
