from django.contrib import admin

from .models import AssignedGoal, Goal, GoalInstance, TrackingRecord


@admin.register(Goal)
class GoalAdmin(admin.ModelAdmin):
    list_display = ("name", "sector", "metric_type", "target_value", "start_date", "end_date")
    list_filter = ("sector", "metric_type")
    search_fields = ("name",)

    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return ("sector", "metric_type")
        return ()

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AssignedGoal)
class AssignedGoalAdmin(admin.ModelAdmin):
    list_display = ("goal", "employee", "goal_type", "target_value", "current_value", "progress", "status")
    list_filter = ("status", "goal_type")


@admin.register(GoalInstance)
class GoalInstanceAdmin(admin.ModelAdmin):
    list_display = ("assigned_goal", "period_start", "period_end", "target_value", "current_value", "status")
    list_filter = ("status",)


@admin.register(TrackingRecord)
class TrackingRecordAdmin(admin.ModelAdmin):
    list_display = ("assigned_goal", "record_date", "value")
