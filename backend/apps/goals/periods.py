import calendar
from datetime import date, timedelta

from .models import GOAL_TYPE_DAILY, GOAL_TYPE_MONTHLY, GOAL_TYPE_WEEKLY, GOAL_TYPE_YEARLY


def period_bounds(goal_type: str, day: date) -> tuple[date, date]:
    if goal_type == GOAL_TYPE_DAILY:
        return day, day
    if goal_type == GOAL_TYPE_WEEKLY:
        start = day - timedelta(days=day.weekday())
        return start, start + timedelta(days=6)
    if goal_type == GOAL_TYPE_MONTHLY:
        last_day = calendar.monthrange(day.year, day.month)[1]
        return day.replace(day=1), day.replace(day=last_day)
    if goal_type == GOAL_TYPE_YEARLY:
        return date(day.year, 1, 1), date(day.year, 12, 31)
    raise ValueError(f"Unknown goal type: {goal_type!r}")


def period_label(goal_type: str, start: date) -> str:
    if goal_type == GOAL_TYPE_DAILY:
        return f"{start:%Y-%m-%d}"
    if goal_type == GOAL_TYPE_WEEKLY:
        return f"Week of {start:%Y-%m-%d}"
    if goal_type == GOAL_TYPE_MONTHLY:
        return f"{start:%B %Y}"
    return f"{start.year}"
