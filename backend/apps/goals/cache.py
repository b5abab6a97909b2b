from django.conf import settings
from django.core.cache import cache

GOAL_DETAILS_PREFIX = "goals:details"
EMPLOYEE_GOALS_PREFIX = "goals:employee"


def goal_details_key(goal_id: int) -> str:
    return f"{GOAL_DETAILS_PREFIX}:{goal_id}"


def employee_goals_key(employee_id: int) -> str:
    return f"{EMPLOYEE_GOALS_PREFIX}:{employee_id}"


def cached(key: str, loader):
    value = cache.get(key)
    if value is None:
        value = loader()
        if value is not None:
            cache.set(key, value, settings.GOAL_CACHE_TIMEOUT)
    return value


def invalidate_goal_queries(*, goal_ids=(), employee_ids=()) -> None:
    keys = [goal_details_key(goal_id) for goal_id in goal_ids]
    keys += [employee_goals_key(employee_id) for employee_id in employee_ids]
    if keys:
        cache.delete_many(keys)
