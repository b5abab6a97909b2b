"""Shared-password roles kept in the session.

There are no per-user accounts: whoever knows a role's password acts as
that role until logout.
"""
import logging
from functools import wraps

from django.conf import settings
from django.http import HttpRequest, HttpResponse
from django.shortcuts import redirect
from django.utils.crypto import constant_time_compare

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_EMPLOYEE = "employee"
ROLES = (ROLE_ADMIN, ROLE_EMPLOYEE)
SESSION_ROLE_KEY = "role"

LANDING_PAGES = {
    ROLE_ADMIN: "dashboard_index",
    ROLE_EMPLOYEE: "goal_index",
}


def role_password(role: str) -> str | None:
    return {
        ROLE_ADMIN: settings.GOALS_ADMIN_PASSWORD,
        ROLE_EMPLOYEE: settings.GOALS_EMPLOYEE_PASSWORD,
    }.get(role)


def check_role_password(role: str, password: str) -> bool:
    expected = role_password(role)
    return expected is not None and constant_time_compare(password, expected)


def current_role(request: HttpRequest) -> str | None:
    role = request.session.get(SESSION_ROLE_KEY)
    return role if role in ROLES else None


def start_session(request: HttpRequest, role: str) -> None:
    request.session.cycle_key()
    request.session[SESSION_ROLE_KEY] = role


def end_session(request: HttpRequest) -> None:
    request.session.pop(SESSION_ROLE_KEY, None)


def require_roles(*allowed_roles: str):
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request: HttpRequest, *args, **kwargs) -> HttpResponse:
            role = current_role(request)
            if role not in allowed_roles:
                if role is not None:
                    logger.info("Role %s may not open %s", role, request.path)
                return redirect("home")
            return view_func(request, *args, **kwargs)

        return wrapper

    return decorator
