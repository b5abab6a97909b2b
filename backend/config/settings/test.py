from .base import *

DEBUG = False

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "goals-test",
    }
}

GOALS_ADMIN_PASSWORD = "admin-pass"
GOALS_EMPLOYEE_PASSWORD = "employee-pass"

LOGGING["loggers"]["apps"]["level"] = "CRITICAL"
