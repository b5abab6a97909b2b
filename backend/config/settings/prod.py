import os

from django.core.exceptions import ImproperlyConfigured

from .base import *

DEBUG = False

if SECRET_KEY == "dev-only-secret-key":
    raise ImproperlyConfigured("DJANGO_SECRET_KEY must be set in production.")
if "GOALS_ADMIN_PASSWORD" not in os.environ or "GOALS_EMPLOYEE_PASSWORD" not in os.environ:
    raise ImproperlyConfigured("GOALS_ADMIN_PASSWORD and GOALS_EMPLOYEE_PASSWORD must be set in production.")

ALLOWED_HOSTS = ALLOWED_HOSTS or ["*"]
CSRF_TRUSTED_ORIGINS = [
    origin.strip() for origin in os.getenv("CSRF_TRUSTED_ORIGINS", "").split(",") if origin.strip()
]

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# Goal pages are cached per process; a shared cache keeps workers consistent.
CACHE_DIR = os.getenv("GOAL_CACHE_DIR")
if CACHE_DIR:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
            "LOCATION": CACHE_DIR,
        }
    }

if "whitenoise.middleware.WhiteNoiseMiddleware" not in MIDDLEWARE:
    MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")

STORAGES = {
    "default": {
        "BACKEND": "django.core.files.storage.FileSystemStorage",
    },
    "staticfiles": {
        "BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage",
    },
}

LOGGING["loggers"]["apps"]["level"] = os.getenv("LOG_LEVEL", "WARNING")
