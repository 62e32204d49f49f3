"""Test settings: in-memory database, no throttling, quiet logs."""
from .dev import *  # noqa
from .base import REST_FRAMEWORK


DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": [],
}

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
