"""
Test settings – in-memory SQLite, quiet logging, no external services.
"""
import os

# base.py requires SECRET_KEY; python-decouple reads os.environ first.
os.environ.setdefault("SECRET_KEY", "metadata-engine-test-secret-key")

from .base import *  # noqa: E402, F401, F403

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["apps"]["level"] = "WARNING"  # noqa: F405
