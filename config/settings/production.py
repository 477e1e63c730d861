"""
Production settings – security-hardened overrides over base settings.
All sensitive values come from environment variables.
"""
from decouple import Csv, config

from .base import *  # noqa: F401, F403

DEBUG = False

ALLOWED_HOSTS = config("ALLOWED_HOSTS", cast=Csv())

# ---------------------------------------------------------------------------
# Database – no default password; verify pooled connections before reuse
# ---------------------------------------------------------------------------
DATABASES["default"]["PASSWORD"] = config("POSTGRES_PASSWORD")  # noqa: F405
DATABASES["default"]["CONN_MAX_AGE"] = config("POSTGRES_CONN_MAX_AGE", default=300, cast=int)  # noqa: F405
DATABASES["default"]["CONN_HEALTH_CHECKS"] = True  # noqa: F405

# ---------------------------------------------------------------------------
# HTTPS / security hardening (admin and health endpoints)
# ---------------------------------------------------------------------------
SECURE_SSL_REDIRECT = config("SECURE_SSL_REDIRECT", default=True, cast=bool)
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SECURE_CONTENT_TYPE_NOSNIFF = True
SESSION_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_SECURE = True
X_FRAME_OPTIONS = "DENY"

# ---------------------------------------------------------------------------
# Production logging: INFO level by default
# ---------------------------------------------------------------------------
LOGGING["root"]["level"] = "INFO"  # noqa: F405
LOGGING["loggers"]["apps"]["level"] = config("APPS_LOG_LEVEL", default="INFO")  # noqa: F405
