"""
Base Django settings for TokenLedgerService.

These settings are shared across all environments.
Environment-specific overrides are in dev.py, test.py, and prod.py
"""
import os
from pathlib import Path

from .logging import get_logging_config


def env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def env_list(name: str, default: str = "") -> list:
    """Read a comma-separated list from the environment."""
    return [item.strip() for item in os.environ.get(name, default).split(",") if item.strip()]


# Build paths inside the project
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.environ.get(
    "SECRET_KEY", "django-insecure-7k$ledger-local-only-key-3v9!q2@x#m8w^p0z&r4t"
)

DEBUG = False

ALLOWED_HOSTS = env_list("ALLOWED_HOSTS", "localhost,127.0.0.1")

# Application definition
INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    # Third party
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "TokenLedgerService.apps.TokenLedgerServiceConfig",
    "core",
    "ledger.apps.LedgerConfig",
    "api",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
    # Custom middleware
    "core.middleware.observability.ObservabilityMiddleware",
    "core.middleware.metrics.MetricsMiddleware",
    "core.middleware.auth.ClientAllowListMiddleware",
]

ROOT_URLCONF = "TokenLedgerService.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
            ],
        },
    },
]

WSGI_APPLICATION = "TokenLedgerService.wsgi.application"
ASGI_APPLICATION = "TokenLedgerService.asgi.application"

# The ledger sheet is the only persistent store
DATABASES = {}

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files
STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Request bodies above this size are refused
DATA_UPLOAD_MAX_MEMORY_SIZE = 10 * 1024 * 1024

# REST Framework
REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": [],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "api.exceptions.custom_exception_handler",
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

# drf-spectacular settings
SPECTACULAR_SETTINGS = {
    "TITLE": "Token Ledger Service API",
    "DESCRIPTION": (
        "Order activation and prepaid token accounting for licensed "
        "devices, backed by a Google Sheets ledger."
    ),
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
    "COMPONENT_SPLIT_REQUEST": True,
    "SCHEMA_PATH_PREFIX": "/api/v1",
    "TAGS": [
        {"name": "Ledger API", "description": "Token claim, consumption and validation"},
        {"name": "Completions", "description": "Completion relay gated on account validity"},
        {"name": "Health", "description": "Health check endpoints"},
    ],
}

# Ledger store
LEDGER_STORE_BACKEND = os.environ.get("LEDGER_STORE_BACKEND", "google")
GOOGLE_SPREADSHEET_ID = os.environ.get("GOOGLE_SPREADSHEET_ID", "")
GOOGLE_CLIENT_EMAIL = os.environ.get("GOOGLE_CLIENT_EMAIL", "")
GOOGLE_PRIVATE_KEY = os.environ.get("GOOGLE_PRIVATE_KEY", "")
LEDGER_SHEET_NAME = os.environ.get("LEDGER_SHEET_NAME", "Sheet1")
LEDGER_STORE_TIMEOUT_SECONDS = float(os.environ.get("LEDGER_STORE_TIMEOUT_SECONDS", "30"))

# Ledger policy
LEDGER_GRANT_AMOUNT = int(os.environ.get("LEDGER_GRANT_AMOUNT", "500000"))
LEDGER_FALLBACK_TOKEN_BALANCE = int(os.environ.get("LEDGER_FALLBACK_TOKEN_BALANCE", "1000"))
LEDGER_ORDER_COLUMN_PATTERNS = tuple(
    pattern.lower() for pattern in env_list("LEDGER_ORDER_COLUMN_PATTERNS", "clientorder,order")
)

# Direct crediting endpoint; off unless explicitly enabled
LEDGER_ADD_TOKENS_ENABLED = env_bool("LEDGER_ADD_TOKENS_ENABLED", False)

# Client allow-list; an empty list disables the check
LEDGER_ALLOWED_CLIENT_AGENTS = env_list("LEDGER_ALLOWED_CLIENT_AGENTS", "SecureJUCEClient")

# Completion relay
CLAUDE_API_KEY = os.environ.get("CLAUDE_API_KEY", "")
COMPLETION_MODEL = os.environ.get("COMPLETION_MODEL", "claude-sonnet-4-20250514")
COMPLETION_MAX_TOKENS = int(os.environ.get("COMPLETION_MAX_TOKENS", "2500"))
COMPLETION_TIMEOUT_SECONDS = float(os.environ.get("COMPLETION_TIMEOUT_SECONDS", "30"))

# Observability
OTEL_ENABLED = env_bool("OTEL_ENABLED", False)

# Port for the Prometheus scrape endpoint; unset disables it
PROMETHEUS_PORT = os.environ.get("PROMETHEUS_PORT")

LOGGING = get_logging_config(os.environ.get("ENVIRONMENT", "production"))
