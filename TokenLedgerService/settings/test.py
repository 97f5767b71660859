"""
Test settings for TokenLedgerService.
"""

from .base import *  # noqa: F403, F401

DEBUG = False

ALLOWED_HOSTS = ["testserver", "localhost"]

LEDGER_STORE_BACKEND = "memory"
LEDGER_SHEET_NAME = "Sheet1"
LEDGER_GRANT_AMOUNT = 500000
LEDGER_FALLBACK_TOKEN_BALANCE = 1000
LEDGER_STORE_TIMEOUT_SECONDS = 5.0
LEDGER_ALLOWED_CLIENT_AGENTS = ["SecureJUCEClient"]

CLAUDE_API_KEY = "test-key"

OTEL_ENABLED = False
PROMETHEUS_PORT = None

# Disable logging during tests
LOGGING_CONFIG = None
