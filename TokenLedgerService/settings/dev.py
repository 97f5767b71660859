"""
Development settings for TokenLedgerService.
"""

import os

from .base import *  # noqa: F403, F401
from .logging import get_logging_config

DEBUG = True

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "0.0.0.0"]

# Work against an in-memory sheet unless told otherwise
LEDGER_STORE_BACKEND = os.environ.get("LEDGER_STORE_BACKEND", "memory")

LOGGING = get_logging_config("development")
