"""
App configuration for Token Ledger Service.
"""

import logging
import os
import sys

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class TokenLedgerServiceConfig(AppConfig):
    """App configuration for TokenLedgerService."""

    name = "TokenLedgerService"
    verbose_name = "Token Ledger Service"

    def ready(self):
        """Called when Django starts."""
        # Skip for management commands that never serve requests
        if len(sys.argv) > 1 and sys.argv[1] in [
            "migrate",
            "makemigrations",
            "collectstatic",
            "shell",
            "check",
            "seed_ledger_sheet",
        ]:
            return

        # Django's reloader runs code twice; only the serving process sets up
        if os.environ.get("RUN_MAIN") == "false":
            return

        if getattr(self, "_initialized", False):
            return

        from django.conf import settings

        from core.instrumentation import setup_opentelemetry, start_metrics_server

        if settings.OTEL_ENABLED:
            logger.info("Setting up observability...")
            setup_opentelemetry()
            logger.info("Observability setup complete")

        if settings.PROMETHEUS_PORT:
            start_metrics_server(int(settings.PROMETHEUS_PORT))

        self._initialized = True
