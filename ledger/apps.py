"""
App configuration for the ledger.
"""

import atexit
import logging

from django.apps import AppConfig

logger = logging.getLogger(__name__)


class LedgerConfig(AppConfig):
    """App configuration for the token ledger."""

    name = "ledger"
    verbose_name = "Token Ledger"

    services = None

    def ready(self):
        """Build the ledger services and register event handlers once."""
        if self.services is not None:
            return

        from django.conf import settings

        from core.infrastructure.event_handlers import register_event_handlers
        from ledger.infrastructure.container import build_ledger_services

        self.services = build_ledger_services(settings)
        register_event_handlers()
        atexit.register(self.shutdown)
        logger.info("Ledger services ready (backend: %s)", settings.LEDGER_STORE_BACKEND)

    def shutdown(self):
        """Close the store and gateway clients."""
        if self.services is not None:
            self.services.close()
