"""
Core views for health checks and system status.
"""

import logging

from asgiref.sync import async_to_sync
from django.apps import apps
from django.http import JsonResponse
from django.views import View

from core.domain.exceptions import DomainException
from ledger.domain.schema import LedgerField

logger = logging.getLogger(__name__)


class HealthView(View):
    """Health check endpoint."""

    def get(self, _request):
        """Return service health status."""
        return JsonResponse({"status": "healthy", "service": "token-ledger-service"})


class ReadyView(View):
    """Readiness check endpoint."""

    def get(self, _request):
        """Check if service is ready to accept traffic."""
        checks = async_to_sync(self._run_checks)()

        all_healthy = all(check["ok"] for check in checks.values())
        status_code = 200 if all_healthy else 503

        return JsonResponse(
            {
                "status": "ready" if all_healthy else "not_ready",
                "checks": checks,
            },
            status=status_code,
        )

    async def _run_checks(self) -> dict:
        services = apps.get_app_config("ledger").services
        store = await self._check_store(services)
        if not store["ok"]:
            return {"store": store, "schema": {"ok": False, "error": "store unavailable"}}
        return {"store": store, "schema": await self._check_schema(services)}

    async def _check_store(self, services) -> dict:
        """Check the tabular store answers."""
        try:
            await services.store.ping()
        except DomainException as e:
            logger.warning("Readiness store check failed: %s", e.message)
            return {"ok": False, "error": e.message}
        return {"ok": True}

    async def _check_schema(self, services) -> dict:
        """Check the order and serial columns can be resolved."""
        try:
            snapshot = await services.locator.load()
        except DomainException as e:
            return {"ok": False, "error": e.message}

        missing = [
            field.value
            for field in (LedgerField.ORDER, LedgerField.SERIAL)
            if not snapshot.schema.has(field)
        ]
        if missing:
            return {"ok": False, "missing_columns": missing}
        return {"ok": True, "has_token_column": snapshot.schema.has(LedgerField.TOKENS)}
