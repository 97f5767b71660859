"""
Integration tests for health and readiness endpoints.
"""

import pytest
from django.apps import apps
from django.conf import settings
from django.test import Client

from core.domain.exceptions import StoreUnavailableError
from ledger.infrastructure.container import build_ledger_services
from ledger.infrastructure.in_memory_store import InMemoryTabularStore

from conftest import SHEET_NAME


class DownStore(InMemoryTabularStore):
    async def ping(self):
        raise StoreUnavailableError("Sheets ping timed out", operation="ping")


@pytest.mark.integration
class TestHealthAPI:
    """Integration tests for health checks."""

    def test_health(self):
        response = Client().get("/health/")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "token-ledger-service"}

    def test_ready(self, ledger_services):
        """Test a reachable store with a usable header is ready."""
        response = Client().get("/ready/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["store"]["ok"] is True
        assert data["checks"]["schema"]["has_token_column"] is True

    def test_not_ready_without_columns(self, ledger_services, memory_store):
        """Test a sheet without order or serial columns is not ready."""
        memory_store.replace_sheet(SHEET_NAME, [["Token", "Notes"]])

        response = Client().get("/ready/")

        assert response.status_code == 503
        assert response.json()["checks"]["schema"]["missing_columns"] == ["order", "serial"]

    def test_not_ready_when_store_down(self, monkeypatch, completion_gateway, event_bus):
        """Test an unreachable store is not ready."""
        services = build_ledger_services(
            settings, store=DownStore(), gateway=completion_gateway, event_bus=event_bus
        )
        monkeypatch.setattr(apps.get_app_config("ledger"), "services", services)

        response = Client().get("/ready/")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["store"]["ok"] is False
