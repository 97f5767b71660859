"""
Google Sheets implementation of the TabularStore port.

Talks to the Sheets v4 ``values`` REST endpoints through a
``google.auth`` authorized ``requests`` session, authenticated as a
service account. Requests are blocking, so each one runs in a worker
thread and is bounded by an overall timeout.
"""

import asyncio
import logging
import threading
import time
from typing import Any, List, Optional, Sequence
from urllib.parse import quote

import requests
from asgiref.sync import sync_to_async
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import AuthorizedSession
from google.oauth2 import service_account

from core.domain.exceptions import StoreUnavailableError
from core.metrics import store_errors_total, store_request_duration_seconds
from ledger.infrastructure.a1_notation import cell_range
from ledger.ports.tabular_store import TabularStore

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"
SHEETS_SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


def unescape_private_key(private_key: str) -> str:
    """Keys pasted into env files carry literal ``\\n`` sequences."""
    return private_key.replace("\\n", "\n")


class GoogleSheetsStore(TabularStore):
    """
    Sheets-backed tabular store.

    The authorized session is created on first use, so a missing or
    malformed credential surfaces as ``StoreUnavailableError`` on the
    request that needs it rather than at startup.
    """

    def __init__(
        self,
        spreadsheet_id: str,
        client_email: str,
        private_key: str,
        sheet_name: str = "Sheet1",
        timeout: float = 30.0,
        base_url: str = SHEETS_API_URL,
    ):
        """
        Initialize store.

        Args:
            spreadsheet_id: Spreadsheet identifier from its URL
            client_email: Service account email
            private_key: Service account PEM key
            sheet_name: Sheet probed by ``ping``
            timeout: Seconds allowed per request
            base_url: Sheets API root
        """
        self.spreadsheet_id = spreadsheet_id
        self.client_email = client_email
        self.private_key = unescape_private_key(private_key or "")
        self.sheet_name = sheet_name
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self._session: Optional[AuthorizedSession] = None
        self._lock = threading.Lock()

    def _get_session(self) -> AuthorizedSession:
        with self._lock:
            if self._session is not None:
                return self._session

            if not (self.spreadsheet_id and self.client_email and self.private_key):
                raise StoreUnavailableError(
                    "Google Sheets credentials are not configured", operation="connect"
                )

            try:
                credentials = service_account.Credentials.from_service_account_info(
                    {
                        "client_email": self.client_email,
                        "private_key": self.private_key,
                        "token_uri": TOKEN_URI,
                    },
                    scopes=SHEETS_SCOPES,
                )
            except (ValueError, GoogleAuthError) as exc:
                logger.error("Invalid Google service account credentials: %s", exc)
                raise StoreUnavailableError(
                    "Google Sheets credentials are invalid", operation="connect"
                ) from exc

            self._session = AuthorizedSession(credentials)
            logger.info("Google Sheets client initialized for %s", self.client_email)
            return self._session

    def _values_url(self, a1_range: str) -> str:
        return f"{self.base_url}/{self.spreadsheet_id}/values/{quote(a1_range, safe='')}"

    async def _request(self, operation: str, method: str, a1_range: str, **kwargs) -> dict:
        session = self._get_session()
        url = self._values_url(a1_range)
        start_time = time.monotonic()

        try:
            response = await asyncio.wait_for(
                sync_to_async(session.request, thread_sensitive=False)(
                    method, url, timeout=self.timeout, **kwargs
                ),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return response.json() if response.content else {}
        except asyncio.TimeoutError as exc:
            store_errors_total.labels(operation=operation).inc()
            logger.warning("Sheets %s of %s timed out after %ss", operation, a1_range, self.timeout)
            raise StoreUnavailableError(
                f"Sheets {operation} timed out", operation=operation
            ) from exc
        except requests.exceptions.HTTPError as exc:
            store_errors_total.labels(operation=operation).inc()
            status = exc.response.status_code if exc.response is not None else None
            logger.warning("Sheets %s of %s failed with HTTP %s", operation, a1_range, status)
            raise StoreUnavailableError(
                f"Sheets {operation} failed with HTTP {status}",
                operation=operation,
                status=status,
            ) from exc
        except (requests.exceptions.RequestException, GoogleAuthError, ValueError) as exc:
            store_errors_total.labels(operation=operation).inc()
            logger.warning("Sheets %s of %s failed: %s", operation, a1_range, exc)
            raise StoreUnavailableError(
                f"Sheets {operation} failed: {exc}", operation=operation
            ) from exc
        finally:
            store_request_duration_seconds.labels(operation=operation).observe(
                time.monotonic() - start_time
            )

    async def read_rows(self, a1_range: str) -> List[List[str]]:
        payload = await self._request(
            "read",
            "GET",
            a1_range,
            params={"majorDimension": "ROWS", "valueRenderOption": "FORMATTED_VALUE"},
        )
        return [["" if cell is None else str(cell) for cell in row] for row in payload.get("values", [])]

    async def write_range(self, a1_range: str, values: Sequence[Sequence[Any]]) -> None:
        rows = [list(row) for row in values]
        await self._request(
            "write",
            "PUT",
            a1_range,
            params={"valueInputOption": "RAW"},
            json={"range": a1_range, "majorDimension": "ROWS", "values": rows},
        )
        logger.debug("Wrote %s", a1_range)

    async def ping(self) -> None:
        await self._request("ping", "GET", cell_range(self.sheet_name, 1, 0))

    def close(self) -> None:
        with self._lock:
            if self._session is not None:
                self._session.close()
                self._session = None
                logger.info("Google Sheets client closed")
