"""
Client allow-list middleware.

Ledger endpoints are only served to the licensed desktop client, which
identifies itself in its User-Agent. This is a coarse filter, not
authentication.
"""

import logging
from typing import Optional

from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.utils.deprecation import MiddlewareMixin

from core.domain.value_objects import ErrorKind

logger = logging.getLogger(__name__)

PROTECTED_PREFIX = "/api/v1/"


class ClientAllowListMiddleware(MiddlewareMixin):
    """
    Middleware for client filtering.

    This middleware:
    1. Rejects API requests whose User-Agent names no allowed client (403)
    2. Rejects API POSTs that are not JSON (400)
    3. Does nothing when the allow-list is empty
    """

    def process_request(self, request: HttpRequest) -> Optional[HttpResponse]:
        """
        Process request and check the client.

        Args:
            request: HTTP request

        Returns:
            JsonResponse when the request is refused, None otherwise
        """
        if not request.path.startswith(PROTECTED_PREFIX):
            return None

        allowed_agents = getattr(settings, "LEDGER_ALLOWED_CLIENT_AGENTS", [])
        if not allowed_agents:
            return None

        user_agent = request.META.get("HTTP_USER_AGENT", "")
        if not any(agent in user_agent for agent in allowed_agents):
            logger.warning(
                "Blocked request from unrecognized client",
                extra={
                    "path": request.path,
                    "user_agent": user_agent,
                    "remote_addr": request.META.get("REMOTE_ADDR"),
                },
            )
            return JsonResponse(
                {"error": {"code": ErrorKind.ACCESS_DENIED.value, "message": "Access denied"}},
                status=403,
            )

        if request.method == "POST" and request.content_type != "application/json":
            return JsonResponse(
                {
                    "error": {
                        "code": "INVALID_CONTENT_TYPE",
                        "message": "Content-Type must be application/json",
                    }
                },
                status=400,
            )

        return None
