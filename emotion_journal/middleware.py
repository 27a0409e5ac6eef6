"""
Request logging middleware.

Logs one line per request with method, path, status and duration. The level
follows the status class so failed requests stand out: 5xx at ERROR, 4xx at
WARNING, everything else at INFO. Request bodies are never logged.

Unexpected exceptions are turned into a generic 500 here, inside the CORS
middleware, so the error response still carries CORS headers and gets an
access line like any other request.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger("emotion_journal.access")
error_logger = logging.getLogger("emotion_journal.errors")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs each HTTP request and its response status."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()
        client_ip = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        except Exception as e:
            # Details stay in the log, never in the response
            error_logger.error(
                "Unexpected error on %s %s", request.method, request.url.path, exc_info=e
            )
            response = JSONResponse(
                status_code=500, content={"error": "Internal server error"}
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            client_ip,
        )
        return response
