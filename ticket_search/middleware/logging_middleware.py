"""
Logging Middleware - Request/Response logging
"""
import time
import uuid
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ticket_search.utils.logger import get_logger

logger = get_logger(__name__)

QUIET_PATHS = {"/api/v1/health"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request with its status and duration

    Adds `X-Request-ID` and `X-Process-Time` (ms) response headers.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        method = request.method
        path = request.url.path
        start_time = time.time()

        logger.info(
            f"[{request_id}] → {method} {path}",
            extra={
                "request_id": request_id,
                "client": request.client.host if request.client else "unknown"
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.error(
                f"[{request_id}] ✗ {method} {path} ERROR ({duration_ms}ms): {e}",
                exc_info=True
            )
            raise

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(f"[{request_id}] ← {method} {path} {response.status_code} ({duration_ms}ms)")

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)
        return response
