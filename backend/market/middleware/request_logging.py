"""Middleware to log every request and its response status"""
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, client, status code and duration of each request"""

    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        client = request.client.host if request.client else "unknown"
        logger.debug(f"--> {request.method} {request.url.path} from {client}")

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(f"<-- {request.method} {request.url.path} raised after {elapsed_ms:.1f}ms")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        log = logger.warning if response.status_code >= 400 else logger.info
        log(f"<-- {request.method} {request.url.path} {response.status_code} ({elapsed_ms:.1f}ms)")
        return response
