"""
College Management API - HTTP Middleware
Request logging and correlation ids, security headers, body size cap
"""

import time
from typing import Callable, Dict, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from app.core.logging_config import (
    logger,
    set_request_id,
    set_account_id,
    generate_request_id,
)


# Liveness probes and docs are polled constantly; keep them out of the log
SKIP_LOGGING_PATHS: Set[str] = {
    "/health",
    "/api/v1/health",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
}

SLOW_REQUEST_MS = 1000

SECURITY_HEADERS: Dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Cache-Control": "no-store",
}


def should_skip_logging(path: str) -> bool:
    return path in SKIP_LOGGING_PATHS


def _status_log_level(status_code: int) -> str:
    # 4xx are caller mistakes (bad input, wrong role), not server faults
    if status_code >= 500:
        return "error"
    if status_code >= 400:
        return "warning"
    return "info"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Correlates every request with an id and logs its outcome.

    - Reuses an incoming X-Request-ID or generates one
    - Logs method, path, status and duration; slow requests get a warning
    - Adds X-Request-ID and X-Response-Time to the response
    - Clears the request/account context afterwards
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        method, path = request.method, request.url.path
        quiet = should_skip_logging(path)
        started = time.perf_counter()

        try:
            response = await call_next(request)

            elapsed_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"

            if not quiet:
                log = getattr(logger, _status_log_level(response.status_code))
                log(
                    f"{method} {path} - {response.status_code} ({elapsed_ms:.2f}ms)",
                    extra={
                        "event_type": "http_request",
                        "http_method": method,
                        "http_path": path,
                        "http_status": response.status_code,
                        "duration_ms": elapsed_ms,
                    }
                )
                if elapsed_ms > SLOW_REQUEST_MS:
                    logger.warning(f"Slow request: {method} {path} took {elapsed_ms:.2f}ms")

            return response

        except Exception as exc:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.error(
                f"✗ {method} {path} - {type(exc).__name__} ({elapsed_ms:.2f}ms)",
                exc_info=True,
                extra={
                    "event_type": "http_request_error",
                    "http_method": method,
                    "http_path": path,
                    "duration_ms": elapsed_ms,
                }
            )
            raise

        finally:
            set_request_id("")
            set_account_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds SECURITY_HEADERS to every response"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Rejects bodies larger than ``max_size`` bytes with a 413"""

    def __init__(self, app: ASGIApp, max_size: int = 1024 * 1024):
        super().__init__(app)
        self.max_size = max_size

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length", "")

        if content_length.isdigit() and int(content_length) > self.max_size:
            logger.warning(
                f"Request body too large: {content_length} bytes (max: {self.max_size})",
                extra={"event_type": "request_too_large", "http_path": request.url.path}
            )
            return JSONResponse(
                status_code=413,
                content={
                    "message": f"Request body too large. Maximum size is {self.max_size // 1024}KB",
                    "code": "VALIDATION",
                }
            )

        return await call_next(request)
