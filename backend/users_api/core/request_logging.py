# users_api/core/request_logging.py
"""Request/response logging for API routes.

Used as ``route_class`` on a router, so every handler on it is wrapped:
one log line on entry, one on exit (status, body, elapsed time), and errors
are logged then re-raised untouched so normal error mapping still applies.
"""
import base64
import logging
import time
from datetime import datetime, timezone
from typing import Callable

from fastapi import HTTPException, Request, Response
from fastapi.routing import APIRoute

logger = logging.getLogger(__name__)


def new_request_id() -> str:
    """Correlation token derived from the current time."""
    return base64.b64encode(datetime.now(timezone.utc).isoformat().encode()).decode()


async def _body_for_log(request: Request) -> str:
    # Only JSON bodies are logged; uploads would flood the log
    if "application/json" not in request.headers.get("content-type", ""):
        return "{}"
    body = await request.body()
    return body.decode("utf-8", errors="replace") if body else "{}"


class LoggingRoute(APIRoute):
    def get_route_handler(self) -> Callable:
        original_route_handler = super().get_route_handler()

        async def logging_route_handler(request: Request) -> Response:
            request_id = new_request_id()
            start_time = time.perf_counter()
            logger.info(f"({request_id}) {request.method} {request.url.path} {await _body_for_log(request)}")

            try:
                response = await original_route_handler(request)
            except Exception as exc:
                elapsed_ms = int((time.perf_counter() - start_time) * 1000)
                if isinstance(exc, HTTPException):
                    logger.error(f"({request_id}) {exc.status_code} {exc.detail} {elapsed_ms}ms")
                else:
                    logger.error(f"({request_id}) {exc!r} {elapsed_ms}ms")
                raise

            elapsed_ms = int((time.perf_counter() - start_time) * 1000)
            body = getattr(response, "body", b"")
            logger.info(
                f"({request_id}) {response.status_code} "
                f"{body.decode('utf-8', errors='replace') if body else ''} {elapsed_ms}ms"
            )
            return response

        return logging_route_handler
