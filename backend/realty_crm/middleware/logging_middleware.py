"""
Logging Middleware

Binds the request id to the logging context and logs one start and one end
record per request. The id comes from an incoming X-Request-ID header when
the caller sends one and is always echoed back on the response.
"""

import time
import uuid
from typing import Any, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..logging_config import get_logger, request_id_var

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
UNLOGGED_PATHS = frozenset({"/health"})


def _request_fields(request: Request, request_id: str) -> Dict[str, Any]:
    return {
        "method": request.method,
        "path": request.url.path,
        "client": request.client.host if request.client else None,
        "request_id": request_id,
    }


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class LoggingMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        fields = _request_fields(request, request_id)
        # Load balancer probes and CORS preflights
        quiet = request.url.path in UNLOGGED_PATHS or request.method == "OPTIONS"

        if not quiet:
            logger.info("Request started", extra={"action": "request_start", "extra_data": fields})
        try:
            response = await call_next(request)
            if not quiet:
                logger.info(
                    "Request completed",
                    extra={
                        "action": "request_end",
                        "extra_data": {
                            **fields,
                            "status_code": response.status_code,
                            "duration_ms": _elapsed_ms(started),
                        },
                    },
                )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        except Exception as e:
            logger.error(
                f"Request failed: {e}",
                extra={
                    "action": "request_error",
                    "extra_data": {**fields, "error": str(e), "duration_ms": _elapsed_ms(started)},
                },
                exc_info=True,
            )
            raise
        finally:
            request_id_var.reset(token)
