"""HTTP middleware: request IDs and access logging."""

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from .logging_config import get_logger
from .request_id import normalize_request_id, set_request_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, log start and completion, echo the ID in the response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = normalize_request_id(request.headers.get(REQUEST_ID_HEADER))
        set_request_id(request_id)

        start_time = time.perf_counter()
        logger.info(
            f"{request.method} {request.url.path}",
            extra={
                "method": request.method,
                "path": request.url.path,
                "client_ip": request.client.host if request.client else None,
            }
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {e}",
                extra={"error_type": type(e).__name__, "duration_ms": round(duration_ms, 2)},
                exc_info=True
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Request completed: {response.status_code}",
            extra={"status_code": response.status_code, "duration_ms": round(duration_ms, 2)}
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
