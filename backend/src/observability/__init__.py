"""Observability: structured logging, request IDs and health checks."""

from .logging_config import configure_logging, get_logger
from .request_id import request_id_var, get_request_id, set_request_id, generate_request_id
from .health import HealthStatus, ComponentHealth
from .middleware import RequestIDMiddleware

__all__ = [
    "configure_logging",
    "get_logger",
    "request_id_var",
    "get_request_id",
    "set_request_id",
    "generate_request_id",
    "HealthStatus",
    "ComponentHealth",
    "RequestIDMiddleware",
]
