"""Request ID propagation via context variables.

The ID is taken from the incoming X-Request-ID header (or generated) by
RequestIDMiddleware and read by the logging filter.
"""

import uuid
from contextvars import ContextVar
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

MAX_REQUEST_ID_LENGTH = 128


def generate_request_id() -> str:
    return str(uuid.uuid4())


def normalize_request_id(value: Optional[str]) -> str:
    """Use a client-supplied ID when it is printable and short, else generate one."""
    if value and len(value) <= MAX_REQUEST_ID_LENGTH and value.isprintable():
        return value
    return generate_request_id()


def get_request_id() -> str:
    """Current request ID, or "no-request-id" outside a request."""
    return request_id_var.get() or "no-request-id"


def set_request_id(request_id: Optional[str]) -> None:
    request_id_var.set(request_id)
