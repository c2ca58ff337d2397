"""Request ID middleware.

Tags every request with an ID, taken from the X-Request-ID header or
generated, so log lines from the limiter and auth layers can be tied to
one request. The ID is echoed in the response header.
"""

import time
import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from tollgate.app.core.logging import get_log_context, get_logger

logger = get_logger(__name__)

MAX_REQUEST_ID_LENGTH = 128


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Middleware to add a request ID to all requests.

    The request ID is:
    1. Extracted from the X-Request-ID header if present
    2. Generated as UUID if not present (or unreasonably long)
    3. Added to request.state for access in endpoints and middleware
    4. Returned in the X-Request-ID response header
    """

    def __init__(self, app, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get(self.header_name)
        if not request_id or len(request_id) > MAX_REQUEST_ID_LENGTH:
            request_id = str(uuid.uuid4())

        request.state.request_id = request_id

        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers[self.header_name] = request_id

        logger.debug(
            "Request completed",
            extra=get_log_context(
                request_id=request_id,
                path=request.url.path,
                method=request.method,
                status_code=response.status_code,
                duration_ms=round(elapsed_ms, 2),
            ),
        )
        return response


def get_request_id(request: Request) -> str | None:
    """Get request ID from request state, None outside RequestIdMiddleware."""
    return getattr(request.state, "request_id", None)
