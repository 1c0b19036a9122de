"""Access log and request correlation.

Every request gets a request id: the caller's X-Request-ID when it looks like
one of ours (a proxy or a retrying client passing it back), a fresh one
otherwise. The id is put on request.state for the ApiResponse envelope and
echoed in the X-Request-ID response header.

Log format:
    INFO [POST] /api/v1/quotes/123/accept → 201 (23ms) req_a1b2c3d4e5f6
"""

import logging
import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("qm.request")

_REQUEST_ID = re.compile(r"^req_[0-9a-f]{12}$")


def _request_id_for(request: Request) -> str:
    inbound = request.headers.get("X-Request-ID", "")
    if _REQUEST_ID.match(inbound):
        return inbound
    return f"req_{uuid.uuid4().hex[:12]}"


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request.state.request_id = _request_id_for(request)

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        logger.log(
            logging.ERROR if response.status_code >= 500 else logging.INFO,
            "[%s] %s → %d (%.0fms) %s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request.state.request_id,
        )
        response.headers["X-Request-ID"] = request.state.request_id
        return response
