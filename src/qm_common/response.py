"""Response envelope shared by every endpoint.

    {"code": 0, "message": "success", "data": {...}, "timestamp": "...", "request_id": "..."}

code 0 is success; any other value is an AppError code and data is null.
request_id echoes the X-Request-ID assigned by RequestLogMiddleware so a
client report of "option no longer available" can be matched to the log line.
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from pydantic import BaseModel, Field


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    request_id: str = Field(default_factory=lambda: f"req_{uuid.uuid4().hex[:12]}")


def _tag(resp: ApiResponse, request: Request | None) -> ApiResponse:
    if request is not None:
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def success_response(data: Any = None, request: Request | None = None) -> ApiResponse:
    return _tag(ApiResponse(code=0, message="success", data=data), request)


def error_response(code: int, message: str, request: Request | None = None) -> ApiResponse:
    return _tag(ApiResponse(code=code, message=message, data=None), request)
