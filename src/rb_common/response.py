"""Unified API response envelope.

Success:
{
    "success": true,
    "data": { ... },
    "timestamp": "...",
    "requestId": "..."
}

Error:
{
    "success": false,
    "error": {"code": "NOT_FOUND", "message": "...", "details": [...]},
    "timestamp": "...",
    "requestId": "..."
}
"""

import uuid
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from src.rb_common.schemas import CamelModel


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(CamelModel):
    success: bool = True
    data: Any = None
    timestamp: str = Field(default_factory=_now_iso)
    request_id: str = Field(default_factory=_new_request_id)


class ErrorBody(BaseModel):
    code: str
    message: str
    details: list[dict[str, Any]] | None = None


class ErrorResponse(CamelModel):
    success: bool = False
    error: ErrorBody
    timestamp: str = Field(default_factory=_now_iso)
    request_id: str = Field(default_factory=_new_request_id)


def success_response(data: Any = None, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(data={} if data is None else data)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(
    code: str,
    message: str,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    resp = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    if request_id:
        resp.request_id = request_id
    return resp


def error_payload(resp: ErrorResponse) -> dict[str, Any]:
    """Serialize an error envelope, dropping `details` when there are none."""
    body = resp.model_dump(by_alias=True)
    if body["error"].get("details") is None:
        body["error"].pop("details")
    return body
