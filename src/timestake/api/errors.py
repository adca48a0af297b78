from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from timestake.runtime.errors import PoolError


@dataclass(eq=False)
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def forbidden(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(403, code, message, details or {})

    @staticmethod
    def not_found(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(404, code, message, details or {})

    @staticmethod
    def not_ready(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(503, code, message, details or {})


_POOL_ERROR_STATUS: Dict[str, int] = {
    "unauthorized": 403,
    "no_stake": 404,
    "already_funded": 409,
    "not_started": 409,
    "unfunded": 409,
    "window_closed": 409,
    "insufficient_headroom": 409,
    "transfer_failed": 409,
    "reentrant_call": 409,
}


def status_for_pool_error(e: PoolError) -> int:
    return _POOL_ERROR_STATUS.get(e.code, 400)


def error_body(code: str, reason: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    return {"ok": False, "error": {"code": code, "reason": reason, "details": dict(details or {})}}
