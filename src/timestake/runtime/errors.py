# src/timestake/runtime/errors.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(eq=False)
class PoolError(Exception):
    """Canonical error type for staking pool operations.

    Every PoolError aborts the operation it is raised in; the executor never
    commits a working state that produced one.
    """

    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        if self.details is None:
            return f"{self.code}:{self.reason}"
        return f"{self.code}:{self.reason}:{self.details}"

    def to_json(self) -> Dict[str, Any]:
        return {"code": self.code, "reason": self.reason, "details": dict(self.details or {})}


def _coded_init(code: str):
    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None) -> None:
        PoolError.__init__(self, code, reason, details)

    return __init__


class AlreadyFundedError(PoolError):
    __init__ = _coded_init("already_funded")


class InvalidWindowError(PoolError):
    __init__ = _coded_init("invalid_window")


class UnauthorizedError(PoolError):
    __init__ = _coded_init("unauthorized")


class EmptyStakeError(PoolError):
    __init__ = _coded_init("empty_stake")


class NotStartedError(PoolError):
    __init__ = _coded_init("not_started")


class UnfundedError(PoolError):
    __init__ = _coded_init("unfunded")


class WindowClosedError(PoolError):
    __init__ = _coded_init("window_closed")


class NoStakeError(PoolError):
    __init__ = _coded_init("no_stake")


class InsufficientHeadroomError(PoolError):
    __init__ = _coded_init("insufficient_headroom")


class ArithmeticOverflowError(PoolError):
    __init__ = _coded_init("arithmetic_overflow")


class TransferFailedError(PoolError):
    __init__ = _coded_init("transfer_failed")


class PrecisionUnsupportedError(PoolError):
    __init__ = _coded_init("precision_unsupported")


class ReentrantCallError(PoolError):
    __init__ = _coded_init("reentrant_call")


class InvalidTxError(PoolError):
    __init__ = _coded_init("invalid_tx")


__all__ = [
    "PoolError",
    "AlreadyFundedError",
    "InvalidWindowError",
    "UnauthorizedError",
    "EmptyStakeError",
    "NotStartedError",
    "UnfundedError",
    "WindowClosedError",
    "NoStakeError",
    "InsufficientHeadroomError",
    "ArithmeticOverflowError",
    "TransferFailedError",
    "PrecisionUnsupportedError",
    "ReentrantCallError",
    "InvalidTxError",
]
