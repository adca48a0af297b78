# src/timestake/ledger/safe_math.py
from __future__ import annotations

"""Checked unsigned integer arithmetic.

Python ints never wrap, so overflow is detected by range: every result must
stay within [0, UINT256_MAX]. Violations raise ArithmeticOverflowError and
abort the surrounding operation.
"""

from typing import Any

from timestake.ledger.constants import UINT256_MAX
from timestake.runtime.errors import ArithmeticOverflowError


def require_uint(v: Any, *, name: str = "value") -> int:
    if isinstance(v, bool) or not isinstance(v, int):
        raise ArithmeticOverflowError("not_an_integer", {"name": name, "type": type(v).__name__})
    if v < 0 or v > UINT256_MAX:
        raise ArithmeticOverflowError("out_of_range", {"name": name, "value": v})
    return v


def checked_add(a: int, b: int) -> int:
    r = int(a) + int(b)
    if r > UINT256_MAX:
        raise ArithmeticOverflowError("add_overflow", {"a": a, "b": b})
    return r


def checked_sub(a: int, b: int) -> int:
    r = int(a) - int(b)
    if r < 0:
        raise ArithmeticOverflowError("sub_underflow", {"a": a, "b": b})
    return r


def checked_mul(a: int, b: int) -> int:
    r = int(a) * int(b)
    if r > UINT256_MAX:
        raise ArithmeticOverflowError("mul_overflow", {"a": a, "b": b})
    return r


def checked_div(a: int, b: int) -> int:
    """Floor division of non-negative operands."""
    if int(b) == 0:
        raise ArithmeticOverflowError("division_by_zero", {"a": a})
    return int(a) // int(b)


__all__ = ["require_uint", "checked_add", "checked_sub", "checked_mul", "checked_div"]
