# src/timestake/ledger/normalize.py
from __future__ import annotations

"""Conversion between native asset precision and the accounting precision.

normalize(d, a)   = a * 10**(18 - d)
denormalize(d, s) = s // 10**(18 - d)

Denormalizing truncates: sub-unit dust is dropped, never re-credited.
"""

from typing import List, Sequence

from timestake.ledger.constants import ACCOUNTING_DECIMALS
from timestake.ledger.safe_math import checked_div, checked_mul, require_uint
from timestake.runtime.errors import PrecisionUnsupportedError


def check_decimals(decimals: int) -> int:
    """Return `decimals` as int, failing fast for precisions we cannot represent."""
    if isinstance(decimals, bool) or not isinstance(decimals, int):
        raise PrecisionUnsupportedError("decimals_not_int", {"decimals": repr(decimals)})
    if decimals < 0 or decimals > ACCOUNTING_DECIMALS:
        raise PrecisionUnsupportedError(
            "decimals_out_of_range",
            {"decimals": decimals, "max": ACCOUNTING_DECIMALS},
        )
    return decimals


def scale_factor(decimals: int) -> int:
    return 10 ** (ACCOUNTING_DECIMALS - check_decimals(decimals))


def normalize(decimals: int, raw_amount: int) -> int:
    return checked_mul(require_uint(raw_amount, name="raw_amount"), scale_factor(decimals))


def denormalize(decimals: int, scaled_amount: int) -> int:
    return checked_div(require_uint(scaled_amount, name="scaled_amount"), scale_factor(decimals))


def normalize_all(decimals: Sequence[int], raw_amounts: Sequence[int]) -> List[int]:
    return [normalize(d, a) for d, a in zip(decimals, raw_amounts)]


def denormalize_all(decimals: Sequence[int], scaled_amounts: Sequence[int]) -> List[int]:
    return [denormalize(d, s) for d, s in zip(decimals, scaled_amounts)]


__all__ = [
    "check_decimals",
    "scale_factor",
    "normalize",
    "denormalize",
    "normalize_all",
    "denormalize_all",
]
