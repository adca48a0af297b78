# src/timestake/ledger/accrual.py
from __future__ import annotations

"""Lazy global reward index.

The index is advanced at the start of every mutating call instead of on a
timer. One advance costs O(1) regardless of elapsed time or participant count:

    rate   = total_reward // (end_time - first_stake_time)
    value  = rate * (min(now, end_time) - last_accrual_time)
    index += value * SCALE // total_stake

Nothing accrues before the first stake, while the pool holds no stake, or past
end_time. The rate is recomputed from stored values on every call.
"""

from typing import Any, Dict

from timestake.ledger.constants import SCALE
from timestake.ledger.safe_math import checked_add, checked_div, checked_mul, checked_sub
from timestake.ledger.state import pool_of, pool_total_stake

Json = Dict[str, Any]


def reward_rate(pool: Json) -> int:
    """Reward units released per second over the realized window."""
    window = checked_sub(int(pool["end_time"]), int(pool["first_stake_time"]))
    return checked_div(int(pool["total_reward_amount"]), window)


def advance(state: Json, now: int) -> int:
    """Advance the global reward index to `now` and return the new index."""
    pool = pool_of(state)

    if pool.get("last_accrual_time") is None:
        pool["last_accrual_time"] = pool.get("first_stake_time")

    index = int(pool.get("global_reward_index") or 0)
    last = pool.get("last_accrual_time")
    end = pool.get("end_time")
    total_stake = pool_total_stake(pool)

    if last is None or end is None:
        return index
    if total_stake == 0 or int(last) >= int(end):
        return index

    now_i = int(now)
    elapsed = checked_sub(now_i, int(last))
    rate = reward_rate(pool)

    if now_i < int(end):
        value = checked_mul(elapsed, rate)
    else:
        # Stop exactly at end_time even when called later.
        value = checked_mul(checked_sub(elapsed, checked_sub(now_i, int(end))), rate)

    index = checked_add(index, checked_div(checked_mul(value, SCALE), total_stake))
    pool["global_reward_index"] = index
    pool["last_accrual_time"] = now_i
    return index


__all__ = ["advance", "reward_rate"]
