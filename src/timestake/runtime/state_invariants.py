# src/timestake/runtime/state_invariants.py
from __future__ import annotations

"""State shape checks and ledger invariants.

`check_state` is cheap and runs before every apply. `verify_invariants` walks
every position and is meant for tests and non-production executors:

  - per asset, the pool total equals the sum of position balances
  - total claimed reward never exceeds the funded reward
  - a position with no stake carries no unclaimed reward
"""

from collections.abc import MutableMapping
from typing import Any, Dict, List

from timestake.ledger.constants import STAKE_ASSET_COUNT

Json = Dict[str, Any]


def check_state(st: Any) -> Json:
    """Ensure `st` is a pool state dict with its core containers.

    Raises:
        TypeError: if st or one of its roots has the wrong type
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    for key in ("assets", "pool", "positions"):
        if not isinstance(st.get(key), dict):
            raise TypeError(f"state[{key!r}] must be dict, got {type(st.get(key))}")

    totals = st["pool"].get("total_stake_by_asset")
    if not isinstance(totals, list) or len(totals) != STAKE_ASSET_COUNT:
        raise TypeError("state['pool']['total_stake_by_asset'] must be a list of three ints")

    return st  # type: ignore[return-value]


def invariant_violations(st: Json) -> List[str]:
    out: List[str] = []
    pool = st["pool"]
    sums = [0] * STAKE_ASSET_COUNT
    for participant, pos in st["positions"].items():
        bal = [int(v) for v in pos.get("staked_by_asset", [])]
        if any(v < 0 for v in bal):
            out.append(f"negative_balance:{participant}")
        for i in range(STAKE_ASSET_COUNT):
            sums[i] += bal[i]
        if sum(bal) == 0 and int(pos.get("unclaimed_carry") or 0) != 0:
            out.append(f"carry_without_stake:{participant}")

    totals = [int(v) for v in pool["total_stake_by_asset"]]
    if totals != sums:
        out.append(f"total_stake_mismatch:{totals}!={sums}")

    if int(pool.get("total_claimed_reward") or 0) > int(pool.get("total_reward_amount") or 0):
        out.append("claimed_exceeds_reward")
    return out


def verify_invariants(st: Json) -> Json:
    """Raise AssertionError listing every violated invariant."""
    bad = invariant_violations(check_state(st))
    if bad:
        raise AssertionError("state_invariant_violation: " + ", ".join(bad))
    return st


__all__ = ["check_state", "invariant_violations", "verify_invariants"]
