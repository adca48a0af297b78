# src/timestake/ledger/positions.py
from __future__ import annotations

"""Per-participant settlement against the global reward index.

`settle` is the only place reward is computed. Every balance change goes
through `deposit_and_snapshot`, which settles first when the participant
already holds stake, so reward is always measured from the last snapshot and
nothing accrued is dropped or counted twice.
"""

from typing import Any, Dict, List, Sequence, Tuple

from timestake.ledger.constants import SCALE, STAKE_ASSET_COUNT
from timestake.ledger.safe_math import checked_add, checked_div, checked_mul, checked_sub, require_uint
from timestake.ledger.state import ensure_position, get_position, pool_of, position_total
from timestake.runtime.errors import NoStakeError

Json = Dict[str, Any]


def earned(state: Json, participant: str) -> int:
    """Reward owed to `participant` at the current index, without settling."""
    pos = get_position(state, participant)
    if pos is None:
        return 0
    index = int(pool_of(state).get("global_reward_index") or 0)
    delta = checked_sub(index, int(pos.get("index_snapshot") or 0))
    accrued = checked_div(checked_mul(position_total(pos), delta), SCALE)
    return checked_add(accrued, int(pos.get("unclaimed_carry") or 0))


def settle(state: Json, participant: str) -> Tuple[List[int], int]:
    """Compute owed reward and strip the participant's stake out of the pool.

    Returns (prior normalized balances, reward). The caller decides whether
    the balances are paid out or credited back.
    """
    pos = get_position(state, participant)
    if pos is None or position_total(pos) == 0:
        raise NoStakeError("participant_has_no_stake", {"participant": participant})

    reward = earned(state, participant)

    pool = pool_of(state)
    totals = pool["total_stake_by_asset"]
    prior = [int(v) for v in pos["staked_by_asset"]]
    for i in range(STAKE_ASSET_COUNT):
        totals[i] = checked_sub(int(totals[i]), prior[i])

    pos["staked_by_asset"] = [0] * STAKE_ASSET_COUNT
    pos["unclaimed_carry"] = 0
    return prior, reward


def deposit_and_snapshot(state: Json, participant: str, new_amounts: Sequence[int]) -> Json:
    """Credit normalized `new_amounts` and reset the participant's snapshot.

    Existing stake is settled first; its reward is held in `unclaimed_carry`
    and its balances are credited back together with the new amounts.
    """
    if len(new_amounts) != STAKE_ASSET_COUNT:
        raise ValueError(f"expected {STAKE_ASSET_COUNT} amounts, got {len(new_amounts)}")
    amounts = [require_uint(a, name="amount") for a in new_amounts]

    add_back = [0] * STAKE_ASSET_COUNT
    carry = 0
    if position_total(get_position(state, participant)) > 0:
        add_back, carry = settle(state, participant)

    pos = ensure_position(state, participant)
    pool = pool_of(state)
    totals = pool["total_stake_by_asset"]

    staked = pos["staked_by_asset"]
    for i in range(STAKE_ASSET_COUNT):
        credit = checked_add(amounts[i], add_back[i])
        staked[i] = checked_add(int(staked[i]), credit)
        totals[i] = checked_add(int(totals[i]), credit)

    pos["unclaimed_carry"] = carry
    pos["index_snapshot"] = int(pool.get("global_reward_index") or 0)
    return pos


__all__ = ["earned", "settle", "deposit_and_snapshot"]
