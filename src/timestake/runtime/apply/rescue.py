# src/timestake/runtime/apply/rescue.py
from __future__ import annotations

"""Bounded emergency withdrawal of assets held by the pool.

Headroom per asset:
  - stakeable asset: custody - total staked (native units)
  - reward asset:    custody - (total_reward - total_claimed) while anyone
                     is still staked; unbounded once the pool is empty
  - anything else:   unbounded
"""

from typing import Any, Dict, Optional

from timestake.ledger.normalize import denormalize
from timestake.ledger.state import pool_of, reward_asset_id, stake_asset_ids, stake_decimals
from timestake.runtime.apply.common import event, payload_str, payload_uint, require_admin, transfer_out
from timestake.runtime.errors import InsufficientHeadroomError, InvalidTxError
from timestake.runtime.tx_types import RESCUE, ApplyContext, TxEnvelope

Json = Dict[str, Any]


def rescue_headroom(state: Json, asset_id: str, custody_balance: int) -> Optional[int]:
    """Amount of `asset_id` an administrator may take out; None means unbounded."""
    pool = pool_of(state)
    custody = int(custody_balance)

    stake_ids = stake_asset_ids(state)
    if asset_id in stake_ids:
        i = stake_ids.index(asset_id)
        owed = denormalize(stake_decimals(state)[i], int(pool["total_stake_by_asset"][i]))
        return max(custody - owed, 0)

    if asset_id == reward_asset_id(state):
        if int(pool.get("participant_count") or 0) == 0:
            return None
        owed = int(pool.get("total_reward_amount") or 0) - int(pool.get("total_claimed_reward") or 0)
        return max(custody - owed, 0)

    return None


def _apply_rescue(state: Json, env: TxEnvelope, ctx: ApplyContext) -> Json:
    require_admin(env, ctx)

    asset_id = payload_str(env, "asset_id")
    destination = payload_str(env, "destination")
    amount = payload_uint(env, "amount")

    if asset_id not in ctx.custody:
        raise InvalidTxError("unknown_asset", {"asset_id": asset_id})

    headroom = rescue_headroom(state, asset_id, ctx.custody[asset_id])
    if headroom is not None and amount > headroom:
        raise InsufficientHeadroomError(
            "amount_exceeds_headroom",
            {"asset_id": asset_id, "amount": amount, "headroom": headroom},
        )

    return {
        "applied": RESCUE,
        "asset_id": asset_id,
        "amount": amount,
        "headroom": headroom,
        "transfers": [transfer_out(asset_id, destination, amount)],
        "events": [event("Rescued", asset_id=asset_id, destination=destination, amount=amount)],
    }


def apply_rescue(state: Json, env: TxEnvelope, ctx: ApplyContext) -> Optional[Json]:
    if str(env.tx_type or "").strip().upper() != RESCUE:
        return None
    return _apply_rescue(state, env, ctx)


__all__ = ["apply_rescue", "rescue_headroom"]
