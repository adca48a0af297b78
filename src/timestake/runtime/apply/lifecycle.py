# src/timestake/runtime/apply/lifecycle.py
from __future__ import annotations

"""
Pool lifecycle apply semantics.

This module implements the state transitions for:
- one-time pool funding
- staking (with first-stake anchoring of the reward window)
- withdraw (full exit: principal + reward)
- claim (reward payout, principal restaked with a fresh snapshot)

Every applier advances the reward index before touching a position. Appliers
only mutate the working state they are given and describe asset movements in
the receipt; the executor performs the transfers and commits.
"""

from typing import Any, Dict, List, Optional

from timestake.ledger.accrual import advance
from timestake.ledger.normalize import denormalize_all, normalize_all
from timestake.ledger.positions import deposit_and_snapshot, settle
from timestake.ledger.safe_math import checked_add, checked_sub
from timestake.ledger.state import (
    ensure_position,
    get_position,
    pool_of,
    position_total,
    reward_asset_id,
    stake_asset_ids,
    stake_decimals,
)
from timestake.runtime.apply.common import (
    event,
    nonzero_transfers,
    payload_amounts,
    payload_uint,
    require_admin,
    require_ts,
    transfer_in,
    transfer_out,
)
from timestake.runtime.errors import (
    AlreadyFundedError,
    EmptyStakeError,
    InvalidWindowError,
    NotStartedError,
    UnfundedError,
    WindowClosedError,
)
from timestake.runtime.tx_types import CLAIM, POOL_FUND, STAKE, WITHDRAW, ApplyContext, TxEnvelope

Json = Dict[str, Any]


def _pay_reward(state: Json, participant: str, reward: int) -> List[Json]:
    if reward <= 0:
        return []
    pool = pool_of(state)
    pos = ensure_position(state, participant)
    pos["claimed_total"] = checked_add(int(pos.get("claimed_total") or 0), reward)
    pool["total_claimed_reward"] = checked_add(int(pool.get("total_claimed_reward") or 0), reward)
    return [transfer_out(reward_asset_id(state), participant, reward)]


def _apply_pool_fund(state: Json, env: TxEnvelope, ctx: ApplyContext) -> Json:
    require_admin(env, ctx)
    pool = pool_of(state)
    if pool.get("start_time") is not None:
        raise AlreadyFundedError("pool_already_funded", {"start_time": pool.get("start_time")})

    now = require_ts(env)
    total_reward = payload_uint(env, "total_reward")
    start_time = payload_uint(env, "start_time")
    end_time = payload_uint(env, "end_time")

    if start_time < now:
        raise InvalidWindowError("start_in_past", {"start_time": start_time, "now": now})
    if end_time <= start_time:
        raise InvalidWindowError("end_not_after_start", {"start_time": start_time, "end_time": end_time})

    pool["total_reward_amount"] = total_reward
    pool["start_time"] = start_time
    pool["end_time"] = end_time

    return {
        "applied": POOL_FUND,
        "transfers": [transfer_in(reward_asset_id(state), env.signer, total_reward)],
        "events": [event("PoolFunded", amount=total_reward, start_time=start_time, end_time=end_time)],
    }


def _apply_stake(state: Json, env: TxEnvelope, ctx: ApplyContext) -> Json:
    amounts = payload_amounts(env)
    if not any(a > 0 for a in amounts):
        raise EmptyStakeError("all_amounts_zero", {"amounts": amounts})

    now = require_ts(env)
    pool = pool_of(state)
    start_time = pool.get("start_time")
    if start_time is None:
        raise UnfundedError("pool_not_funded", {})
    if now < int(start_time):
        raise NotStartedError("pool_not_started", {"start_time": start_time, "now": now})

    reward_id = reward_asset_id(state)
    if int(ctx.custody.get(reward_id, 0)) <= 0:
        raise UnfundedError("no_reward_in_custody", {"asset_id": reward_id})

    if pool.get("first_stake_time") is None:
        pool["first_stake_time"] = now
    elif now >= int(pool["end_time"]):
        raise WindowClosedError("pool_window_closed", {"end_time": pool["end_time"], "now": now})

    normalized = normalize_all(stake_decimals(state), amounts)

    participant = env.signer
    if position_total(get_position(state, participant)) == 0:
        pool["participant_count"] = checked_add(int(pool.get("participant_count") or 0), 1)

    advance(state, now)
    deposit_and_snapshot(state, participant, normalized)

    return {
        "applied": STAKE,
        "participant": participant,
        "transfers": nonzero_transfers("in", stake_asset_ids(state), participant, amounts),
        "events": [event("Staked", participant=participant, amounts=amounts)],
    }


def _apply_withdraw(state: Json, env: TxEnvelope, ctx: ApplyContext) -> Json:
    now = require_ts(env)
    participant = env.signer

    advance(state, now)
    prior, reward = settle(state, participant)

    pool = pool_of(state)
    pool["participant_count"] = checked_sub(int(pool.get("participant_count") or 0), 1)

    amounts = denormalize_all(stake_decimals(state), prior)
    transfers = nonzero_transfers("out", stake_asset_ids(state), participant, amounts)
    transfers.extend(_pay_reward(state, participant, reward))

    events = [event("Withdrawn", participant=participant, amounts=amounts)]
    if reward > 0:
        events.append(event("RewardPaid", participant=participant, reward=reward))

    return {
        "applied": WITHDRAW,
        "participant": participant,
        "amounts": amounts,
        "reward": reward,
        "transfers": transfers,
        "events": events,
    }


def _apply_claim(state: Json, env: TxEnvelope, ctx: ApplyContext) -> Json:
    now = require_ts(env)
    participant = env.signer

    advance(state, now)
    prior, reward = settle(state, participant)
    transfers = _pay_reward(state, participant, reward)
    deposit_and_snapshot(state, participant, prior)

    events = []
    if reward > 0:
        events.append(event("RewardPaid", participant=participant, reward=reward))

    return {
        "applied": CLAIM,
        "participant": participant,
        "reward": reward,
        "transfers": transfers,
        "events": events,
    }


LIFECYCLE_TX_TYPES = {POOL_FUND, STAKE, WITHDRAW, CLAIM}


def apply_lifecycle(state: Json, env: TxEnvelope, ctx: ApplyContext) -> Optional[Json]:
    """
    Returns:
      - dict: applied receipt
      - None: tx_type not in the lifecycle domain
    """
    t = str(env.tx_type or "").strip().upper()
    if t not in LIFECYCLE_TX_TYPES:
        return None

    if t == POOL_FUND:
        return _apply_pool_fund(state, env, ctx)

    if t == STAKE:
        return _apply_stake(state, env, ctx)

    if t == WITHDRAW:
        return _apply_withdraw(state, env, ctx)

    if t == CLAIM:
        return _apply_claim(state, env, ctx)

    return None


__all__ = ["apply_lifecycle", "LIFECYCLE_TX_TYPES"]
