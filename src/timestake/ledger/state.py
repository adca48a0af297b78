# src/timestake/ledger/state.py
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from timestake.ledger.constants import STAKE_ASSET_COUNT, STATE_VERSION
from timestake.ledger.normalize import check_decimals, denormalize_all
from timestake.runtime.errors import InvalidTxError

Json = Dict[str, Any]


def _as_int(x: Any, default: int = 0) -> int:
    try:
        return int(x)
    except Exception:
        return int(default)


def _opt_int(x: Any) -> Optional[int]:
    if x is None:
        return None
    return _as_int(x)


def initial_state(
    *,
    pool_id: str,
    stake_assets: Sequence[Tuple[str, int]],
    reward_asset: Tuple[str, int],
) -> Json:
    """Build an unfunded pool state.

    stake_assets: exactly three (asset_id, decimals) pairs, in slot order.
    reward_asset: (asset_id, decimals).
    """
    if len(stake_assets) != STAKE_ASSET_COUNT:
        raise InvalidTxError("bad_stake_assets", {"expected": STAKE_ASSET_COUNT, "got": len(stake_assets)})
    ids = [str(a).strip() for a, _ in stake_assets]
    if any(not i for i in ids) or len(set(ids)) != STAKE_ASSET_COUNT:
        raise InvalidTxError("bad_stake_assets", {"asset_ids": ids})

    return {
        "state_version": STATE_VERSION,
        "pool_id": str(pool_id),
        "assets": {
            "stake": [{"asset_id": i, "decimals": check_decimals(d)} for i, (_, d) in zip(ids, stake_assets)],
            "reward": {"asset_id": str(reward_asset[0]), "decimals": check_decimals(reward_asset[1])},
        },
        "pool": {
            "total_reward_amount": 0,
            "start_time": None,
            "end_time": None,
            "first_stake_time": None,
            "last_accrual_time": None,
            "total_stake_by_asset": [0] * STAKE_ASSET_COUNT,
            "global_reward_index": 0,
            "participant_count": 0,
            "total_claimed_reward": 0,
        },
        "positions": {},
    }


def pool_of(state: Json) -> Json:
    pool = state.get("pool")
    if not isinstance(pool, dict):
        raise TypeError(f"state['pool'] must be dict, got {type(pool)}")
    return pool


def positions_of(state: Json) -> Json:
    pos = state.get("positions")
    if pos is None:
        pos = {}
        state["positions"] = pos
    elif not isinstance(pos, dict):
        raise TypeError(f"state['positions'] must be dict, got {type(pos)}")
    return pos


def get_position(state: Json, participant: str) -> Optional[Json]:
    p = positions_of(state).get(participant)
    return p if isinstance(p, dict) else None


def ensure_position(state: Json, participant: str) -> Json:
    positions = positions_of(state)
    p = positions.get(participant)
    if not isinstance(p, dict):
        p = {
            "staked_by_asset": [0] * STAKE_ASSET_COUNT,
            "index_snapshot": 0,
            "unclaimed_carry": 0,
            "claimed_total": 0,
        }
        positions[participant] = p
    return p


def stake_asset_ids(state: Json) -> List[str]:
    return [str(a["asset_id"]) for a in state["assets"]["stake"]]


def stake_decimals(state: Json) -> List[int]:
    return [int(a["decimals"]) for a in state["assets"]["stake"]]


def reward_asset_id(state: Json) -> str:
    return str(state["assets"]["reward"]["asset_id"])


def position_total(position: Optional[Json]) -> int:
    if not position:
        return 0
    return sum(_as_int(v) for v in position.get("staked_by_asset", []))


def pool_total_stake(pool: Json) -> int:
    return sum(_as_int(v) for v in pool.get("total_stake_by_asset", []))


@dataclass(frozen=True, slots=True)
class PoolView:
    """
    Immutable read-only view of a pool, with stakes reported in native units.
    """

    pool_id: str = ""
    stake_asset_ids: Tuple[str, ...] = ()
    reward_asset_id: str = ""
    total_reward_amount: int = 0
    start_time: Optional[int] = None
    end_time: Optional[int] = None
    first_stake_time: Optional[int] = None
    last_accrual_time: Optional[int] = None
    global_reward_index: int = 0
    participant_count: int = 0
    total_claimed_reward: int = 0
    total_stake_by_asset: Tuple[int, ...] = ()

    @classmethod
    def from_state(cls, state: Json) -> "PoolView":
        pool = pool_of(state)
        return cls(
            pool_id=str(state.get("pool_id", "")),
            stake_asset_ids=tuple(stake_asset_ids(state)),
            reward_asset_id=reward_asset_id(state),
            total_reward_amount=_as_int(pool.get("total_reward_amount")),
            start_time=_opt_int(pool.get("start_time")),
            end_time=_opt_int(pool.get("end_time")),
            first_stake_time=_opt_int(pool.get("first_stake_time")),
            last_accrual_time=_opt_int(pool.get("last_accrual_time")),
            global_reward_index=_as_int(pool.get("global_reward_index")),
            participant_count=_as_int(pool.get("participant_count")),
            total_claimed_reward=_as_int(pool.get("total_claimed_reward")),
            total_stake_by_asset=tuple(denormalize_all(stake_decimals(state), pool.get("total_stake_by_asset", []))),
        )

    def to_json(self) -> Json:
        return {
            "pool_id": self.pool_id,
            "stake_asset_ids": list(self.stake_asset_ids),
            "reward_asset_id": self.reward_asset_id,
            "total_reward_amount": self.total_reward_amount,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "first_stake_time": self.first_stake_time,
            "last_accrual_time": self.last_accrual_time,
            "global_reward_index": self.global_reward_index,
            "participant_count": self.participant_count,
            "total_claimed_reward": self.total_claimed_reward,
            "total_stake_by_asset": list(self.total_stake_by_asset),
        }


@dataclass(frozen=True, slots=True)
class PositionView:
    participant: str
    staked_by_asset: Tuple[int, ...] = ()
    index_snapshot: int = 0
    unclaimed_carry: int = 0
    claimed_total: int = 0

    @classmethod
    def from_state(cls, state: Json, participant: str) -> "PositionView":
        p = get_position(state, participant)
        if p is None:
            return cls(participant=participant, staked_by_asset=(0,) * STAKE_ASSET_COUNT)
        return cls(
            participant=participant,
            staked_by_asset=tuple(denormalize_all(stake_decimals(state), p.get("staked_by_asset", []))),
            index_snapshot=_as_int(p.get("index_snapshot")),
            unclaimed_carry=_as_int(p.get("unclaimed_carry")),
            claimed_total=_as_int(p.get("claimed_total")),
        )

    @property
    def has_stake(self) -> bool:
        return any(v > 0 for v in self.staked_by_asset)

    def to_json(self) -> Json:
        return {
            "participant": self.participant,
            "staked_by_asset": list(self.staked_by_asset),
            "index_snapshot": self.index_snapshot,
            "unclaimed_carry": self.unclaimed_carry,
            "claimed_total": self.claimed_total,
        }


def clone_state(state: Json) -> Json:
    return copy.deepcopy(state)
