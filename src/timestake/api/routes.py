# src/timestake/api/routes.py
from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import APIRouter, Request

from timestake.api.errors import ApiError
from timestake.api.schemas import FundRequest, MintRequest, ParticipantRequest, RescueRequest, StakeRequest
from timestake.runtime.executor import StakingExecutor

router = APIRouter(prefix="/v1")

Json = Dict[str, Any]


def _mode() -> str:
    return os.environ.get("TIMESTAKE_MODE", "prod").strip().lower()


def _executor(request: Request) -> StakingExecutor:
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.not_ready("not_ready", "executor not attached to app.state")
    return ex


def _now(now: Optional[int]) -> Optional[int]:
    """Explicit timestamps are a replay aid; prod always uses the executor clock."""
    if now is not None and _mode() == "prod":
        raise ApiError.bad_request("now_not_allowed", "explicit 'now' is disabled in prod mode")
    return now


@router.get("/health")
def health(request: Request) -> Json:
    ex = getattr(request.app.state, "executor", None)
    return {"ok": True, "ready": ex is not None, "mode": _mode()}


@router.get("/pool")
def pool_info(request: Request) -> Json:
    return {"ok": True, "pool": _executor(request).pool_info().to_json()}


@router.get("/positions/{participant}")
def position(participant: str, request: Request) -> Json:
    return {"ok": True, "position": _executor(request).position(participant).to_json()}


@router.get("/positions/{participant}/pending")
def pending_reward(participant: str, request: Request, now: Optional[int] = None) -> Json:
    ex = _executor(request)
    reward = ex.pending_reward(participant, now=_now(now))
    return {"ok": True, "participant": participant, "pending_reward": reward}


@router.get("/state/snapshot")
def state_snapshot(request: Request) -> Json:
    """Full pool state. Grows with the number of participants."""
    return {"ok": True, "state": _executor(request).snapshot()}


@router.get("/events")
def events(request: Request, since_seq: int = 0, limit: int = 100) -> Json:
    evs = _executor(request).events.list(since_seq=since_seq, limit=min(max(limit, 0), 1000))
    return {"ok": True, "events": [e.to_json() for e in evs]}


@router.post("/pool/fund")
def fund(body: FundRequest, request: Request) -> Json:
    receipt = _executor(request).fund(
        body.caller,
        total_reward=body.total_reward,
        start_time=body.start_time,
        end_time=body.end_time,
        now=_now(body.now),
    )
    return {"ok": True, "receipt": receipt}


@router.post("/stake")
def stake(body: StakeRequest, request: Request) -> Json:
    receipt = _executor(request).stake(body.participant, body.amounts, now=_now(body.now))
    return {"ok": True, "receipt": receipt}


@router.post("/withdraw")
def withdraw(body: ParticipantRequest, request: Request) -> Json:
    receipt = _executor(request).withdraw(body.participant, now=_now(body.now))
    return {"ok": True, "receipt": receipt}


@router.post("/claim")
def claim(body: ParticipantRequest, request: Request) -> Json:
    receipt = _executor(request).claim(body.participant, now=_now(body.now))
    return {"ok": True, "receipt": receipt}


@router.post("/rescue")
def rescue(body: RescueRequest, request: Request) -> Json:
    receipt = _executor(request).rescue(
        body.caller,
        asset_id=body.asset_id,
        destination=body.destination,
        amount=body.amount,
        now=_now(body.now),
    )
    return {"ok": True, "receipt": receipt}


@router.post("/dev/mint")
def dev_mint(body: MintRequest, request: Request) -> Json:
    """Credit an in-memory asset balance. Not available in prod mode."""
    if _mode() == "prod":
        raise ApiError.forbidden("dev_only", "minting is disabled in prod mode")
    asset = _executor(request).asset(body.asset_id)
    if asset is None or not hasattr(asset, "mint"):
        raise ApiError.not_found("unknown_asset", "no mintable asset with that id", {"asset_id": body.asset_id})
    asset.mint(body.holder, body.amount)
    return {"ok": True, "asset_id": body.asset_id, "holder": body.holder, "balance": asset.balance_of(body.holder)}


@router.get("/balances/{holder}")
def balances(holder: str, request: Request) -> Json:
    ex = _executor(request)
    ids = [*ex.pool_info().stake_asset_ids, ex.pool_info().reward_asset_id]
    out = {}
    for aid in ids:
        a = ex.asset(aid)
        out[aid] = int(a.balance_of(holder)) if a is not None else 0
    return {"ok": True, "holder": holder, "balances": out}
