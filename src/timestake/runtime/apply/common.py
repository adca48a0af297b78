# src/timestake/runtime/apply/common.py
from __future__ import annotations

from typing import Any, Dict, List, Sequence

from timestake.ledger.constants import STAKE_ASSET_COUNT
from timestake.ledger.safe_math import require_uint
from timestake.runtime.errors import InvalidTxError, UnauthorizedError
from timestake.runtime.tx_types import ApplyContext, TxEnvelope

Json = Dict[str, Any]


def _as_dict(x: Any) -> Json:
    return x if isinstance(x, dict) else {}


def _as_str(x: Any) -> str:
    return x.strip() if isinstance(x, str) else ""


def require_admin(env: TxEnvelope, ctx: ApplyContext) -> None:
    if not ctx.caller_is_admin:
        raise UnauthorizedError("administrator_required", {"tx_type": env.tx_type, "signer": env.signer})


def require_ts(env: TxEnvelope) -> int:
    if env.ts is None:
        raise InvalidTxError("missing_ts", {"tx_type": env.tx_type})
    return require_uint(int(env.ts), name="ts")


def payload_uint(env: TxEnvelope, key: str) -> int:
    payload = _as_dict(env.payload)
    if payload.get(key) is None:
        raise InvalidTxError("invalid_payload", {"tx_type": env.tx_type, "missing": key})
    v = payload.get(key)
    if isinstance(v, str) and v.strip().isdigit():
        v = int(v.strip())
    return require_uint(v, name=key)


def payload_str(env: TxEnvelope, key: str) -> str:
    s = _as_str(_as_dict(env.payload).get(key))
    if not s:
        raise InvalidTxError("invalid_payload", {"tx_type": env.tx_type, "missing": key})
    return s


def payload_amounts(env: TxEnvelope) -> List[int]:
    raw = _as_dict(env.payload).get("amounts")
    if not isinstance(raw, (list, tuple)) or len(raw) != STAKE_ASSET_COUNT:
        raise InvalidTxError("invalid_payload", {"tx_type": env.tx_type, "amounts": raw})
    return [require_uint(a, name=f"amounts[{i}]") for i, a in enumerate(raw)]


def transfer_in(asset_id: str, party: str, amount: int) -> Json:
    return {"direction": "in", "asset_id": asset_id, "party": party, "amount": int(amount)}


def transfer_out(asset_id: str, party: str, amount: int) -> Json:
    return {"direction": "out", "asset_id": asset_id, "party": party, "amount": int(amount)}


def event(name: str, **fields: Any) -> Json:
    return {"event": name, **fields}


def nonzero_transfers(direction: str, asset_ids: Sequence[str], party: str, amounts: Sequence[int]) -> List[Json]:
    mk = transfer_in if direction == "in" else transfer_out
    return [mk(a, party, amt) for a, amt in zip(asset_ids, amounts) if int(amt) > 0]
