# src/timestake/runtime/tx_types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

POOL_FUND = "POOL_FUND"
STAKE = "STAKE"
WITHDRAW = "WITHDRAW"
CLAIM = "CLAIM"
RESCUE = "RESCUE"

POOL_TX_TYPES = (POOL_FUND, STAKE, WITHDRAW, CLAIM, RESCUE)


@dataclass(frozen=True)
class TxEnvelope:
    tx_type: str
    signer: str
    payload: Dict[str, Any] = field(default_factory=dict)
    ts: Optional[int] = None

    @staticmethod
    def from_json(j: Any) -> "TxEnvelope":
        if isinstance(j, TxEnvelope):
            return j
        if not isinstance(j, dict):
            j = dict(j)  # type: ignore[arg-type]
        return TxEnvelope(
            tx_type=str(j.get("tx_type", "")).strip().upper(),
            signer=str(j.get("signer", "")),
            payload=dict(j.get("payload", {}) or {}),
            ts=(None if j.get("ts") is None else int(j.get("ts"))),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "tx_type": self.tx_type,
            "signer": self.signer,
            "payload": self.payload,
            "ts": self.ts,
        }


@dataclass(frozen=True)
class ApplyContext:
    """Read-only facts gathered by the executor before an apply.

    custody: the ledger account's balance per asset id, in native units.
    caller_is_admin: answer of the authorization gate for the signer.
    """

    custody: Dict[str, int] = field(default_factory=dict)
    caller_is_admin: bool = False
