# src/timestake/runtime/pool_dispatch.py
from __future__ import annotations

from typing import Any, Callable, Dict, Optional

from timestake.runtime.apply.lifecycle import apply_lifecycle
from timestake.runtime.apply.rescue import apply_rescue
from timestake.runtime.errors import InvalidTxError
from timestake.runtime.state_invariants import check_state
from timestake.runtime.tx_types import ApplyContext, TxEnvelope

Json = Dict[str, Any]
ApplyFn = Callable[[Json, TxEnvelope, ApplyContext], Optional[Json]]

# Ordered domain routers. Each returns None when the tx type is not its own.
_ROUTERS: tuple[ApplyFn, ...] = (
    apply_lifecycle,
    apply_rescue,
)


def apply_pool_tx(state: Json, env: Any, ctx: ApplyContext) -> Json:
    """Apply one pool tx to `state` in place and return its receipt.

    Fails closed: a tx type no router claims raises InvalidTxError. The caller
    owns rollback; `state` should be a working copy.
    """
    env = TxEnvelope.from_json(env)
    check_state(state)

    for fn in _ROUTERS:
        receipt = fn(state, env, ctx)
        if receipt is not None:
            receipt.setdefault("transfers", [])
            receipt.setdefault("events", [])
            return receipt

    raise InvalidTxError("tx_unimplemented", {"tx_type": env.tx_type})


__all__ = ["apply_pool_tx"]
