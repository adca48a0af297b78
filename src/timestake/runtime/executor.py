# src/timestake/runtime/executor.py
from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import replace
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from timestake.ledger.accrual import advance
from timestake.ledger.normalize import check_decimals
from timestake.ledger.positions import earned
from timestake.ledger.state import (
    PoolView,
    PositionView,
    clone_state,
    get_position,
    initial_state,
    pool_of,
    position_total,
)
from timestake.runtime.assets import AdminGate, AssetService
from timestake.runtime.errors import PoolError, ReentrantCallError, TransferFailedError
from timestake.runtime.events import EventLog, PoolEvent, log_event
from timestake.runtime.pool_dispatch import apply_pool_tx
from timestake.runtime.state_invariants import verify_invariants
from timestake.runtime.tx_types import CLAIM, POOL_FUND, RESCUE, STAKE, WITHDRAW, ApplyContext, TxEnvelope

Json = Dict[str, Any]

log = logging.getLogger("timestake.executor")


def _unix_now() -> int:
    return int(time.time())


class StakingExecutor:
    """Owns one pool's state and runs every mutating call as one atomic unit.

    submit():
      1. take the ledger guard (re-entry from the same thread is rejected)
      2. apply the tx to a deep copy of the state
      3. perform the receipt's asset transfers in order
      4. swap the copy in, then emit the receipt's events

    A failure at any step leaves the committed state untouched, and transfers
    already performed for the operation are reversed.
    """

    def __init__(
        self,
        *,
        pool_id: str,
        stake_assets: Sequence[AssetService],
        reward_asset: AssetService,
        gate: AdminGate,
        ledger_account: str,
        extra_assets: Sequence[AssetService] = (),
        clock: Optional[Callable[[], int]] = None,
        event_log: Optional[EventLog] = None,
        strict: bool = False,
        state: Optional[Json] = None,
    ) -> None:
        self.pool_id = str(pool_id)
        self.ledger_account = str(ledger_account)
        self._gate = gate
        self._clock = clock or _unix_now
        self._strict = bool(strict)
        self.events = event_log or EventLog()

        self._assets: Dict[str, AssetService] = {}
        for a in [*stake_assets, reward_asset, *extra_assets]:
            self._assets.setdefault(str(a.asset_id), a)

        if state is None:
            state = initial_state(
                pool_id=self.pool_id,
                stake_assets=[(a.asset_id, check_decimals(a.decimals())) for a in stake_assets],
                reward_asset=(reward_asset.asset_id, check_decimals(reward_asset.decimals())),
            )
        self.state: Json = state

        self._lock = threading.Lock()
        self._owner: Optional[int] = None

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    @contextmanager
    def _guard(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._owner == me:
            raise ReentrantCallError("ledger_busy", {"pool_id": self.pool_id})
        with self._lock:
            self._owner = me
            try:
                yield
            finally:
                self._owner = None

    def _custody(self) -> Dict[str, int]:
        return {aid: int(a.balance_of(self.ledger_account)) for aid, a in self._assets.items()}

    def _reverse(self, done: List[Json]) -> List[Json]:
        failed: List[Json] = []
        for t in reversed(done):
            asset = self._assets[t["asset_id"]]
            if t["direction"] == "in":
                ok = asset.transfer_out(t["party"], t["amount"])
            else:
                ok = asset.transfer_in(t["party"], t["amount"])
            if not ok:
                failed.append(t)
        if failed:
            log_event(log, "transfer_reversal_failed", pool_id=self.pool_id, transfers=failed)
        return failed

    def _run_transfers(self, transfers: List[Json]) -> None:
        done: List[Json] = []
        for t in transfers:
            asset = self._assets.get(t["asset_id"])
            if asset is None:
                self._reverse(done)
                raise TransferFailedError("unknown_asset", {"transfer": t})
            try:
                if t["direction"] == "in":
                    ok = asset.transfer_in(t["party"], t["amount"])
                else:
                    ok = asset.transfer_out(t["party"], t["amount"])
            except BaseException:
                self._reverse(done)
                raise
            if not ok:
                failed = self._reverse(done)
                raise TransferFailedError("transfer_rejected", {"transfer": t, "reversal_failed": failed})
            done.append(t)

    def submit(self, env: Any) -> Json:
        env = TxEnvelope.from_json(env)
        if env.ts is None:
            env = replace(env, ts=int(self._clock()))

        try:
            with self._guard():
                working = clone_state(self.state)
                ctx = ApplyContext(
                    custody=self._custody(),
                    caller_is_admin=bool(self._gate.is_administrator(env.signer)),
                )
                receipt = apply_pool_tx(working, env, ctx)
                if self._strict:
                    verify_invariants(working)
                self._run_transfers(receipt["transfers"])
                self.state = working
        except PoolError as e:
            log_event(
                log,
                "pool_tx_rejected",
                pool_id=self.pool_id,
                tx_type=env.tx_type,
                signer=env.signer,
                code=e.code,
                reason=e.reason,
            )
            raise

        emitted: List[PoolEvent] = self.events.emit_all(receipt["events"], ts=int(env.ts or 0))
        receipt["events"] = [e.to_json() for e in emitted]
        return receipt

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def fund(self, caller: str, *, total_reward: int, start_time: int, end_time: int, now: Optional[int] = None) -> Json:
        payload = {"total_reward": total_reward, "start_time": start_time, "end_time": end_time}
        return self.submit(TxEnvelope(POOL_FUND, caller, payload, now))

    def stake(self, participant: str, amounts: Sequence[int], *, now: Optional[int] = None) -> Json:
        return self.submit(TxEnvelope(STAKE, participant, {"amounts": list(amounts)}, now))

    def withdraw(self, participant: str, *, now: Optional[int] = None) -> Json:
        return self.submit(TxEnvelope(WITHDRAW, participant, {}, now))

    def claim(self, participant: str, *, now: Optional[int] = None) -> Json:
        return self.submit(TxEnvelope(CLAIM, participant, {}, now))

    def rescue(self, caller: str, *, asset_id: str, destination: str, amount: int, now: Optional[int] = None) -> Json:
        payload = {"asset_id": asset_id, "destination": destination, "amount": amount}
        return self.submit(TxEnvelope(RESCUE, caller, payload, now))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def pool_info(self) -> PoolView:
        return PoolView.from_state(self.state)

    def position(self, participant: str) -> PositionView:
        return PositionView.from_state(self.state, participant)

    def pending_reward(self, participant: str, *, now: Optional[int] = None) -> int:
        """Reward a claim at `now` would pay. Never mutates the pool.

        A `now` earlier than the last accrual reports the reward as of that accrual.
        """
        st = clone_state(self.state)
        if position_total(get_position(st, participant)) == 0:
            return 0
        t = int(self._clock()) if now is None else int(now)
        last = pool_of(st).get("last_accrual_time")
        if last is not None:
            t = max(t, int(last))
        advance(st, t)
        return earned(st, participant)

    def asset(self, asset_id: str) -> Optional[AssetService]:
        return self._assets.get(str(asset_id))

    def custody_balances(self) -> Dict[str, int]:
        return self._custody()

    def snapshot(self) -> Json:
        return clone_state(self.state)


__all__ = ["StakingExecutor"]
