from __future__ import annotations

import threading

import pytest

from conftest import POOL, T0
from timestake.ledger.constants import UINT256_MAX
from timestake.runtime.errors import ArithmeticOverflowError, InvalidTxError, ReentrantCallError, TransferFailedError
from timestake.runtime.tx_types import TxEnvelope


def test_failed_transfer_reverts_state_and_earlier_transfers(pool) -> None:
    pool.fund(1_000)
    pool.mint("alice", 100)  # no WBTC balance

    before = pool.ex.snapshot()
    with pytest.raises(TransferFailedError) as e:
        pool.ex.stake("alice", [100, 5, 0], now=T0)

    assert e.value.details["transfer"]["asset_id"] == "WBTC"
    assert pool.ex.snapshot() == before
    assert pool.balance("USDC", "alice") == 100
    assert pool.balance("USDC", POOL) == 0
    assert pool.ex.pool_info().first_stake_time is None


def test_reentrant_call_from_transfer_hook_is_rejected(pool) -> None:
    pool.fund(1_000)
    pool.mint("alice", 100)
    pool.ex.stake("alice", [100, 0, 0], now=T0)
    pool.mint("mallory", 100)

    seen = []

    def hook(asset_id, src, dst, amount):
        try:
            pool.ex.claim("alice", now=T0 + 10)
        except ReentrantCallError as e:
            seen.append(e.code)
            raise

    pool.stake_assets[0].before_transfer = hook
    before = pool.ex.snapshot()

    with pytest.raises(ReentrantCallError):
        pool.ex.stake("mallory", [100, 0, 0], now=T0 + 10)

    pool.stake_assets[0].before_transfer = None
    assert seen == ["reentrant_call"]
    assert pool.ex.snapshot() == before
    assert pool.balance("USDC", "mallory") == 100
    assert pool.balance("RWD", "alice") == 0


def test_unknown_tx_type_fails_closed(pool) -> None:
    with pytest.raises(InvalidTxError) as e:
        pool.ex.submit(TxEnvelope("SLASH", "admin", {}, T0))
    assert e.value.reason == "tx_unimplemented"


def test_malformed_stake_payload_is_rejected(pool) -> None:
    pool.fund(1_000)
    with pytest.raises(InvalidTxError):
        pool.ex.submit({"tx_type": "stake", "signer": "alice", "payload": {"amounts": [1, 2]}, "ts": T0})


def test_concurrent_stakers_keep_totals_consistent(pool) -> None:
    pool.fund(10**6)
    users = [f"u{i}" for i in range(16)]
    for u in users:
        pool.mint(u, 10)

    def run(u: str) -> None:
        pool.ex.stake(u, [10, 0, 0], now=T0)

    threads = [threading.Thread(target=run, args=(u,)) for u in users]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    info = pool.ex.pool_info()
    assert info.participant_count == len(users)
    assert info.total_stake_by_asset == (160, 0, 0)
    assert pool.balance("USDC", POOL) == 160


def _balances(pool) -> dict:
    return {aid: a.snapshot() for aid, a in pool.assets.items()}


def test_overflowing_stake_amount_aborts_with_no_change(pool) -> None:
    pool.fund(1_000)
    pool.mint("alice", 100)

    # fits in uint256 natively, but not once scaled from 6 to 18 decimals
    huge = UINT256_MAX // 10**12 + 1
    before, balances = pool.ex.snapshot(), _balances(pool)
    n_events = len(pool.ex.events)

    with pytest.raises(ArithmeticOverflowError):
        pool.ex.stake("alice", [huge, 0, 0], now=T0)

    assert pool.ex.snapshot() == before
    assert _balances(pool) == balances
    assert len(pool.ex.events) == n_events
    assert pool.ex.pool_info().first_stake_time is None


def test_time_running_backwards_aborts_claim_with_no_change(pool) -> None:
    pool.fund(1_000)
    pool.mint("alice", 100)
    pool.ex.stake("alice", [100, 0, 0], now=T0 + 100)

    before, balances = pool.ex.snapshot(), _balances(pool)

    with pytest.raises(ArithmeticOverflowError):
        pool.ex.claim("alice", now=T0 + 50)
    with pytest.raises(ArithmeticOverflowError):
        pool.ex.withdraw("alice", now=T0 + 50)

    assert pool.ex.snapshot() == before
    assert _balances(pool) == balances
    assert pool.ex.position("alice").staked_by_asset == (100, 0, 0)
    assert pool.ex.pool_info().participant_count == 1
