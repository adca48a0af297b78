from __future__ import annotations

import pytest

from conftest import ADMIN, POOL, T0
from timestake.runtime.errors import (
    InsufficientHeadroomError,
    InvalidTxError,
    TransferFailedError,
    UnauthorizedError,
)


def _staked_pool(pool):
    pool.fund(1_000)
    pool.mint("alice", 100)
    pool.ex.stake("alice", [100, 0, 0], now=T0)
    return pool


def test_scenario_d_stake_asset_rescue_is_bounded_by_headroom(pool) -> None:
    _staked_pool(pool)
    pool.stake_assets[0].mint(POOL, 50)  # stray deposit sent straight to custody

    with pytest.raises(InsufficientHeadroomError) as e:
        pool.ex.rescue(ADMIN, asset_id="USDC", destination="ops", amount=51, now=T0 + 1)
    assert e.value.details["headroom"] == 50

    before = pool.ex.position("alice")
    r = pool.ex.rescue(ADMIN, asset_id="USDC", destination="ops", amount=50, now=T0 + 1)

    assert r["headroom"] == 50
    assert pool.balance("USDC", "ops") == 50
    assert pool.balance("USDC", POOL) == 100
    assert pool.ex.position("alice") == before
    assert pool.ex.pool_info().total_stake_by_asset == (100, 0, 0)


def test_reward_asset_rescue_protects_unclaimed_pool_while_staked(pool) -> None:
    _staked_pool(pool)
    pool.reward.mint(POOL, 10)
    pool.ex.claim("alice", now=T0 + 400)

    # custody 1010 - 400 paid = 610; still owed 1000 - 400 = 600
    with pytest.raises(InsufficientHeadroomError):
        pool.ex.rescue(ADMIN, asset_id="RWD", destination="ops", amount=11, now=T0 + 401)
    pool.ex.rescue(ADMIN, asset_id="RWD", destination="ops", amount=10, now=T0 + 401)
    assert pool.balance("RWD", "ops") == 10


def test_reward_asset_rescue_is_unbounded_once_everyone_left(pool) -> None:
    _staked_pool(pool)
    pool.ex.withdraw("alice", now=T0 + 250)
    assert pool.ex.pool_info().participant_count == 0

    leftover = pool.balance("RWD", POOL)
    assert leftover == 750
    pool.ex.rescue(ADMIN, asset_id="RWD", destination="ops", amount=leftover, now=T0 + 300)
    assert pool.balance("RWD", POOL) == 0

    # Beyond custody the asset itself refuses the transfer.
    with pytest.raises(TransferFailedError):
        pool.ex.rescue(ADMIN, asset_id="RWD", destination="ops", amount=1, now=T0 + 300)


def test_unrelated_asset_rescue_is_unconditional(pool) -> None:
    _staked_pool(pool)
    pool.junk.mint(POOL, 77)
    pool.ex.rescue(ADMIN, asset_id="JUNK", destination="ops", amount=77, now=T0 + 1)
    assert pool.balance("JUNK", "ops") == 77


def test_rescue_is_administrator_only(pool) -> None:
    _staked_pool(pool)
    pool.junk.mint(POOL, 1)
    with pytest.raises(UnauthorizedError):
        pool.ex.rescue("alice", asset_id="JUNK", destination="alice", amount=1, now=T0 + 1)


def test_rescue_of_unregistered_asset_fails(pool) -> None:
    with pytest.raises(InvalidTxError):
        pool.ex.rescue(ADMIN, asset_id="NOPE", destination="ops", amount=1, now=T0)
