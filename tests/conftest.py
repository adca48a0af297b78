from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

# Ensure local "src/" takes precedence over any globally-installed "timestake" package.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

src_str = str(SRC)
if src_str not in sys.path:
    sys.path.insert(0, src_str)

from timestake.runtime.assets import InMemoryAsset, SingleAdminGate  # noqa: E402
from timestake.runtime.executor import StakingExecutor  # noqa: E402

T0 = 1_700_000_000
ADMIN = "admin"
POOL = "POOL"


class FakeClock:
    def __init__(self, now: int = T0) -> None:
        self.now = int(now)

    def __call__(self) -> int:
        return self.now


class PoolHarness:
    """Executor wired to in-memory assets with 6/8/18-decimal stake slots."""

    def __init__(self, *, decimals=(6, 8, 18), reward_decimals: int = 18) -> None:
        self.clock = FakeClock()
        self.stake_assets = [
            InMemoryAsset(aid, decimals=d, custody_account=POOL) for aid, d in zip(("USDC", "WBTC", "DAI"), decimals)
        ]
        self.reward = InMemoryAsset("RWD", decimals=reward_decimals, custody_account=POOL)
        self.junk = InMemoryAsset("JUNK", decimals=18, custody_account=POOL)
        self.ex = StakingExecutor(
            pool_id="test-pool",
            stake_assets=self.stake_assets,
            reward_asset=self.reward,
            gate=SingleAdminGate(ADMIN),
            ledger_account=POOL,
            extra_assets=[self.junk],
            clock=self.clock,
            strict=True,
        )

    @property
    def assets(self) -> Dict[str, InMemoryAsset]:
        return {a.asset_id: a for a in [*self.stake_assets, self.reward, self.junk]}

    def mint(self, holder: str, *amounts: int) -> None:
        for asset, amt in zip(self.stake_assets, amounts):
            if amt:
                asset.mint(holder, amt)

    def fund(self, total_reward: int, *, start: int = T0, end: int = T0 + 1000, now: Optional[int] = None) -> dict:
        self.reward.mint(ADMIN, total_reward)
        return self.ex.fund(ADMIN, total_reward=total_reward, start_time=start, end_time=end, now=start if now is None else now)

    def balance(self, asset_id: str, holder: str) -> int:
        return self.assets[asset_id].balance_of(holder)


@pytest.fixture
def make_pool() -> Callable[..., PoolHarness]:
    return PoolHarness


@pytest.fixture
def pool() -> PoolHarness:
    return PoolHarness()
