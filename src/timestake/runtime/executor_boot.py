# src/timestake/runtime/executor_boot.py

from __future__ import annotations

from typing import Optional

from timestake.runtime.assets import InMemoryAsset, SingleAdminGate
from timestake.runtime.executor import StakingExecutor
from timestake.runtime.pool_config import PoolConfig, apply_pool_config_to_env, load_pool_config


def build_executor(cfg: Optional[PoolConfig] = None) -> StakingExecutor:
    """
    Build a StakingExecutor backed by in-memory asset ledgers from an explicit
    config or, if omitted, from TIMESTAKE_POOL_CONFIG_PATH / defaults.

    Non-prod modes run with per-operation invariant checks.
    """
    c = cfg or load_pool_config()
    apply_pool_config_to_env(c)

    stake_assets = [
        InMemoryAsset(a.asset_id, decimals=a.decimals, custody_account=c.ledger_account) for a in c.stake_assets
    ]
    reward_asset = InMemoryAsset(
        c.reward_asset.asset_id,
        decimals=c.reward_asset.decimals,
        custody_account=c.ledger_account,
    )

    return StakingExecutor(
        pool_id=c.pool_id,
        stake_assets=stake_assets,
        reward_asset=reward_asset,
        gate=SingleAdminGate(c.admin),
        ledger_account=c.ledger_account,
        strict=(c.mode != "prod"),
    )
