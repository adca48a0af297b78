# src/timestake/runtime/pool_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from timestake.ledger.constants import ACCOUNTING_DECIMALS, STAKE_ASSET_COUNT

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class AssetConfig:
    asset_id: str
    decimals: int


@dataclass(frozen=True)
class PoolConfig:
    pool_id: str
    mode: str  # "dev" | "testnet" | "prod"

    admin: str
    # Account that holds custody of every pool asset.
    ledger_account: str

    stake_assets: Tuple[AssetConfig, ...]
    reward_asset: AssetConfig

    api_host: str
    api_port: int

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_pool_config(cfg: PoolConfig) -> None:
    """Fail-fast validation for operator config."""

    if not isinstance(cfg.pool_id, str) or not cfg.pool_id.strip():
        raise ValueError("pool_id must be a non-empty string")

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not isinstance(cfg.admin, str) or not cfg.admin.strip():
        raise ValueError("admin must be a non-empty string")

    if not isinstance(cfg.ledger_account, str) or not cfg.ledger_account.strip():
        raise ValueError("ledger_account must be a non-empty string")

    if len(cfg.stake_assets) != STAKE_ASSET_COUNT:
        raise ValueError(f"stake_assets must list exactly {STAKE_ASSET_COUNT} assets; got {len(cfg.stake_assets)}")

    ids = [a.asset_id for a in cfg.stake_assets]
    if len(set(ids)) != STAKE_ASSET_COUNT or any(not i.strip() for i in ids):
        raise ValueError(f"stake asset ids must be distinct and non-empty; got {ids}")

    if cfg.reward_asset.asset_id in ids:
        raise ValueError(f"reward asset {cfg.reward_asset.asset_id!r} must not also be a stake asset")

    for a in (*cfg.stake_assets, cfg.reward_asset):
        if int(a.decimals) < 0 or int(a.decimals) > ACCOUNTING_DECIMALS:
            raise ValueError(f"decimals for {a.asset_id!r} must be 0..{ACCOUNTING_DECIMALS}; got {a.decimals}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")


def default_pool_config() -> PoolConfig:
    return PoolConfig(
        pool_id="timestake-dev",
        mode="prod",
        admin="admin",
        ledger_account="POOL",
        stake_assets=(
            AssetConfig("USDC", 6),
            AssetConfig("USDT", 6),
            AssetConfig("DAI", 18),
        ),
        reward_asset=AssetConfig("RWD", 18),
        api_host="127.0.0.1",
        api_port=8080,
        log_level="INFO",
    )


def _asset(raw: Any, default: AssetConfig) -> AssetConfig:
    if not isinstance(raw, dict):
        return default
    return AssetConfig(
        asset_id=_as_str(raw.get("asset_id"), default.asset_id),
        decimals=_as_int(raw.get("decimals"), default.decimals),
    )


def read_pool_config_file(path: str) -> PoolConfig:
    p = Path(path)
    raw = json.loads(p.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("pool config must be a JSON object")

    d = default_pool_config()

    stake_raw = raw.get("stake_assets")
    if stake_raw is None:
        stake_assets = d.stake_assets
    elif isinstance(stake_raw, list):
        stake_assets = tuple(_asset(a, AssetConfig("", 0)) for a in stake_raw)
    else:
        raise ValueError("stake_assets must be a list")

    cfg = PoolConfig(
        pool_id=_as_str(raw.get("pool_id"), d.pool_id),
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        admin=_as_str(raw.get("admin"), d.admin),
        ledger_account=_as_str(raw.get("ledger_account"), d.ledger_account),
        stake_assets=stake_assets,
        reward_asset=_asset(raw.get("reward_asset"), d.reward_asset),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        log_level=_as_str(raw.get("log_level"), d.log_level),
    )

    validate_pool_config(cfg)
    return cfg


def load_pool_config(*, config_path: Optional[str] = None) -> PoolConfig:
    p = config_path or os.environ.get("TIMESTAKE_POOL_CONFIG_PATH")
    if p:
        return read_pool_config_file(p)

    cfg = default_pool_config()
    validate_pool_config(cfg)
    return cfg


def apply_pool_config_to_env(cfg: PoolConfig) -> None:
    validate_pool_config(cfg)
    os.environ["TIMESTAKE_POOL_ID"] = cfg.pool_id
    os.environ["TIMESTAKE_MODE"] = (cfg.mode or "prod").strip().lower()
    os.environ["TIMESTAKE_LOG_LEVEL"] = cfg.log_level
