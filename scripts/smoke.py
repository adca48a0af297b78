#!/usr/bin/env python3

"""Dev smoke run for a timestake pool over the HTTP API.

It verifies:
  - executor boots from config (or defaults) in dev mode
  - a full fund -> stake -> claim -> withdraw timeline succeeds
  - the pool returns principal and pays reward within the funded amount

Usage:
  python3 scripts/smoke.py

Optional env overrides:
  TIMESTAKE_POOL_CONFIG_PATH=./pool.json
  TIMESTAKE_SMOKE_WINDOW_S=1000
"""

from __future__ import annotations

import json
import os
import sys
import tempfile
from pathlib import Path

from fastapi.testclient import TestClient

from timestake.api.app import create_app


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return int(default)


def _post(c: TestClient, path: str, body: dict) -> dict:
    r = c.post(path, json=body)
    j = r.json()
    if r.status_code != 200:
        raise RuntimeError(f"{path} failed: {r.status_code} {json.dumps(j)}")
    return j


def main() -> int:
    window = _env_int("TIMESTAKE_SMOKE_WINDOW_S", 1000)

    with tempfile.TemporaryDirectory(prefix="timestake-smoke-") as td:
        if not os.environ.get("TIMESTAKE_POOL_CONFIG_PATH"):
            cfg_path = Path(td) / "pool.json"
            cfg_path.write_text(json.dumps({"pool_id": "smoke", "mode": "dev", "admin": "admin"}), encoding="utf-8")
            os.environ["TIMESTAKE_POOL_CONFIG_PATH"] = str(cfg_path)
        app = create_app(boot_runtime=True)

    return _run(app, window)


def _run(app, window: int) -> int:
    ex = app.state.executor
    info = ex.pool_info()
    admin = "admin"

    c = TestClient(app)
    t0 = 1_700_000_000
    reward = 1_000 * 10**18
    stake_id = info.stake_asset_ids[0]

    _post(c, "/v1/dev/mint", {"asset_id": info.reward_asset_id, "holder": admin, "amount": reward})
    _post(c, "/v1/dev/mint", {"asset_id": stake_id, "holder": "alice", "amount": 100})
    _post(c, "/v1/pool/fund", {"caller": admin, "total_reward": reward, "start_time": t0, "end_time": t0 + window, "now": t0})
    _post(c, "/v1/stake", {"participant": "alice", "amounts": [100, 0, 0], "now": t0})
    claimed = _post(c, "/v1/claim", {"participant": "alice", "now": t0 + window // 2})["receipt"]["reward"]
    out = _post(c, "/v1/withdraw", {"participant": "alice", "now": t0 + window})["receipt"]

    total = int(claimed) + int(out["reward"])
    print(json.dumps({"claimed_mid": claimed, "withdraw": out["amounts"], "reward_total": total}, sort_keys=True))

    if out["amounts"][0] != 100 or total > reward:
        print("smoke: FAILED", file=sys.stderr)
        return 1
    print("smoke: OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
