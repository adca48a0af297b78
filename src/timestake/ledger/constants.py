# src/timestake/ledger/constants.py
from __future__ import annotations

"""Accounting constants for the staking ledger.

- All balances, stakes and the reward index are kept in one common precision.
- The reward index is a fixed-point accumulator scaled by SCALE.
- Arithmetic is bounded to the unsigned 256-bit range.
"""

# Common accounting precision (normalized unit = 1e-18)
ACCOUNTING_DECIMALS: int = 18

# Fixed-point scale of the global reward index
SCALE: int = 10**18

# Number of stakeable asset slots in a pool
STAKE_ASSET_COUNT: int = 3

# Unsigned 256-bit range for checked arithmetic
UINT256_MAX: int = 2**256 - 1

STATE_VERSION: int = 1
