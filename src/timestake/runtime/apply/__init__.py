# src/timestake/runtime/apply/__init__.py
"""Domain-specific apply modules.

Each module implements deterministic state transitions for a subset of pool
tx types and returns a receipt listing the asset transfers the executor must
perform before the new state is committed.
"""

from __future__ import annotations

__all__ = [
    "lifecycle",
    "rescue",
]
