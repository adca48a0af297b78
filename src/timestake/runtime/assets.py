# src/timestake/runtime/assets.py
from __future__ import annotations

"""Asset custody collaborators.

The ledger only needs four calls from an asset service. `InMemoryAsset` is
the reference implementation used by the boot path, the API and tests.
"""

import threading
from typing import Callable, Dict, Optional, Protocol


class AssetService(Protocol):
    asset_id: str

    def decimals(self) -> int: ...

    def transfer_in(self, source: str, amount: int) -> bool: ...

    def transfer_out(self, destination: str, amount: int) -> bool: ...

    def balance_of(self, holder: str) -> int: ...


class InMemoryAsset:
    """
    Balance table for one asset with a designated custody account.

    transfer_in moves `amount` from `source` into custody; transfer_out moves it
    from custody to `destination`. Both return False instead of raising when
    the amount is negative or the payer's balance is short.
    """

    def __init__(
        self,
        asset_id: str,
        *,
        decimals: int,
        custody_account: str,
        before_transfer: Optional[Callable[[str, str, str, int], None]] = None,
    ) -> None:
        self.asset_id = str(asset_id)
        self._decimals = int(decimals)
        self.custody_account = str(custody_account)
        self._balances: Dict[str, int] = {}
        self._lock = threading.Lock()
        # Sender-side hook run before balances move: (asset_id, src, dst, amount).
        self.before_transfer = before_transfer

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, holder: str) -> int:
        with self._lock:
            return int(self._balances.get(str(holder), 0))

    def mint(self, holder: str, amount: int) -> None:
        if int(amount) < 0:
            raise ValueError("mint amount must be >= 0")
        with self._lock:
            self._balances[str(holder)] = self._balances.get(str(holder), 0) + int(amount)

    def _move(self, src: str, dst: str, amount: int) -> bool:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            return False
        if self.before_transfer is not None:
            self.before_transfer(self.asset_id, src, dst, amount)
        with self._lock:
            have = self._balances.get(src, 0)
            if have < amount:
                return False
            self._balances[src] = have - amount
            self._balances[dst] = self._balances.get(dst, 0) + amount
        return True

    def transfer_in(self, source: str, amount: int) -> bool:
        return self._move(str(source), self.custody_account, amount)

    def transfer_out(self, destination: str, amount: int) -> bool:
        return self._move(self.custody_account, str(destination), amount)

    def snapshot(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._balances)


class AdminGate(Protocol):
    def is_administrator(self, caller: str) -> bool: ...


class SingleAdminGate:
    def __init__(self, admin: str) -> None:
        self.admin = str(admin).strip()

    def is_administrator(self, caller: str) -> bool:
        return bool(self.admin) and str(caller).strip() == self.admin


__all__ = ["AssetService", "InMemoryAsset", "AdminGate", "SingleAdminGate"]
