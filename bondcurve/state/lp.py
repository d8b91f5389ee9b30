"""
Liquidity-provider share records.

Shares are stored per (provider, token) but no formula consumes them yet;
withdrawal is always full-drain.
"""

from __future__ import annotations

from typing import Dict, Tuple

from .balances import Amount, AssetId, Identity


class LPTable:
    """
    Deterministic share table mapping (provider, token) -> shares.

    Notes:
    - Shares are always non-negative.
    - Zero entries are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._shares: Dict[Tuple[Identity, AssetId], Amount] = {}

    def get(self, provider: Identity, token: AssetId) -> Amount:
        """Get shares for (provider, token). Returns 0 if not found."""
        return self._shares.get((provider, token), 0)

    def set(self, provider: Identity, token: AssetId, amount: Amount) -> None:
        if amount < 0:
            raise ValueError(f"LP shares cannot be negative: {amount}")
        if amount == 0:
            self._shares.pop((provider, token), None)
        else:
            self._shares[(provider, token)] = amount

    def get_all(self) -> Dict[Tuple[Identity, AssetId], Amount]:
        return dict(self._shares)

    def __repr__(self) -> str:
        return f"LPTable({len(self._shares)} entries)"
