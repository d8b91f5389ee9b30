"""
Custody balance tracking with deterministic ordering.

Implements BalanceTable[Account, AssetId] -> Amount. This is the backing store
of the in-memory custody gateway; the pricing core never reads it directly.
"""

from typing import Dict, Tuple


# Type aliases
Identity = str  # Account / signer identity (opaque string)
AssetId = str  # Token identity, or NATIVE_ASSET for the base currency
Amount = int  # Non-negative integer in fixed-point units

# Native (base currency) asset identifier
NATIVE_ASSET = "native"


class BalanceTable:
    """
    Deterministic balance table mapping (account, asset) -> amount.

    Note: this class stores balances in a plain dict. Callers that need a
    stable order (reports, snapshots) should sort keys explicitly.
    """

    def __init__(self):
        """Initialize empty balance table."""
        self._balances: Dict[Tuple[Identity, AssetId], Amount] = {}

    def get(self, account: Identity, asset: AssetId) -> Amount:
        """Get balance for (account, asset). Returns 0 if not found."""
        return self._balances.get((account, asset), 0)

    def set(self, account: Identity, asset: AssetId, amount: Amount) -> None:
        """
        Set balance for (account, asset).

        Args:
            account: Account identity
            asset: Asset identifier
            amount: Non-negative amount

        Raises:
            ValueError: If amount is negative
        """
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        if amount == 0:
            # Remove zero balances to keep table sparse
            self._balances.pop((account, asset), None)
        else:
            self._balances[(account, asset)] = amount

    def add(self, account: Identity, asset: AssetId, delta: int) -> None:
        """
        Add delta to balance (delta may be negative).

        Raises:
            ValueError: If resulting balance would be negative
        """
        current = self.get(account, asset)
        new_balance = current + delta
        if new_balance < 0:
            raise ValueError(
                f"Insufficient balance: {current} + {delta} = {new_balance} < 0"
            )
        self.set(account, asset, new_balance)

    def subtract(self, account: Identity, asset: AssetId, delta: Amount) -> None:
        """Subtract a non-negative amount from a balance."""
        if delta < 0:
            raise ValueError(f"Delta must be non-negative: {delta}")
        self.add(account, asset, -delta)

    def move(self, source: Identity, destination: Identity, asset: AssetId, amount: Amount) -> None:
        """
        Move `amount` of `asset` from `source` to `destination`.

        Either both sides change or neither does.
        """
        if amount < 0:
            raise ValueError(f"Amount must be non-negative: {amount}")
        if self.get(source, asset) < amount:
            raise ValueError(
                f"Insufficient balance: {source} holds {self.get(source, asset)} < {amount}"
            )
        self.subtract(source, asset, amount)
        self.add(destination, asset, amount)

    def get_all_balances(self) -> Dict[Tuple[Identity, AssetId], Amount]:
        """Return a copy of all balances."""
        return dict(self._balances)

    def total_of(self, asset: AssetId) -> Amount:
        """Sum of all balances of `asset` (conservation checks)."""
        return sum(amount for (_, a), amount in self._balances.items() if a == asset)

    def __repr__(self) -> str:
        return f"BalanceTable({len(self._balances)} entries)"
