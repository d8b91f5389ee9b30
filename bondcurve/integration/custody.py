"""
Custody plumbing (imperative shell).

The engine never moves value itself: it asks a `CustodyGateway` to move
assets between accounts, presenting an explicit `AuthorityCapability` for
the debited account. Pools do not "sign" implicitly; the exchange holds a
capability covering each pool's two vaults and hands it over per transfer.

`InMemoryCustody` is the reference gateway used by tests and tools. It also
stands in for token issuance (`mint`).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Callable, FrozenSet, List, Optional, Tuple

from ..state.balances import Amount, AssetId, BalanceTable, Identity

logger = logging.getLogger(__name__)


class CustodyError(Exception):
    """Raised by a gateway that rejects a transfer. No funds moved."""


@dataclass(frozen=True)
class AuthorityCapability:
    """Right to debit a fixed set of custody accounts."""

    holder: Identity
    accounts: FrozenSet[Identity] = field(default_factory=frozenset)

    @classmethod
    def signer(cls, identity: Identity) -> "AuthorityCapability":
        """Capability of an identity over its own account."""
        return cls(holder=identity, accounts=frozenset({identity}))

    def can_debit(self, account: Identity) -> bool:
        return account in self.accounts


class CustodyGateway:
    """Interface for the asset-movement collaborator."""

    def transfer_asset(
        self,
        asset: AssetId,
        source: Identity,
        destination: Identity,
        amount: Amount,
        authority: AuthorityCapability,
    ) -> None:
        """Move `amount` of `asset`; atomic per call. Raises CustodyError on rejection."""
        raise NotImplementedError

    def balance_of(self, account: Identity, asset: AssetId) -> Amount:
        raise NotImplementedError


TransferFilter = Callable[[AssetId, Identity, Identity, Amount], bool]


class InMemoryCustody(CustodyGateway):
    """
    Custody backed by a `BalanceTable`.

    `fail_when` is an optional predicate over (asset, source, destination,
    amount); a matching transfer is rejected before any balance changes.
    """

    def __init__(self, balances: Optional[BalanceTable] = None) -> None:
        self.balances = balances if balances is not None else BalanceTable()
        self.fail_when: Optional[TransferFilter] = None
        self.transfers: List[Tuple[AssetId, Identity, Identity, Amount]] = []
        self._lock = threading.Lock()

    def mint(self, account: Identity, asset: AssetId, amount: Amount) -> None:
        """Credit `amount` out of thin air (issuance stand-in)."""
        if amount <= 0:
            raise ValueError(f"mint amount must be positive: {amount}")
        with self._lock:
            self.balances.add(account, asset, amount)

    def balance_of(self, account: Identity, asset: AssetId) -> Amount:
        with self._lock:
            return self.balances.get(account, asset)

    def transfer_asset(
        self,
        asset: AssetId,
        source: Identity,
        destination: Identity,
        amount: Amount,
        authority: AuthorityCapability,
    ) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise CustodyError(f"invalid transfer amount: {amount!r}")
        if not authority.can_debit(source):
            raise CustodyError(f"{authority.holder} has no authority over {source}")
        if self.fail_when is not None and self.fail_when(asset, source, destination, amount):
            raise CustodyError(f"transfer rejected: {amount} {asset} {source} -> {destination}")
        with self._lock:
            try:
                self.balances.move(source, destination, asset, amount)
            except ValueError as exc:
                raise CustodyError(str(exc)) from exc
            self.transfers.append((asset, source, destination, amount))
        logger.debug("moved %d %s %s -> %s", amount, asset, source, destination)
