"""
Migration venue plumbing (imperative shell).

A pool that has collected enough native currency can be retired from
bonding-curve pricing and handed to a general-purpose AMM. The venue receives
both reserves and opens a market with them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from ..state.balances import Amount, AssetId, Identity
from .custody import AuthorityCapability


class MigrationVenue:
    """Interface for the external AMM that receives migrated reserves."""

    @property
    def account(self) -> Identity:
        """Custody account the reserves are moved to."""
        raise NotImplementedError

    def authority(self) -> AuthorityCapability:
        """Capability used only to return funds from an aborted migration."""
        raise NotImplementedError

    def open_market(self, token: AssetId, token_amount: Amount, sol_amount: Amount) -> str:
        """Open a market seeded with the given reserves; returns a market id."""
        raise NotImplementedError


@dataclass(frozen=True)
class MarketRecord:
    market_id: str
    token: AssetId
    token_amount: Amount
    sol_amount: Amount


@dataclass
class InMemoryVenue(MigrationVenue):
    """Records opened markets; used by tests and tools."""

    venue_account: Identity = "amm-venue"
    markets: List[MarketRecord] = field(default_factory=list)

    @property
    def account(self) -> Identity:
        return self.venue_account

    def authority(self) -> AuthorityCapability:
        return AuthorityCapability.signer(self.venue_account)

    def open_market(self, token: AssetId, token_amount: Amount, sol_amount: Amount) -> str:
        market_id = f"{self.venue_account}:{token}:{len(self.markets)}"
        self.markets.append(
            MarketRecord(market_id=market_id, token=token, token_amount=token_amount, sol_amount=sol_amount)
        )
        return market_id
