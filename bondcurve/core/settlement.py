"""
Settlement data structures: the custody movements an operation requires.

Pricing and liquidity planning produce a `Settlement`; the exchange shell
executes its legs through the custody gateway and only then commits reserves.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..state.balances import NATIVE_ASSET, Amount, AssetId, Identity
from ..state.pools import LiquidityPool
from .pricing import Quote, TradeDirection


class Party(Enum):
    """Whose authority debits the source account of a leg."""
    CALLER = "CALLER"
    POOL = "POOL"
    TREASURY = "TREASURY"
    VENUE = "VENUE"


@dataclass(frozen=True)
class TransferLeg:
    """
    One atomic custody movement.

    Attributes:
        asset: Asset identifier (token identity or NATIVE_ASSET)
        source: Account debited
        destination: Account credited
        amount: Non-negative amount
        payer: Party whose capability authorizes debiting `source`
        payee: Party whose capability authorizes reversing the leg
    """
    asset: AssetId
    source: Identity
    destination: Identity
    amount: Amount
    payer: Party
    payee: Party

    def __post_init__(self) -> None:
        if not isinstance(self.amount, int) or isinstance(self.amount, bool):
            raise TypeError("amount must be an int")
        if self.amount < 0:
            raise ValueError(f"amount must be non-negative: {self.amount}")

    def reversed(self) -> "TransferLeg":
        """The compensating leg that undoes this one."""
        return TransferLeg(
            asset=self.asset,
            source=self.destination,
            destination=self.source,
            amount=self.amount,
            payer=self.payee,
            payee=self.payer,
        )


@dataclass
class Settlement:
    """
    Planned effect of one operation.

    Attributes:
        legs: Custody movements in execution order
        new_reserve_token: Token reserve to commit once all legs succeed
        new_reserve_sol: Native reserve to commit once all legs succeed
        fee: Fee to credit to the treasury
    """
    legs: List[TransferLeg] = field(default_factory=list)
    new_reserve_token: Optional[Amount] = None
    new_reserve_sol: Optional[Amount] = None
    fee: Amount = 0

    def add_leg(
        self,
        asset: AssetId,
        source: Identity,
        destination: Identity,
        amount: Amount,
        payer: Party,
        payee: Party,
    ) -> None:
        """Append a leg; zero-amount legs are skipped."""
        if amount == 0:
            return
        self.legs.append(
            TransferLeg(
                asset=asset,
                source=source,
                destination=destination,
                amount=amount,
                payer=payer,
                payee=payee,
            )
        )


def plan_trade(quote: Quote, pool: LiquidityPool, caller: Identity, treasury: Identity) -> Settlement:
    """
    Turn a priced quote into custody legs plus the reserves to commit.

    Inflows from the caller are ordered before outflows from the pool so a
    failing payout can be compensated with pool authority.
    """
    settlement = Settlement(
        new_reserve_token=quote.new_reserve_token,
        new_reserve_sol=quote.new_reserve_sol,
        fee=quote.fee,
    )
    if quote.direction == TradeDirection.BUY:
        settlement.add_leg(NATIVE_ASSET, caller, pool.sol_vault, quote.amount_in - quote.fee, Party.CALLER, Party.POOL)
        settlement.add_leg(NATIVE_ASSET, caller, treasury, quote.fee, Party.CALLER, Party.TREASURY)
        settlement.add_leg(pool.token, pool.token_vault, caller, quote.payout, Party.POOL, Party.CALLER)
    else:
        settlement.add_leg(pool.token, caller, pool.token_vault, quote.amount_in, Party.CALLER, Party.POOL)
        settlement.add_leg(NATIVE_ASSET, pool.sol_vault, caller, quote.payout, Party.POOL, Party.CALLER)
        settlement.add_leg(NATIVE_ASSET, pool.sol_vault, treasury, quote.fee, Party.POOL, Party.TREASURY)
    return settlement
