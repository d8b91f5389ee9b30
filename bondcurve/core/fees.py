"""
Protocol fee treasury (deterministic, integer-only transitions).

The treasury is a running balance on `PoolConfig`: trades credit it, the
administrator withdraws it in full. Functions here are pure; the exchange
shell performs the matching custody transfer and commits the returned config.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from ..errors import InsufficientFundsError, UnauthorizedError
from ..state.balances import Amount, Identity
from ..state.config import PoolConfig


@dataclass(frozen=True)
class FeeWithdrawal:
    amount: Amount
    recipient: Identity
    config: PoolConfig


def credit_fee(config: PoolConfig, fee: Amount) -> PoolConfig:
    """Return `config` with `fee` added to the accrued and lifetime totals."""
    if not isinstance(fee, int) or isinstance(fee, bool) or fee < 0:
        raise ValueError(f"fee must be a non-negative int, got {fee}")
    if fee == 0:
        return config
    return replace(
        config,
        accrued_fees=config.accrued_fees + fee,
        total_fees_collected=config.total_fees_collected + fee,
    )


def plan_withdrawal(config: PoolConfig, caller: Identity, treasury_balance: Amount) -> FeeWithdrawal:
    """
    Authorize a full withdrawal of the accrued fees.

    Raises:
        UnauthorizedError: If caller is not the configured administrator
        InsufficientFundsError: If the treasury holds less than the accrued amount
    """
    if caller != config.admin:
        raise UnauthorizedError(f"{caller!r} is not the fee administrator")
    if treasury_balance < config.accrued_fees:
        raise InsufficientFundsError(
            f"treasury balance ({treasury_balance}) < accrued fees ({config.accrued_fees})"
        )
    return FeeWithdrawal(
        amount=config.accrued_fees,
        recipient=config.admin,
        config=replace(config, accrued_fees=0),
    )
