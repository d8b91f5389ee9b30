"""
Bonding-curve pricing engine.

Pure computation: given a direction, an input amount and the current reserves,
return the counter-amount, the fee and the post-trade reserves. Nothing here
mutates state.

Algorithm Design:
- Two strategies selected by `select_mode` on `reserve_token`:
  - SIMPLE: constant product on the real reserves (small pools).
  - VIRTUAL: constant product on real reserves scaled down by `params.scale`
    and shifted by fixed virtual offsets (production pools).
- Arithmetic: IEEE double precision, one round-half-away-from-zero at the end.
- Time Complexity: O(1) per quote
- Invariant: amount_out never exceeds the counter-reserve
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..errors import InsufficientReserveError, InvalidAmountError
from ..state.balances import Amount
from ..state.pools import LiquidityPool
from .params import DEFAULT_PARAMS, MAX_AMOUNT, CurveParams

logger = logging.getLogger(__name__)


class PricingMode(Enum):
    SIMPLE = "SIMPLE"
    VIRTUAL = "VIRTUAL"


class TradeDirection(Enum):
    BUY = "BUY"  # native in, token out
    SELL = "SELL"  # token in, native out


@dataclass(frozen=True)
class Quote:
    """
    Result of pricing one trade.

    Attributes:
        direction: BUY or SELL
        mode: Strategy that produced the quote
        amount_in: Gross input (native units for BUY, token units for SELL)
        amount_out: Gross output taken from the counter-reserve
        fee: Protocol fee in native units, rounded
        fee_exact: Unrounded fee as used inside the formula
        payout: What the trader receives (tokens for BUY, native net of fee for SELL)
        new_reserve_token: Token reserve after the trade
        new_reserve_sol: Native reserve after the trade
    """
    direction: TradeDirection
    mode: PricingMode
    amount_in: Amount
    amount_out: Amount
    fee: Amount
    fee_exact: float
    payout: Amount
    new_reserve_token: Amount
    new_reserve_sol: Amount


def select_mode(reserve_token: Amount, params: CurveParams = DEFAULT_PARAMS) -> PricingMode:
    """Return the strategy for a pool holding `reserve_token` tokens."""
    if reserve_token < params.mode_threshold:
        return PricingMode.SIMPLE
    return PricingMode.VIRTUAL


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    if not math.isfinite(value):
        raise ValueError(f"cannot round non-finite value: {value}")
    # Compare the fractional part instead of adding 0.5: the sum can itself
    # round (odd integers >= 2**52, and 0.49999999999999994).
    magnitude = abs(value)
    whole = math.floor(magnitude)
    if magnitude - whole >= 0.5:
        whole += 1
    return int(math.copysign(whole, value))


def _require_amount(name: str, value: Amount) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")


def _validate_inputs(reserve_token: Amount, reserve_sol: Amount, amount_in: Amount, fee_rate: float) -> None:
    _require_amount("reserve_token", reserve_token)
    _require_amount("reserve_sol", reserve_sol)
    _require_amount("amount_in", amount_in)
    if reserve_token < 0 or reserve_sol < 0:
        raise ValueError(f"Reserves must be non-negative: ({reserve_token}, {reserve_sol})")
    if reserve_token > MAX_AMOUNT or reserve_sol > MAX_AMOUNT:
        raise ValueError(f"Reserves exceed {MAX_AMOUNT}: ({reserve_token}, {reserve_sol})")
    if not (0.0 <= fee_rate < 1.0):
        raise ValueError(f"fee_rate must be in [0, 1): {fee_rate}")
    if amount_in <= 0:
        raise InvalidAmountError(f"amount_in must be positive: {amount_in}")
    if amount_in > MAX_AMOUNT:
        raise InvalidAmountError(f"amount_in exceeds {MAX_AMOUNT}: {amount_in}")


def quote_buy(
    reserve_token: Amount,
    reserve_sol: Amount,
    amount_in: Amount,
    fee_rate: float,
    params: CurveParams = DEFAULT_PARAMS,
    *,
    mode: Optional[PricingMode] = None,
) -> Quote:
    """
    Price a buy: `amount_in` native units in, tokens out.

    The fee is taken from the input before pricing:
        fee = amount_in * fee_rate
        SIMPLE:  out = round((amount_in - fee) * R_t / (R_s + (amount_in - fee)))
        VIRTUAL: v_in = R_s/scale + v_sol, v_out = R_t/scale + v_tok
                 v_out' = v_in * v_out / (v_in + (amount_in - fee)/scale)
                 out = round((v_out - v_out') * scale)

    The native reserve grows by the full `amount_in`.

    Raises:
        InvalidAmountError: If amount_in is not positive or exceeds MAX_AMOUNT
        InsufficientReserveError: If out exceeds reserve_token
    """
    _validate_inputs(reserve_token, reserve_sol, amount_in, fee_rate)
    if mode is None:
        mode = select_mode(reserve_token, params)

    fee_exact = amount_in * fee_rate
    net_in = amount_in - fee_exact

    if mode == PricingMode.SIMPLE:
        raw_out = (net_in * reserve_token) / (reserve_sol + net_in)
    else:
        v_in = reserve_sol / params.scale + params.virtual_sol_offset
        v_out = reserve_token / params.scale + params.virtual_token_offset
        v_out_after = (v_in * v_out) / (v_in + net_in / params.scale)
        raw_out = (v_out - v_out_after) * params.scale
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("buy virtual reserves: in=%s out=%s out_after=%s", v_in, v_out, v_out_after)

    amount_out = round_half_away(raw_out)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "buy mode=%s amount_in=%d fee=%s reserve_sol=%d reserve_token=%d amount_out=%d",
            mode.value, amount_in, fee_exact, reserve_sol, reserve_token, amount_out,
        )

    if amount_out > reserve_token:
        raise InsufficientReserveError(
            f"Not enough tokens in pool: amount_out ({amount_out}) > reserve_token ({reserve_token})",
            requested=amount_out,
            available=reserve_token,
        )

    return Quote(
        direction=TradeDirection.BUY,
        mode=mode,
        amount_in=amount_in,
        amount_out=amount_out,
        fee=round_half_away(fee_exact),
        fee_exact=fee_exact,
        payout=amount_out,
        new_reserve_token=reserve_token - amount_out,
        new_reserve_sol=reserve_sol + amount_in,
    )


def quote_sell(
    reserve_token: Amount,
    reserve_sol: Amount,
    amount_in: Amount,
    fee_rate: float,
    params: CurveParams = DEFAULT_PARAMS,
    *,
    mode: Optional[PricingMode] = None,
) -> Quote:
    """
    Price a sell: `amount_in` tokens in, native units out.

    Mirror of `quote_buy` with the reserves swapped. The fee is charged on the
    rounded output and deducted from the payout, not from the input:
        fee = round(amount_out * fee_rate)
        payout = amount_out - fee

    Raises:
        InvalidAmountError: If amount_in is not positive or exceeds MAX_AMOUNT
        InsufficientReserveError: If amount_in exceeds reserve_token, or the
            output exceeds reserve_sol
    """
    _validate_inputs(reserve_token, reserve_sol, amount_in, fee_rate)
    if amount_in > reserve_token:
        raise InsufficientReserveError(
            f"Token amount to sell too big: amount_in ({amount_in}) > reserve_token ({reserve_token})",
            requested=amount_in,
            available=reserve_token,
        )
    if mode is None:
        mode = select_mode(reserve_token, params)

    if mode == PricingMode.SIMPLE:
        raw_out = (amount_in * reserve_sol) / (reserve_token + amount_in)
    else:
        v_out = reserve_sol / params.scale + params.virtual_sol_offset
        v_in = reserve_token / params.scale + params.virtual_token_offset
        v_out_after = (v_in * v_out) / (v_in + amount_in / params.scale)
        raw_out = (v_out - v_out_after) * params.scale
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("sell virtual reserves: in=%s out=%s out_after=%s", v_in, v_out, v_out_after)

    amount_out = round_half_away(raw_out)
    fee_exact = amount_out * fee_rate
    fee = round_half_away(fee_exact)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(
            "sell mode=%s amount_in=%d reserve_token=%d reserve_sol=%d amount_out=%d fee=%d",
            mode.value, amount_in, reserve_token, reserve_sol, amount_out, fee,
        )

    if amount_out > reserve_sol:
        raise InsufficientReserveError(
            f"Not enough native currency in pool: amount_out ({amount_out}) > reserve_sol ({reserve_sol})",
            requested=amount_out,
            available=reserve_sol,
        )

    return Quote(
        direction=TradeDirection.SELL,
        mode=mode,
        amount_in=amount_in,
        amount_out=amount_out,
        fee=fee,
        fee_exact=fee_exact,
        payout=amount_out - fee,
        new_reserve_token=reserve_token + amount_in,
        new_reserve_sol=reserve_sol - amount_out,
    )


def quote(
    pool: LiquidityPool,
    direction: TradeDirection,
    amount_in: Amount,
    fee_rate: float,
    params: CurveParams = DEFAULT_PARAMS,
    *,
    mode: Optional[PricingMode] = None,
) -> Quote:
    """Price a trade against a pool's current reserves."""
    fn = quote_buy if direction == TradeDirection.BUY else quote_sell
    return fn(pool.reserve_token, pool.reserve_sol, amount_in, fee_rate, params, mode=mode)


def spot_price(
    reserve_token: Amount,
    reserve_sol: Amount,
    params: CurveParams = DEFAULT_PARAMS,
    *,
    mode: Optional[PricingMode] = None,
) -> float:
    """
    Marginal price in native units per token unit, before fees.

    Returns `math.inf` for a simple-mode pool with no tokens left.
    """
    if reserve_token < 0 or reserve_sol < 0:
        raise ValueError(f"Reserves must be non-negative: ({reserve_token}, {reserve_sol})")
    if mode is None:
        mode = select_mode(reserve_token, params)
    if mode == PricingMode.SIMPLE:
        if reserve_token == 0:
            return math.inf
        return reserve_sol / reserve_token
    v_sol = reserve_sol / params.scale + params.virtual_sol_offset
    v_token = reserve_token / params.scale + params.virtual_token_offset
    if v_token == 0:
        return math.inf
    return v_sol / v_token
