# [TESTER] v1

from __future__ import annotations

import math
import random

import pytest

from bondcurve.core.params import DEFAULT_PARAMS, CurveParams
from bondcurve.core.pricing import (
    PricingMode,
    TradeDirection,
    quote,
    quote_buy,
    quote_sell,
    round_half_away,
    select_mode,
    spot_price,
)
from bondcurve.errors import InsufficientReserveError, InvalidAmountError
from bondcurve.state.pools import LiquidityPool


def test_simple_buy_matches_reference_example() -> None:
    q = quote_buy(reserve_token=500_000_000, reserve_sol=10_000_000, amount_in=1_000_000, fee_rate=0.01)

    assert q.mode == PricingMode.SIMPLE
    assert q.direction == TradeDirection.BUY
    assert q.fee == 10_000
    assert q.amount_out == 45_040_946
    assert q.payout == q.amount_out
    # Native reserve grows by the gross input, fee included.
    assert q.new_reserve_sol == 11_000_000
    assert q.new_reserve_token == 500_000_000 - 45_040_946


def test_simple_sell_charges_fee_on_rounded_output() -> None:
    q = quote_sell(reserve_token=454_959_054, reserve_sol=11_000_000, amount_in=45_040_946, fee_rate=0.01)

    # 45_040_946 * 11_000_000 / 500_000_000 = 990_900.812
    assert q.amount_out == 990_901
    assert q.fee == 9_909
    assert q.payout == 990_901 - 9_909
    assert q.new_reserve_token == 500_000_000
    assert q.new_reserve_sol == 11_000_000 - 990_901


def test_select_mode_threshold_is_inclusive_for_virtual() -> None:
    assert select_mode(DEFAULT_PARAMS.mode_threshold - 1) == PricingMode.SIMPLE
    assert select_mode(DEFAULT_PARAMS.mode_threshold) == PricingMode.VIRTUAL

    small = CurveParams(mode_threshold=1_000)
    assert select_mode(999, small) == PricingMode.SIMPLE
    assert select_mode(1_000, small) == PricingMode.VIRTUAL


def test_virtual_buy_follows_scaled_offset_formula() -> None:
    reserve_token = 10**18
    reserve_sol = 10_000_000
    amount_in = 1_000_000_000
    fee_rate = 0.01

    q = quote_buy(reserve_token, reserve_sol, amount_in, fee_rate)
    assert q.mode == PricingMode.VIRTUAL

    p = DEFAULT_PARAMS
    net = amount_in - amount_in * fee_rate
    v_sol = reserve_sol / p.scale + p.virtual_sol_offset
    v_tok = reserve_token / p.scale + p.virtual_token_offset
    expected = (v_tok - v_sol * v_tok / (v_sol + net / p.scale)) * p.scale
    assert q.amount_out == round_half_away(expected)
    assert 0 < q.amount_out < reserve_token
    assert q.new_reserve_sol == reserve_sol + amount_in


def test_virtual_sell_mirrors_buy_with_swapped_reserves() -> None:
    reserve_token = 10**18
    reserve_sol = 5_000_000_000
    amount_in = 10**15

    q = quote_sell(reserve_token, reserve_sol, amount_in, 0.0)
    assert q.mode == PricingMode.VIRTUAL

    p = DEFAULT_PARAMS
    v_sol = reserve_sol / p.scale + p.virtual_sol_offset
    v_tok = reserve_token / p.scale + p.virtual_token_offset
    expected = (v_sol - v_tok * v_sol / (v_tok + amount_in / p.scale)) * p.scale
    assert q.amount_out == round_half_away(expected)
    assert q.fee == 0
    assert q.payout == q.amount_out


def test_mode_can_be_forced() -> None:
    simple = quote_buy(10**18, 10_000_000, 1_000, 0.0, mode=PricingMode.SIMPLE)
    virtual = quote_buy(10**18, 10_000_000, 1_000, 0.0)
    assert simple.mode == PricingMode.SIMPLE
    assert virtual.mode == PricingMode.VIRTUAL
    assert simple.amount_out != virtual.amount_out


@pytest.mark.parametrize("amount_in", [0, -1, -1_000_000])
def test_non_positive_amount_is_rejected(amount_in: int) -> None:
    with pytest.raises(InvalidAmountError):
        quote_buy(500_000_000, 10_000_000, amount_in, 0.01)
    with pytest.raises(InvalidAmountError):
        quote_sell(500_000_000, 10_000_000, amount_in, 0.01)


def test_non_int_amount_is_rejected() -> None:
    with pytest.raises(TypeError):
        quote_buy(500_000_000, 10_000_000, 1.5, 0.01)  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        quote_sell(500_000_000, 10_000_000, True, 0.01)  # type: ignore[arg-type]


def test_sell_larger_than_token_reserve_is_rejected() -> None:
    with pytest.raises(InsufficientReserveError) as exc:
        quote_sell(reserve_token=100, reserve_sol=1_000, amount_in=101, fee_rate=0.0)
    assert exc.value.requested == 101
    assert exc.value.available == 100


def test_virtual_sell_cannot_pay_out_more_than_native_reserve() -> None:
    # The virtual native offset prices tokens above what an empty vault holds.
    with pytest.raises(InsufficientReserveError):
        quote_sell(reserve_token=10**15, reserve_sol=0, amount_in=10**15, fee_rate=0.0)


def test_invalid_fee_rate_is_rejected() -> None:
    with pytest.raises(ValueError):
        quote_buy(500_000_000, 10_000_000, 1_000, 1.0)
    with pytest.raises(ValueError):
        quote_sell(500_000_000, 10_000_000, 1_000, -0.01)


def test_quote_against_pool_dispatches_on_direction() -> None:
    pool = LiquidityPool(creator="c", token="tok", reserve_token=500_000_000, reserve_sol=10_000_000)

    buy = quote(pool, TradeDirection.BUY, 1_000_000, 0.01)
    sell = quote(pool, TradeDirection.SELL, 1_000_000, 0.01)

    assert buy == quote_buy(500_000_000, 10_000_000, 1_000_000, 0.01)
    assert sell == quote_sell(500_000_000, 10_000_000, 1_000_000, 0.01)
    # Pricing never mutates the pool.
    assert (pool.reserve_token, pool.reserve_sol) == (500_000_000, 10_000_000)


@pytest.mark.parametrize(
    "value,expected",
    [
        (2.5, 3),
        (-2.5, -3),
        (2.4999, 2),
        (0.5, 1),
        (-0.5, -1),
        (0.0, 0),
        (7.0, 7),
        (0.49999999999999994, 0),
        (float(2**52 + 1), 2**52 + 1),
        (-float(2**52 + 1), -(2**52 + 1)),
    ],
)
def test_round_half_away_from_zero(value: float, expected: int) -> None:
    assert round_half_away(value) == expected


def test_large_virtual_output_is_not_rounded_up() -> None:
    # raw output is the odd integer 4503601576192617.0, just above 2**52
    q = quote_buy(10**18, 10_000_000, 107_039_871, 0.01)
    assert q.mode == PricingMode.VIRTUAL
    assert q.amount_out == 4_503_601_576_192_617


def test_amounts_beyond_u64_are_rejected() -> None:
    with pytest.raises(InvalidAmountError):
        quote_buy(500_000_000, 10_000_000, 10**400, 0.01)
    with pytest.raises(InvalidAmountError):
        quote_sell(500_000_000, 10_000_000, 2**64, 0.01)
    with pytest.raises(ValueError):
        quote_buy(2**64, 10_000_000, 1, 0.01)


def test_round_half_away_rejects_non_finite() -> None:
    with pytest.raises(ValueError):
        round_half_away(math.inf)
    with pytest.raises(ValueError):
        round_half_away(math.nan)


def test_spot_price_in_both_modes() -> None:
    assert spot_price(500_000_000, 10_000_000) == pytest.approx(0.02)
    assert spot_price(0, 10_000_000) == math.inf

    p = DEFAULT_PARAMS
    expected = p.virtual_sol_offset / (10**15 / p.scale + p.virtual_token_offset)
    assert spot_price(10**15, 0) == pytest.approx(expected)


def test_spot_price_rises_after_a_buy() -> None:
    before = spot_price(500_000_000, 10_000_000)
    q = quote_buy(500_000_000, 10_000_000, 1_000_000, 0.01)
    after = spot_price(q.new_reserve_token, q.new_reserve_sol)
    assert after > before


def test_buy_then_sell_never_returns_more_than_spent_seeded_random() -> None:
    rng = random.Random(1337)
    for _ in range(500):
        reserve_token = rng.randint(10**9, 10**14)
        reserve_sol = rng.randint(10**6, 10**8)
        amount_in = rng.randint(1, reserve_sol // 2)
        fee_rate = rng.choice([0.0, 0.001, 0.01, 0.05])

        b = quote_buy(reserve_token, reserve_sol, amount_in, fee_rate)
        if b.amount_out == 0:
            continue
        s = quote_sell(b.new_reserve_token, b.new_reserve_sol, b.amount_out, fee_rate, mode=b.mode)
        assert s.payout <= amount_in, (reserve_token, reserve_sol, amount_in, fee_rate)


def test_virtual_buy_then_sell_never_returns_more_than_spent_seeded_random() -> None:
    rng = random.Random(4242)
    for _ in range(500):
        reserve_token = rng.randint(10**17, 10**18)
        reserve_sol = rng.randint(0, 10**11)
        amount_in = rng.randint(1, 10**9)
        fee_rate = rng.choice([0.0, 0.01])

        b = quote_buy(reserve_token, reserve_sol, amount_in, fee_rate, mode=PricingMode.VIRTUAL)
        if b.amount_out == 0:
            continue
        s = quote_sell(
            b.new_reserve_token, b.new_reserve_sol, b.amount_out, fee_rate, mode=PricingMode.VIRTUAL
        )
        assert s.payout <= amount_in, (reserve_token, reserve_sol, amount_in, fee_rate)
