# [TESTER] v1

from __future__ import annotations

import pytest

from bondcurve.core.pricing import quote_buy, quote_sell
from bondcurve.core.settlement import Party, Settlement, TransferLeg, plan_trade
from bondcurve.state.balances import NATIVE_ASSET
from bondcurve.state.pools import LiquidityPool


def _pool() -> LiquidityPool:
    return LiquidityPool(creator="c", token="tok", reserve_token=500_000_000, reserve_sol=10_000_000)


def test_buy_settlement_splits_input_between_vault_and_treasury() -> None:
    pool = _pool()
    q = quote_buy(pool.reserve_token, pool.reserve_sol, 1_000_000, 0.01)
    s = plan_trade(q, pool, "trader", "treasury")

    assert s.fee == 10_000
    assert (s.new_reserve_token, s.new_reserve_sol) == (q.new_reserve_token, q.new_reserve_sol)
    assert [(l.asset, l.source, l.destination, l.amount) for l in s.legs] == [
        (NATIVE_ASSET, "trader", pool.sol_vault, 990_000),
        (NATIVE_ASSET, "trader", "treasury", 10_000),
        ("tok", pool.token_vault, "trader", 45_040_946),
    ]


def test_sell_settlement_pays_fee_out_of_the_vault() -> None:
    pool = _pool()
    q = quote_sell(pool.reserve_token, pool.reserve_sol, 1_000_000, 0.01)
    s = plan_trade(q, pool, "trader", "treasury")

    assert [(l.asset, l.source, l.destination, l.amount, l.payer) for l in s.legs] == [
        ("tok", "trader", pool.token_vault, 1_000_000, Party.CALLER),
        (NATIVE_ASSET, pool.sol_vault, "trader", q.payout, Party.POOL),
        (NATIVE_ASSET, pool.sol_vault, "treasury", q.fee, Party.POOL),
    ]
    assert q.payout + q.fee == q.amount_out


def test_zero_fee_leg_is_omitted() -> None:
    pool = _pool()
    q = quote_buy(pool.reserve_token, pool.reserve_sol, 1_000_000, 0.0)
    s = plan_trade(q, pool, "trader", "treasury")
    assert len(s.legs) == 2
    assert all(l.destination != "treasury" for l in s.legs)


def test_reversed_leg_swaps_endpoints_and_parties() -> None:
    leg = TransferLeg("tok", "a", "b", 5, Party.CALLER, Party.POOL)
    back = leg.reversed()
    assert (back.source, back.destination, back.amount) == ("b", "a", 5)
    assert (back.payer, back.payee) == (Party.POOL, Party.CALLER)
    assert back.reversed() == leg


def test_leg_amount_validation() -> None:
    with pytest.raises(ValueError):
        TransferLeg("tok", "a", "b", -1, Party.CALLER, Party.POOL)
    with pytest.raises(TypeError):
        TransferLeg("tok", "a", "b", 1.0, Party.CALLER, Party.POOL)  # type: ignore[arg-type]


def test_add_leg_skips_zero_amounts() -> None:
    s = Settlement()
    s.add_leg("tok", "a", "b", 0, Party.CALLER, Party.POOL)
    s.add_leg("tok", "a", "b", 3, Party.CALLER, Party.POOL)
    assert len(s.legs) == 1
