#!/usr/bin/env python3

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bondcurve.errors import BondingCurveError
from bondcurve.integration import BondingCurveExchange, InMemoryCustody, InMemoryVenue, load_settings
from bondcurve.state.balances import NATIVE_ASSET


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Run a bonding-curve pool through its lifecycle in memory.")
    ap.add_argument("--settings", type=Path, default=None, help="YAML settings file (fee_rate, admin, curve)")
    ap.add_argument("--buy", type=int, default=1_000_000, help="native units to spend per buy")
    ap.add_argument("--rounds", type=int, default=3, help="number of buy/sell rounds")
    ap.add_argument("--verbose", action="store_true", help="log at DEBUG level")
    return ap.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    custody = InMemoryCustody()
    if args.settings is not None:
        exchange = BondingCurveExchange.from_settings(load_settings(args.settings), custody)
    else:
        exchange = BondingCurveExchange(custody, fee_rate=0.01, admin="admin")

    token = "0x" + "11" * 32
    creator = "creator"
    trader = "trader"
    custody.mint(creator, token, 500_000_000)
    custody.mint(creator, NATIVE_ASSET, 10_000_000)
    custody.mint(trader, NATIVE_ASSET, args.buy * args.rounds)

    try:
        exchange.create_pool(creator, token)
        seeded = exchange.add_liquidity(creator, token)
        print(f"[curve-demo] seeded reserve_token={seeded.reserve_token} reserve_sol={seeded.reserve_sol}")

        for i in range(args.rounds):
            bought = exchange.buy(trader, token, args.buy)
            print(
                f"[curve-demo] round={i} buy in={bought.amount_in} out={bought.amount_out} "
                f"fee={bought.fee} mode={bought.mode.value}"
            )
            sold = exchange.sell(trader, token, bought.amount_out // 2)
            print(f"[curve-demo] round={i} sell in={sold.amount_in} payout={sold.payout} fee={sold.fee}")

        accrued = exchange.config.accrued_fees
        withdrawn = exchange.withdraw_fees(exchange.config.admin)
        print(f"[curve-demo] accrued_fees={accrued} withdrawn={withdrawn}")

        pool = exchange.get_pool(token)
        print(f"[curve-demo] final {pool!r} spot_price={exchange.spot_price(token):.6f}")

        venue = InMemoryVenue()
        if pool.reserve_sol >= exchange.params.migration_min_sol:
            receipt = exchange.migrate(token, venue)
            print(f"[curve-demo] migrated market={receipt.market_id}")
    except BondingCurveError as exc:
        print(f"[curve-demo] FAIL: {type(exc).__name__}: {exc}")
        return 1

    print("[curve-demo] OK")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
