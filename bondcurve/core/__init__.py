"""
Core bonding-curve algorithms (pure)
"""

from .params import CurveParams, DEFAULT_PARAMS, params_from_mapping
from .pricing import (
    PricingMode,
    Quote,
    TradeDirection,
    quote,
    quote_buy,
    quote_sell,
    round_half_away,
    select_mode,
    spot_price,
)
from .settlement import Party, Settlement, TransferLeg, plan_trade
from .fees import FeeWithdrawal, credit_fee, plan_withdrawal
from .liquidity import (
    is_already_seeded,
    plan_migration,
    plan_remove,
    plan_resync,
    plan_seed,
)

__all__ = [
    "CurveParams",
    "DEFAULT_PARAMS",
    "params_from_mapping",
    "PricingMode",
    "Quote",
    "TradeDirection",
    "quote",
    "quote_buy",
    "quote_sell",
    "round_half_away",
    "select_mode",
    "spot_price",
    "Party",
    "Settlement",
    "TransferLeg",
    "plan_trade",
    "FeeWithdrawal",
    "credit_fee",
    "plan_withdrawal",
    "is_already_seeded",
    "plan_migration",
    "plan_remove",
    "plan_resync",
    "plan_seed",
]
