"""
State management for bondcurve pools
"""

from .balances import NATIVE_ASSET, BalanceTable
from .config import PoolConfig
from .lp import LPTable
from .pools import LiquidityPool, PoolStatus, derive_address

__all__ = [
    "NATIVE_ASSET",
    "BalanceTable",
    "PoolConfig",
    "LPTable",
    "LiquidityPool",
    "PoolStatus",
    "derive_address",
]
