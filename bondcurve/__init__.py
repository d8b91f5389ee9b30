"""
Bonding-curve exchange engine
"""

from .errors import (
    BondingCurveError,
    CustodyFailureError,
    InsufficientFundsError,
    InsufficientReserveError,
    InvalidAmountError,
    PoolStateError,
    ReserveUnderflowError,
    UnauthorizedError,
)

__all__ = [
    "BondingCurveError",
    "CustodyFailureError",
    "InsufficientFundsError",
    "InsufficientReserveError",
    "InvalidAmountError",
    "PoolStateError",
    "ReserveUnderflowError",
    "UnauthorizedError",
]
