"""Exception types for the bonding-curve engine.

Every public operation either commits fully or raises one of these with no
state mutated. Callers decide whether to retry with different parameters.
"""

from __future__ import annotations


class BondingCurveError(Exception):
    """Base class for all engine rejections."""


class InvalidAmountError(BondingCurveError):
    """Raised when a trade or deposit amount is zero or negative."""


class InsufficientReserveError(BondingCurveError):
    """Raised when a computed output exceeds the available counter-reserve."""

    def __init__(self, message: str, *, requested: int = 0, available: int = 0) -> None:
        self.requested = requested
        self.available = available
        super().__init__(message)


class InsufficientFundsError(BondingCurveError):
    """Raised when the treasury holds less than the accrued fee balance."""


class UnauthorizedError(BondingCurveError):
    """Raised when a caller lacks the authority an operation requires."""


class CustodyFailureError(BondingCurveError):
    """Raised when the custody collaborator rejects a transfer."""


class PoolStateError(BondingCurveError):
    """Raised when the pool lifecycle does not permit the operation."""


class ReserveUnderflowError(BondingCurveError, ArithmeticError):
    """Raised when a reserve transition would go below zero."""
