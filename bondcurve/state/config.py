"""
Process-wide curve configuration: fee rate, administrator, accrued fees.
"""

from __future__ import annotations

from dataclasses import dataclass

from .balances import Amount, Identity


@dataclass(frozen=True)
class PoolConfig:
    """
    Fee configuration shared by every pool of one engine instance.

    `fee_rate` and `admin` are fixed at construction. `accrued_fees` is the
    withdrawable balance; `total_fees_collected` only ever grows and bounds it.
    """

    fee_rate: float
    admin: Identity
    accrued_fees: Amount = 0
    total_fees_collected: Amount = 0

    def __post_init__(self) -> None:
        if not isinstance(self.fee_rate, (int, float)) or isinstance(self.fee_rate, bool):
            raise TypeError("fee_rate must be a float")
        if not (0.0 <= float(self.fee_rate) < 1.0):
            raise ValueError(f"fee_rate must be in [0, 1): {self.fee_rate}")
        if not isinstance(self.admin, str) or not self.admin:
            raise ValueError("admin must be a non-empty string")
        for name, v in (
            ("accrued_fees", self.accrued_fees),
            ("total_fees_collected", self.total_fees_collected),
        ):
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.accrued_fees > self.total_fees_collected:
            raise ValueError("accrued_fees must be <= total_fees_collected")
