"""
Protocol constants for the bonding curve, injected rather than hard-coded.

Defaults reproduce the production deployment. Tests build smaller
`CurveParams` to exercise either pricing mode with small numbers.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


# Production values.
MODE_THRESHOLD = 1_000_000_000_000_000  # reserve_token below this prices in simple mode
VIRTUAL_SOL_OFFSET = 30.0
VIRTUAL_TOKEN_OFFSET = 279_900_000.0
FIXED_POINT_SCALE = 1_000_000_000.0
INITIAL_LAMPORTS_FOR_POOL = 10_000_000  # 0.01 of the native asset
TOTAL_SUPPLY_UNIT = 1_000_000_000_000_000_000
MIGRATION_MIN_SOL = 80_000_000_000
MAX_AMOUNT = 2**64 - 1  # amounts and reserves are u64 on chain


@dataclass(frozen=True)
class CurveParams:
    mode_threshold: int = MODE_THRESHOLD
    virtual_sol_offset: float = VIRTUAL_SOL_OFFSET
    virtual_token_offset: float = VIRTUAL_TOKEN_OFFSET
    scale: float = FIXED_POINT_SCALE
    initial_pool_lamports: int = INITIAL_LAMPORTS_FOR_POOL
    total_supply_unit: int = TOTAL_SUPPLY_UNIT
    migration_min_sol: int = MIGRATION_MIN_SOL

    def __post_init__(self) -> None:
        for name in ("mode_threshold", "initial_pool_lamports", "total_supply_unit", "migration_min_sol"):
            v = getattr(self, name)
            if not isinstance(v, int) or isinstance(v, bool):
                raise TypeError(f"{name} must be an int")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        for name in ("virtual_sol_offset", "virtual_token_offset", "scale"):
            v = getattr(self, name)
            if not isinstance(v, (int, float)) or isinstance(v, bool):
                raise TypeError(f"{name} must be a number")
            if v < 0:
                raise ValueError(f"{name} must be non-negative: {v}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive: {self.scale}")


def params_from_mapping(data: Mapping[str, Any]) -> CurveParams:
    """Build `CurveParams` from a plain mapping; unknown keys are rejected."""
    known = {f.name for f in fields(CurveParams)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown curve parameter(s): {', '.join(unknown)}")
    return CurveParams(**dict(data))


DEFAULT_PARAMS = CurveParams()
