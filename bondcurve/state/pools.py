"""
Pool state management for bonding-curve pools.

`LiquidityPool` doubles as the reserve ledger: `update_reserves` is the only
mutation the pricing and liquidity paths use on reserves.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import hashlib

from ..errors import ReserveUnderflowError
from .balances import AssetId, Amount, Identity


POOL_SEED_PREFIX = "liquidity_pool"
SOL_VAULT_PREFIX = "liquidity_sol_vault"
TREASURY_SEED = "curve_configuration"

DEFAULT_NONCE = 255


class PoolStatus(Enum):
    """Pool lifecycle."""
    CREATED = "CREATED"
    SEEDED = "SEEDED"
    DRAINED = "DRAINED"
    MIGRATED = "MIGRATED"


def derive_address(prefix: str, token: AssetId = "", *, nonce: int = DEFAULT_NONCE) -> Identity:
    """
    Deterministically derive a custody account identity.

        address = H(prefix || token || nonce)
    """
    if not isinstance(prefix, str) or not prefix:
        raise ValueError("prefix must be a non-empty string")
    if not isinstance(nonce, int) or isinstance(nonce, bool) or not (0 <= nonce <= 255):
        raise ValueError(f"nonce must be in [0, 255]: {nonce}")

    data = prefix.encode("utf-8") + token.encode("utf-8") + bytes([nonce])
    return "0x" + hashlib.sha256(data).hexdigest()


@dataclass
class LiquidityPool:
    """
    State of a bonding-curve pool.

    Attributes:
        creator: Identity that created the pool
        token: Token identity traded against the native asset
        total_supply: Fixed-point accounting unit, stamped on first provisioning
        reserve_token: Token reserve
        reserve_sol: Native-currency reserve
        nonce: Derivation nonce for the pool's custody accounts
        status: Lifecycle status
    """
    creator: Identity
    token: AssetId
    total_supply: Amount = 0
    reserve_token: Amount = 0
    reserve_sol: Amount = 0
    nonce: int = DEFAULT_NONCE
    status: PoolStatus = PoolStatus.CREATED

    def __post_init__(self):
        """Validate pool state invariants."""
        if not isinstance(self.token, str) or not self.token:
            raise ValueError("token must be a non-empty string")
        if not isinstance(self.creator, str) or not self.creator:
            raise ValueError("creator must be a non-empty string")
        for name in ("total_supply", "reserve_token", "reserve_sol"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
            if value < 0:
                raise ReserveUnderflowError(f"{name} must be non-negative: {value}")

    @property
    def token_vault(self) -> Identity:
        """Custody account holding the pool's token reserve."""
        return derive_address(POOL_SEED_PREFIX, self.token, nonce=self.nonce)

    @property
    def sol_vault(self) -> Identity:
        """Custody account holding the pool's native-currency reserve."""
        return derive_address(SOL_VAULT_PREFIX, self.token, nonce=self.nonce)

    def update_reserves(self, reserve_token: Amount, reserve_sol: Amount) -> None:
        """
        Overwrite both reserves.

        This is not a delta: callers pass the already computed post-state.

        Raises:
            ReserveUnderflowError: If either value is negative
        """
        for name, value in (("reserve_token", reserve_token), ("reserve_sol", reserve_sol)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
            if value < 0:
                raise ReserveUnderflowError(f"{name} would underflow: {value}")
        self.reserve_token = reserve_token
        self.reserve_sol = reserve_sol

    def snapshot(self) -> "LiquidityPool":
        """Return a detached copy (used for read-only pricing and rollback)."""
        return LiquidityPool(
            creator=self.creator,
            token=self.token,
            total_supply=self.total_supply,
            reserve_token=self.reserve_token,
            reserve_sol=self.reserve_sol,
            nonce=self.nonce,
            status=self.status,
        )

    def __repr__(self) -> str:
        return (
            f"LiquidityPool(token={self.token[:16]}, "
            f"reserves=(token={self.reserve_token}, sol={self.reserve_sol}), "
            f"total_supply={self.total_supply}, status={self.status.value})"
        )
