"""
Liquidity management planning: seed, resync and drain a pool.

Each planner is pure. It takes the pool and the custody balances the shell
read under the pool lock, and returns the `Settlement` to execute.
"""

from ..errors import InsufficientReserveError, InvalidAmountError, PoolStateError
from ..state.balances import NATIVE_ASSET, Amount, Identity
from ..state.pools import LiquidityPool, PoolStatus
from .params import DEFAULT_PARAMS, CurveParams
from .settlement import Party, Settlement


def is_already_seeded(vault_token_balance: Amount, vault_sol_balance: Amount) -> bool:
    """A pool counts as seeded when custody holds both assets."""
    return vault_token_balance > 0 and vault_sol_balance > 0


def plan_seed(
    pool: LiquidityPool,
    provider: Identity,
    provider_token_balance: Amount,
    params: CurveParams = DEFAULT_PARAMS,
    *,
    require_unseeded: bool = True,
) -> Settlement:
    """
    Plan the initial provisioning of a pool.

    Moves the provider's entire token balance into the token vault and
    `params.initial_pool_lamports` native units into the native vault:
        reserve_token = provider_token_balance
        reserve_sol = initial_pool_lamports

    Args:
        pool: Pool being seeded
        provider: Identity supplying both assets
        provider_token_balance: Provider's custody token balance
        params: Curve parameters
        require_unseeded: Reject pools already SEEDED. The `add_liquidity`
            dispatch passes False: an empty vault is re-seeded whatever the
            recorded status.

    Returns:
        Settlement with two caller-authorized legs

    Raises:
        PoolStateError: If the pool is migrated, or seeded while
            `require_unseeded` is set
        InvalidAmountError: If the provider holds no tokens
    """
    if pool.status == PoolStatus.MIGRATED or (require_unseeded and pool.status == PoolStatus.SEEDED):
        raise PoolStateError(f"Pool cannot be seeded in status {pool.status.value}")
    if provider_token_balance <= 0:
        raise InvalidAmountError(f"Provider holds no tokens to seed: {provider_token_balance}")

    settlement = Settlement(
        new_reserve_token=provider_token_balance,
        new_reserve_sol=params.initial_pool_lamports,
    )
    settlement.add_leg(pool.token, provider, pool.token_vault, provider_token_balance, Party.CALLER, Party.POOL)
    settlement.add_leg(
        NATIVE_ASSET, provider, pool.sol_vault, params.initial_pool_lamports, Party.CALLER, Party.POOL
    )
    return settlement


def plan_resync(pool: LiquidityPool, vault_token_balance: Amount, vault_sol_balance: Amount) -> Settlement:
    """
    Plan a reserve resynchronization: no deposit, reserves := custody balances.
    """
    if pool.status == PoolStatus.MIGRATED:
        raise PoolStateError("Pool has migrated; reserves are no longer tracked")
    return Settlement(new_reserve_token=vault_token_balance, new_reserve_sol=vault_sol_balance)


def plan_remove(
    pool: LiquidityPool,
    recipient: Identity,
    vault_token_balance: Amount,
    vault_sol_balance: Amount,
) -> Settlement:
    """
    Plan a full withdrawal: both vaults are drained to `recipient`.

    The ledger reserves committed afterwards are what custody then holds (zero),
    independent of the stored `total_supply`.
    """
    if pool.status == PoolStatus.MIGRATED:
        raise PoolStateError("Pool has migrated; nothing to withdraw")

    settlement = Settlement(new_reserve_token=0, new_reserve_sol=0)
    settlement.add_leg(pool.token, pool.token_vault, recipient, vault_token_balance, Party.POOL, Party.CALLER)
    settlement.add_leg(NATIVE_ASSET, pool.sol_vault, recipient, vault_sol_balance, Party.POOL, Party.CALLER)
    return settlement


def plan_migration(
    pool: LiquidityPool,
    venue_account: Identity,
    params: CurveParams = DEFAULT_PARAMS,
) -> Settlement:
    """
    Plan handing a pool's reserves to an external AMM venue.

    Requires `reserve_sol >= params.migration_min_sol`. Both ledger reserves
    move to the venue and are zeroed.

    Raises:
        PoolStateError: If the pool is not seeded
        InsufficientReserveError: If the native reserve is below the minimum
    """
    if pool.status != PoolStatus.SEEDED:
        raise PoolStateError(f"Pool cannot migrate in status {pool.status.value}")
    if pool.reserve_sol < params.migration_min_sol:
        raise InsufficientReserveError(
            f"Not enough native currency to migrate: {pool.reserve_sol} < {params.migration_min_sol}",
            requested=params.migration_min_sol,
            available=pool.reserve_sol,
        )

    settlement = Settlement(new_reserve_token=0, new_reserve_sol=0)
    settlement.add_leg(NATIVE_ASSET, pool.sol_vault, venue_account, pool.reserve_sol, Party.POOL, Party.VENUE)
    settlement.add_leg(pool.token, pool.token_vault, venue_account, pool.reserve_token, Party.POOL, Party.VENUE)
    return settlement
