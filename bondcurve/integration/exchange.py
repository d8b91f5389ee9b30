"""
Bonding-curve exchange (imperative shell around the functional core).

Every public operation:
- takes the lock of the one pool it touches (pools never share a lock),
- prices / plans against the pool's current state with the pure core,
- executes the planned custody legs, reversing completed legs if one fails,
- only then commits reserves and the fee treasury.

A rejected operation raises a `BondingCurveError` and leaves reserves, the
treasury and custody balances as they were.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple

from ..core.fees import credit_fee, plan_withdrawal
from ..core.liquidity import is_already_seeded, plan_migration, plan_remove, plan_resync, plan_seed
from ..core.params import DEFAULT_PARAMS, CurveParams
from ..core.pricing import PricingMode, Quote, TradeDirection, spot_price
from ..core.pricing import quote as price_trade
from ..core.settlement import Party, Settlement, TransferLeg, plan_trade
from ..errors import CustodyFailureError, InvalidAmountError, PoolStateError
from ..state.balances import NATIVE_ASSET, Amount, AssetId, Identity
from ..state.config import PoolConfig
from ..state.lp import LPTable
from ..state.pools import TREASURY_SEED, LiquidityPool, PoolStatus, derive_address
from .custody import AuthorityCapability, CustodyError, CustodyGateway
from .migration import MigrationVenue
from .settings import ExchangeSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TradeReceipt:
    token: AssetId
    direction: TradeDirection
    mode: PricingMode
    amount_in: Amount
    amount_out: Amount
    fee: Amount
    payout: Amount
    reserve_token: Amount
    reserve_sol: Amount


@dataclass(frozen=True)
class LiquidityReceipt:
    """
    Outcome of a liquidity operation.

    `action` is one of "seed", "resync", "remove". Token/native amounts are
    what moved through custody (zero for a resync).
    """
    token: AssetId
    action: str
    token_amount: Amount
    sol_amount: Amount
    reserve_token: Amount
    reserve_sol: Amount
    total_supply: Amount


@dataclass(frozen=True)
class MigrationReceipt:
    token: AssetId
    market_id: str
    token_amount: Amount
    sol_amount: Amount


class BondingCurveExchange:
    """
    Pools of one deployment, sharing a fee configuration and a treasury.

    Args:
        custody: Gateway that executes every asset movement
        fee_rate: Protocol fee as a fraction in [0, 1)
        admin: Identity allowed to withdraw accrued fees
        params: Curve constants
    """

    def __init__(
        self,
        custody: CustodyGateway,
        *,
        fee_rate: float,
        admin: Identity,
        params: CurveParams = DEFAULT_PARAMS,
    ) -> None:
        self._custody = custody
        self._params = params
        self._config = PoolConfig(fee_rate=fee_rate, admin=admin)
        self._treasury = derive_address(TREASURY_SEED)
        self._pools: Dict[AssetId, LiquidityPool] = {}
        self._providers = LPTable()

        self._registry_lock = threading.Lock()
        self._config_lock = threading.Lock()
        self._pool_locks: Dict[AssetId, threading.RLock] = {}

    @classmethod
    def from_settings(cls, settings: ExchangeSettings, custody: CustodyGateway) -> "BondingCurveExchange":
        return cls(custody, fee_rate=settings.fee_rate, admin=settings.admin, params=settings.params)

    # -- read side ------------------------------------------------------------

    @property
    def params(self) -> CurveParams:
        return self._params

    @property
    def config(self) -> PoolConfig:
        with self._config_lock:
            return self._config

    @property
    def treasury_account(self) -> Identity:
        return self._treasury

    def get_pool(self, token: AssetId) -> LiquidityPool:
        """Return a detached snapshot of the pool for `token`."""
        with self._pool_lock(token):
            return self._require_pool(token).snapshot()

    def provider_shares(self, provider: Identity, token: AssetId) -> Amount:
        """Stored LP share counter; no operation consumes it."""
        return self._providers.get(provider, token)

    def quote(
        self,
        token: AssetId,
        direction: TradeDirection,
        amount_in: Amount,
        *,
        mode: Optional[PricingMode] = None,
    ) -> Quote:
        """Price a trade without executing it."""
        with self._pool_lock(token):
            pool = self._require_pool(token)
            return self._price(pool, direction, amount_in, mode)

    def spot_price(self, token: AssetId) -> float:
        with self._pool_lock(token):
            pool = self._require_pool(token)
            return spot_price(pool.reserve_token, pool.reserve_sol, self._params)

    # -- pool lifecycle -------------------------------------------------------

    def create_pool(self, creator: Identity, token: AssetId) -> LiquidityPool:
        """Register an empty pool for `token`. One pool per token."""
        with self._registry_lock:
            if token in self._pools:
                raise PoolStateError(f"Pool already exists for token {token}")
            pool = LiquidityPool(creator=creator, token=token)
            self._pools[token] = pool
            self._pool_locks[token] = threading.RLock()
            logger.info("pool created token=%s creator=%s", token, creator)
            return pool.snapshot()

    def add_liquidity(self, caller: Identity, token: AssetId) -> LiquidityReceipt:
        """
        Provision liquidity the way the deployed program does.

        If custody already holds both assets for the pool, reserves are
        resynchronized to those balances and nothing is deposited; otherwise
        the pool is seeded. Use `seed_liquidity` or `resync_reserves` to pick
        one behaviour explicitly.
        """
        with self._pool_lock(token):
            pool = self._require_pool(token)
            vault_token, vault_sol = self._vault_balances(pool)
            if is_already_seeded(vault_token, vault_sol):
                return self._resync(pool)
            return self._seed(pool, caller, require_unseeded=False)

    def seed_liquidity(self, caller: Identity, token: AssetId) -> LiquidityReceipt:
        """Deposit the caller's whole token balance plus the fixed native seed."""
        with self._pool_lock(token):
            return self._seed(self._require_pool(token), caller)

    def resync_reserves(self, token: AssetId) -> LiquidityReceipt:
        """Overwrite ledger reserves with custody balances; no deposit."""
        with self._pool_lock(token):
            return self._resync(self._require_pool(token))

    def remove_liquidity(self, caller: Identity, token: AssetId) -> LiquidityReceipt:
        """Drain both vaults to `caller`. There is no partial withdrawal."""
        with self._pool_lock(token):
            pool = self._require_pool(token)
            vault_token, vault_sol = self._vault_balances(pool)
            settlement = plan_remove(pool, caller, vault_token, vault_sol)
            self._execute(settlement, self._authorities(caller, pool))
            pool.update_reserves(settlement.new_reserve_token, settlement.new_reserve_sol)
            pool.status = PoolStatus.DRAINED
            logger.info(
                "liquidity removed token=%s recipient=%s token_amount=%d sol_amount=%d",
                token, caller, vault_token, vault_sol,
            )
            return self._liquidity_receipt(pool, "remove", vault_token, vault_sol)

    def migrate(self, token: AssetId, venue: MigrationVenue) -> MigrationReceipt:
        """Hand a pool's reserves to an external AMM and retire it."""
        with self._pool_lock(token):
            pool = self._require_pool(token)
            settlement = plan_migration(pool, venue.account, self._params)
            token_amount, sol_amount = pool.reserve_token, pool.reserve_sol

            authorities = self._authorities(pool.creator, pool)
            authorities[Party.VENUE] = venue.authority()
            done = self._execute(settlement, authorities)
            try:
                market_id = venue.open_market(token, token_amount, sol_amount)
            except Exception:
                logger.warning("venue refused market for token=%s; returning reserves", token)
                self._compensate(done, authorities)
                raise

            pool.update_reserves(settlement.new_reserve_token, settlement.new_reserve_sol)
            pool.status = PoolStatus.MIGRATED
            logger.info("pool migrated token=%s market=%s sol=%d token_amount=%d", token, market_id, sol_amount, token_amount)
            return MigrationReceipt(token=token, market_id=market_id, token_amount=token_amount, sol_amount=sol_amount)

    # -- trading --------------------------------------------------------------

    def buy(self, caller: Identity, token: AssetId, amount_in: Amount) -> TradeReceipt:
        """Spend `amount_in` native units on tokens."""
        return self._trade(caller, token, TradeDirection.BUY, amount_in)

    def sell(self, caller: Identity, token: AssetId, amount_in: Amount) -> TradeReceipt:
        """Sell `amount_in` tokens for native units, net of the fee."""
        return self._trade(caller, token, TradeDirection.SELL, amount_in)

    # -- treasury -------------------------------------------------------------

    def withdraw_fees(self, caller: Identity) -> Amount:
        """Move every accrued fee unit to the administrator and reset the counter."""
        with self._config_lock:
            balance = self._custody.balance_of(self._treasury, NATIVE_ASSET)
            withdrawal = plan_withdrawal(self._config, caller, balance)

            settlement = Settlement()
            settlement.add_leg(
                NATIVE_ASSET, self._treasury, withdrawal.recipient, withdrawal.amount, Party.TREASURY, Party.CALLER
            )
            self._execute(
                settlement,
                {Party.TREASURY: self._treasury_authority(), Party.CALLER: AuthorityCapability.signer(caller)},
            )
            self._config = withdrawal.config
            logger.info("fees withdrawn admin=%s amount=%d", caller, withdrawal.amount)
            return withdrawal.amount

    # -- internals ------------------------------------------------------------

    def _pool_lock(self, token: AssetId) -> threading.RLock:
        """Lock of an existing pool; locks are only created by `create_pool`."""
        with self._registry_lock:
            lock = self._pool_locks.get(token)
        if lock is None:
            raise PoolStateError(f"No pool for token {token}")
        return lock

    def _require_pool(self, token: AssetId) -> LiquidityPool:
        pool = self._pools.get(token)
        if pool is None:
            raise PoolStateError(f"No pool for token {token}")
        return pool

    def _vault_balances(self, pool: LiquidityPool) -> Tuple[Amount, Amount]:
        return (
            self._custody.balance_of(pool.token_vault, pool.token),
            self._custody.balance_of(pool.sol_vault, NATIVE_ASSET),
        )

    def _pool_authority(self, pool: LiquidityPool) -> AuthorityCapability:
        return AuthorityCapability(holder=pool.token_vault, accounts=frozenset({pool.token_vault, pool.sol_vault}))

    def _treasury_authority(self) -> AuthorityCapability:
        return AuthorityCapability(holder=self._treasury, accounts=frozenset({self._treasury}))

    def _authorities(self, caller: Identity, pool: LiquidityPool) -> Dict[Party, AuthorityCapability]:
        return {
            Party.CALLER: AuthorityCapability.signer(caller),
            Party.POOL: self._pool_authority(pool),
            Party.TREASURY: self._treasury_authority(),
        }

    def _price(
        self,
        pool: LiquidityPool,
        direction: TradeDirection,
        amount_in: Amount,
        mode: Optional[PricingMode],
    ) -> Quote:
        return price_trade(pool, direction, amount_in, self._config.fee_rate, self._params, mode=mode)

    def _trade(self, caller: Identity, token: AssetId, direction: TradeDirection, amount_in: Amount) -> TradeReceipt:
        if not isinstance(amount_in, int) or isinstance(amount_in, bool):
            raise TypeError("amount_in must be an int")
        if amount_in <= 0:
            raise InvalidAmountError(f"amount_in must be positive: {amount_in}")

        with self._pool_lock(token):
            pool = self._require_pool(token)
            if pool.status != PoolStatus.SEEDED:
                raise PoolStateError(f"Pool for token {token} is not tradable ({pool.status.value})")

            q = self._price(pool, direction, amount_in, None)
            settlement = plan_trade(q, pool, caller, self._treasury)
            # Fail before any transfer if the post-state is invalid.
            pool.snapshot().update_reserves(settlement.new_reserve_token, settlement.new_reserve_sol)

            self._execute(settlement, self._authorities(caller, pool))
            pool.update_reserves(settlement.new_reserve_token, settlement.new_reserve_sol)
            with self._config_lock:
                self._config = credit_fee(self._config, settlement.fee)

            logger.info(
                "%s token=%s caller=%s mode=%s in=%d out=%d fee=%d",
                direction.value.lower(), token, caller, q.mode.value, q.amount_in, q.amount_out, q.fee,
            )
            return TradeReceipt(
                token=token,
                direction=direction,
                mode=q.mode,
                amount_in=q.amount_in,
                amount_out=q.amount_out,
                fee=q.fee,
                payout=q.payout,
                reserve_token=pool.reserve_token,
                reserve_sol=pool.reserve_sol,
            )

    def _seed(self, pool: LiquidityPool, caller: Identity, *, require_unseeded: bool = True) -> LiquidityReceipt:
        provider_tokens = self._custody.balance_of(caller, pool.token)
        settlement = plan_seed(pool, caller, provider_tokens, self._params, require_unseeded=require_unseeded)
        self._execute(settlement, self._authorities(caller, pool))

        pool.total_supply = self._params.total_supply_unit
        pool.update_reserves(settlement.new_reserve_token, settlement.new_reserve_sol)
        pool.status = PoolStatus.SEEDED
        logger.info(
            "pool seeded token=%s provider=%s reserve_token=%d reserve_sol=%d",
            pool.token, caller, pool.reserve_token, pool.reserve_sol,
        )
        return self._liquidity_receipt(pool, "seed", settlement.new_reserve_token, settlement.new_reserve_sol)

    def _resync(self, pool: LiquidityPool) -> LiquidityReceipt:
        vault_token, vault_sol = self._vault_balances(pool)
        settlement = plan_resync(pool, vault_token, vault_sol)
        pool.update_reserves(settlement.new_reserve_token, settlement.new_reserve_sol)
        pool.total_supply = self._params.total_supply_unit
        if is_already_seeded(vault_token, vault_sol):
            pool.status = PoolStatus.SEEDED
        logger.info(
            "reserves resynced token=%s reserve_token=%d reserve_sol=%d", pool.token, vault_token, vault_sol
        )
        return self._liquidity_receipt(pool, "resync", 0, 0)

    def _liquidity_receipt(self, pool: LiquidityPool, action: str, token_amount: Amount, sol_amount: Amount) -> LiquidityReceipt:
        return LiquidityReceipt(
            token=pool.token,
            action=action,
            token_amount=token_amount,
            sol_amount=sol_amount,
            reserve_token=pool.reserve_token,
            reserve_sol=pool.reserve_sol,
            total_supply=pool.total_supply,
        )

    def _execute(self, settlement: Settlement, authorities: Mapping[Party, AuthorityCapability]) -> List[TransferLeg]:
        """Run every leg in order; on rejection undo the completed ones and raise."""
        done: List[TransferLeg] = []
        for leg in settlement.legs:
            try:
                self._custody.transfer_asset(leg.asset, leg.source, leg.destination, leg.amount, authorities[leg.payer])
            except CustodyError as exc:
                logger.warning("custody rejected %d %s %s -> %s: %s", leg.amount, leg.asset, leg.source, leg.destination, exc)
                self._compensate(done, authorities)
                raise CustodyFailureError(str(exc)) from exc
            done.append(leg)
        return done

    def _compensate(self, done: List[TransferLeg], authorities: Mapping[Party, AuthorityCapability]) -> None:
        stranded: List[TransferLeg] = []
        for leg in reversed(done):
            back = leg.reversed()
            try:
                self._custody.transfer_asset(back.asset, back.source, back.destination, back.amount, authorities[back.payer])
            except CustodyError:
                logger.exception("compensation failed for %d %s %s -> %s", back.amount, back.asset, back.source, back.destination)
                stranded.append(back)
        if stranded:
            raise CustodyFailureError(f"compensation failed; {len(stranded)} transfer(s) could not be reversed")
