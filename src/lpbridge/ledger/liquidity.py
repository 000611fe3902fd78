"""Share-based liquidity ledger.

Share price is ``(total_liquidity + fee_pool) / total_shares``. Every
share/amount conversion floors, so deposits never over-mint and
withdrawals never over-pay; rounding dust stays in the pool and can only
raise the share price.

The first deposit into an empty pool is accepted unconditionally and
mints shares 1:1; it sets the initial share price. A pool whose value has
been fully paid out to inbound recipients while shares are outstanding is
re-bootstrapped the same way: the worthless shares are retired first.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from lpbridge.errors import (
    InsufficientLiquidity,
    InsufficientPoolBalance,
    InvalidAmount,
    InvalidShares,
    ZeroShares,
)
from lpbridge.ledger.models import PoolState
from lpbridge.ledger.repository import BridgeRepository

logger = logging.getLogger(__name__)

BPS_DENOMINATOR = 10_000
SECONDS_PER_YEAR = 365 * 24 * 60 * 60


def require_positive(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)


@dataclass(frozen=True)
class LPPosition:
    """Read-only view of an LP position."""

    account: str
    shares: int
    value: int
    principal: int
    ownership_bps: int

    @property
    def earnings(self) -> int:
        """Fee earnings not yet withdrawn."""
        return max(0, self.value - self.principal)


class LiquidityLedger:
    """Pool accounting for one domain.

    Operates on a ``PoolState`` loaded inside the caller's transaction;
    nothing here commits or moves assets.
    """

    def __init__(self, repo: BridgeRepository, pool: PoolState):
        self.repo = repo
        self.pool = pool

    @property
    def total_value(self) -> int:
        """Principal plus undistributed fees."""
        return self.pool.total_liquidity + self.pool.fee_pool

    @property
    def share_price(self) -> Decimal:
        """Value of one share in base units (1 for an empty pool)."""
        if self.pool.total_shares == 0:
            return Decimal(1)
        return Decimal(self.total_value) / Decimal(self.pool.total_shares)

    @property
    def created_at(self) -> Optional[datetime]:
        """Pool creation time, in UTC."""
        created = self.pool.created_at
        if created is not None and created.tzinfo is None:
            # SQLite hands back naive datetimes
            created = created.replace(tzinfo=timezone.utc)
        return created

    def estimate_apy_bps(self, now: Optional[datetime] = None) -> int:
        """Annualised LP fee yield in basis points.

        Cumulative LP fees against current principal, scaled from the time
        elapsed since the pool was created to a 365-day year. Zero while the
        pool holds no principal.
        """
        created = self.created_at
        if created is None or self.pool.total_liquidity == 0:
            return 0
        now = now or datetime.now(timezone.utc)
        elapsed = int((now - created).total_seconds())
        if elapsed <= 0:
            return 0
        return (
            self.pool.lp_fees_accrued
            * BPS_DENOMINATOR
            * SECONDS_PER_YEAR
            // (self.pool.total_liquidity * elapsed)
        )

    def shares_for_amount(self, amount: int) -> int:
        """Shares a deposit of ``amount`` would mint."""
        if self.pool.total_shares == 0 or self.total_value == 0:
            return amount
        return amount * self.pool.total_shares // self.total_value

    def amount_for_shares(self, shares: int) -> int:
        """Base units ``shares`` currently redeem for."""
        if self.pool.total_shares == 0:
            return 0
        return shares * self.total_value // self.pool.total_shares

    async def deposit(self, account: str, amount: int) -> int:
        """Mint shares for ``amount`` already moved into custody.

        Raises:
            InvalidAmount: amount is not positive
            ZeroShares: amount too small to mint a share
        """
        require_positive(amount)
        if self.pool.total_shares and self.total_value == 0:
            await self.retire_worthless_shares()

        shares = self.shares_for_amount(amount)
        if shares == 0:
            raise ZeroShares(amount)

        position = await self.repo.get_or_create_position(account)
        position.shares += shares
        position.principal += amount
        self.pool.total_shares += shares
        self.pool.total_liquidity += amount

        logger.info(f"Deposit: {account} added {amount}, minted {shares} shares")
        return shares

    async def withdraw(self, account: str, shares: int, custody_balance: int) -> int:
        """Burn ``shares`` and return the amount owed to the account.

        Principal is debited first; whatever exceeds ``total_liquidity``
        comes out of ``fee_pool``.

        Raises:
            InvalidShares: shares is zero or exceeds the position
            InsufficientPoolBalance: custody cannot cover the payout
        """
        position = await self.repo.get_position(account)
        held = position.shares if position else 0
        if isinstance(shares, bool) or not isinstance(shares, int) or shares <= 0 or shares > held:
            raise InvalidShares(shares, held)

        amount = self.amount_for_shares(shares)
        if custody_balance < amount:
            raise InsufficientPoolBalance(custody_balance, amount)

        principal_released = position.principal * shares // position.shares
        position.principal -= principal_released
        position.shares -= shares
        self.pool.total_shares -= shares

        if amount > self.pool.total_liquidity:
            self.pool.fee_pool -= amount - self.pool.total_liquidity
            self.pool.total_liquidity = 0
        else:
            self.pool.total_liquidity -= amount

        logger.info(f"Withdraw: {account} burned {shares} shares for {amount}")
        return amount

    async def retire_worthless_shares(self) -> int:
        """Zero every position of a pool with no value left; returns shares retired."""
        retired = self.pool.total_shares
        for position in await self.repo.get_all_positions():
            position.shares = 0
            position.principal = 0
        self.pool.total_shares = 0
        logger.warning(f"Pool drained with {retired} shares outstanding; shares retired")
        return retired

    def accrue_fee(self, lp_fee: int) -> None:
        """Add LP fees without minting shares (raises the share price)."""
        if lp_fee > 0:
            self.pool.fee_pool += lp_fee
            self.pool.lp_fees_accrued += lp_fee

    def accrue_volume(self, amount: int) -> None:
        self.pool.total_volume += amount

    def increment_tx_count(self) -> None:
        self.pool.tx_count += 1

    def add_backing(self, amount: int) -> None:
        """Pool the net amount of an outbound transfer as future liquidity."""
        self.pool.total_liquidity += amount

    def draw(self, amount: int) -> None:
        """Debit liquidity released to an inbound recipient.

        Raises:
            InsufficientLiquidity: pool principal cannot cover the amount
        """
        self.ensure_available(amount)
        self.pool.total_liquidity -= amount

    def ensure_available(self, amount: int) -> None:
        if self.pool.total_liquidity < amount:
            raise InsufficientLiquidity(self.pool.total_liquidity, amount)

    async def position(self, account: str) -> LPPosition:
        """Current value and ownership of an account's shares."""
        record = await self.repo.get_position(account)
        shares = record.shares if record else 0
        principal = record.principal if record else 0
        ownership = 0
        if self.pool.total_shares:
            ownership = shares * BPS_DENOMINATOR // self.pool.total_shares
        return LPPosition(
            account=account,
            shares=shares,
            value=self.amount_for_shares(shares),
            principal=principal,
            ownership_bps=ownership,
        )
