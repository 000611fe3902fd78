"""Tests for the share-based liquidity ledger."""

from datetime import timedelta
from decimal import Decimal

import pytest
import pytest_asyncio

from lpbridge.errors import (
    InsufficientLiquidity,
    InsufficientPoolBalance,
    InvalidAmount,
    InvalidShares,
    ZeroShares,
)
from lpbridge.ledger.liquidity import LiquidityLedger


@pytest_asyncio.fixture
async def ledger(repo) -> LiquidityLedger:
    pool = await repo.get_or_create_pool(40161, "owner")
    return LiquidityLedger(repo, pool)


class TestDeposit:
    """Tests for LP deposits."""

    @pytest.mark.asyncio
    async def test_first_deposit_mints_one_to_one(self, ledger):
        """Empty pool: 10,000 deposited mints 10,000 shares at price 1."""
        shares = await ledger.deposit("alice", 10_000)

        assert shares == 10_000
        assert ledger.pool.total_shares == 10_000
        assert ledger.pool.total_liquidity == 10_000
        assert ledger.share_price == Decimal(1)

    @pytest.mark.asyncio
    async def test_deposit_after_fees_mints_fewer_shares(self, ledger):
        await ledger.deposit("alice", 10_000)
        ledger.accrue_fee(1_000)

        shares = await ledger.deposit("bob", 1_100)

        assert shares == 1_000
        assert ledger.share_price == Decimal("1.1")

    @pytest.mark.asyncio
    async def test_deposit_too_small_for_a_share(self, ledger):
        await ledger.deposit("alice", 10)
        ledger.accrue_fee(10_000)

        with pytest.raises(ZeroShares):
            await ledger.deposit("bob", 100)

        assert ledger.pool.total_shares == 10

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5])
    async def test_deposit_rejects_non_positive(self, ledger, amount):
        with pytest.raises(InvalidAmount):
            await ledger.deposit("alice", amount)

    @pytest.mark.asyncio
    async def test_deposits_accumulate_principal(self, ledger, repo):
        await ledger.deposit("alice", 4_000)
        await ledger.deposit("alice", 6_000)

        position = await repo.get_position("alice")
        assert position.shares == 10_000
        assert position.principal == 10_000


class TestWithdraw:
    """Tests for LP withdrawals."""

    @pytest.mark.asyncio
    async def test_round_trip(self, ledger):
        """Deposit then withdraw all shares with no fees returns the deposit."""
        shares = await ledger.deposit("alice", 10_000)

        amount = await ledger.withdraw("alice", shares, custody_balance=10_000)

        assert amount == 10_000
        assert ledger.pool.total_shares == 0
        assert ledger.pool.total_liquidity == 0
        assert ledger.pool.fee_pool == 0

    @pytest.mark.asyncio
    async def test_withdraw_includes_fees(self, ledger):
        """Principal is debited first and the excess comes from the fee pool."""
        await ledger.deposit("alice", 10_000)
        ledger.accrue_fee(1_000)

        amount = await ledger.withdraw("alice", 10_000, custody_balance=11_000)

        assert amount == 11_000
        assert ledger.pool.total_liquidity == 0
        assert ledger.pool.fee_pool == 0

    @pytest.mark.asyncio
    async def test_partial_withdraw_keeps_price(self, ledger, repo):
        await ledger.deposit("alice", 10_000)
        ledger.accrue_fee(1_000)

        amount = await ledger.withdraw("alice", 5_000, custody_balance=11_000)

        assert amount == 5_500
        assert ledger.pool.total_liquidity == 4_500
        assert ledger.pool.fee_pool == 1_000
        assert ledger.share_price == Decimal("1.1")
        position = await repo.get_position("alice")
        assert position.principal == 5_000

    @pytest.mark.asyncio
    @pytest.mark.parametrize("shares", [0, 10_001, -1])
    async def test_invalid_shares(self, ledger, shares):
        await ledger.deposit("alice", 10_000)

        with pytest.raises(InvalidShares):
            await ledger.withdraw("alice", shares, custody_balance=10_000)

        assert ledger.pool.total_shares == 10_000

    @pytest.mark.asyncio
    async def test_unknown_account(self, ledger):
        await ledger.deposit("alice", 10_000)

        with pytest.raises(InvalidShares):
            await ledger.withdraw("mallory", 1, custody_balance=10_000)

    @pytest.mark.asyncio
    async def test_custody_shortfall(self, ledger):
        await ledger.deposit("alice", 10_000)

        with pytest.raises(InsufficientPoolBalance):
            await ledger.withdraw("alice", 10_000, custody_balance=9_999)

        assert ledger.pool.total_liquidity == 10_000
        assert ledger.pool.total_shares == 10_000


class TestSharePrice:
    """Tests for share price behaviour."""

    @pytest.mark.asyncio
    async def test_price_never_decreases(self, ledger):
        """Floor rounding on every conversion keeps dust in the pool."""
        prices = []

        await ledger.deposit("alice", 10_007)
        prices.append(ledger.share_price)
        ledger.accrue_fee(13)
        prices.append(ledger.share_price)
        await ledger.deposit("bob", 333)
        prices.append(ledger.share_price)
        await ledger.withdraw("alice", 1_234, custody_balance=10**9)
        prices.append(ledger.share_price)
        await ledger.deposit("carol", 99_999)
        prices.append(ledger.share_price)
        ledger.accrue_fee(7)
        await ledger.withdraw("bob", 5, custody_balance=10**9)
        prices.append(ledger.share_price)

        assert prices == sorted(prices)

    @pytest.mark.asyncio
    async def test_fee_accrual_mints_no_shares(self, ledger):
        await ledger.deposit("alice", 10_000)
        ledger.accrue_fee(500)

        assert ledger.pool.total_shares == 10_000
        assert ledger.total_value == 10_500


class TestPosition:
    """Tests for LP position views."""

    @pytest.mark.asyncio
    async def test_position_earnings(self, ledger):
        await ledger.deposit("alice", 6_000)
        await ledger.deposit("bob", 4_000)
        ledger.accrue_fee(1_000)

        alice = await ledger.position("alice")
        bob = await ledger.position("bob")

        assert alice.value == 6_600
        assert alice.earnings == 600
        assert alice.ownership_bps == 6_000
        assert bob.value == 4_400
        assert bob.ownership_bps == 4_000

    @pytest.mark.asyncio
    async def test_empty_position(self, ledger):
        position = await ledger.position("nobody")

        assert position.shares == 0
        assert position.value == 0
        assert position.earnings == 0
        assert position.ownership_bps == 0


class TestDraw:
    """Tests for inbound liquidity draws."""

    @pytest.mark.asyncio
    async def test_draw_debits_liquidity(self, ledger):
        await ledger.deposit("alice", 10_000)
        ledger.draw(4_000)
        assert ledger.pool.total_liquidity == 6_000

    @pytest.mark.asyncio
    async def test_draw_beyond_liquidity(self, ledger):
        await ledger.deposit("alice", 10_000)
        ledger.accrue_fee(5_000)

        with pytest.raises(InsufficientLiquidity):
            ledger.draw(10_001)

        assert ledger.pool.total_liquidity == 10_000

    @pytest.mark.asyncio
    async def test_deposit_into_drained_pool(self, ledger):
        """Shares left with no value behind them are retired on the next deposit."""
        await ledger.deposit("alice", 10_000)
        ledger.draw(10_000)
        assert ledger.share_price == Decimal(0)

        shares = await ledger.deposit("bob", 500)

        assert shares == 500
        assert ledger.pool.total_shares == 500
        assert ledger.share_price == Decimal(1)
        alice = await ledger.position("alice")
        assert alice.shares == 0
        assert alice.principal == 0
        assert (await ledger.position("bob")).ownership_bps == 10_000


class TestApy:
    """Tests for the annualised fee yield."""

    @pytest.mark.asyncio
    async def test_apy_from_accrued_fees(self, ledger):
        await ledger.deposit("alice", 10_000)
        ledger.accrue_fee(100)
        created = ledger.created_at

        assert ledger.estimate_apy_bps(created + timedelta(days=365)) == 100
        assert ledger.estimate_apy_bps(created + timedelta(days=730)) == 50

    @pytest.mark.asyncio
    async def test_apy_counts_fees_already_withdrawn(self, ledger):
        await ledger.deposit("alice", 10_000)
        await ledger.deposit("bob", 10_000)
        ledger.accrue_fee(200)
        await ledger.withdraw("bob", 10_000, custody_balance=10**9)
        created = ledger.created_at

        assert ledger.pool.lp_fees_accrued == 200
        assert ledger.pool.total_liquidity == 9_900
        assert ledger.estimate_apy_bps(created + timedelta(days=365)) == 202

    @pytest.mark.asyncio
    async def test_apy_without_principal(self, ledger):
        assert ledger.estimate_apy_bps() == 0
