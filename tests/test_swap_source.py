"""Tests for swap-sourced destination liquidity."""

from decimal import Decimal

import pytest

from lpbridge.custody.memory import InMemoryCustody
from lpbridge.errors import CustodyError, InsufficientReserve, PriceUnavailable, SwapError
from lpbridge.orchestrator import DeliveryStatus
from lpbridge.routing.base import native_for_target, target_for_native
from lpbridge.routing.dry_run import DryRunSwapVenue, FixedPriceOracle
from lpbridge.sources import SwapLiquiditySource

from tests.conftest import BUDGET, DEST_DOMAIN, UNIT

ETH = 10**18


async def send(bridge, amount: int, recipient: str = "carol"):
    bridge.source.custody.mint("alice", amount)
    return await bridge.source.orchestrator.initiate(
        "alice", DEST_DOMAIN, recipient, amount, messaging_budget=BUDGET
    )


async def seed_reserve(bridge, amount: int, account: str = "nina") -> int:
    bridge.dest.native_custody.mint(account, amount)
    return await bridge.dest.orchestrator.deposit_native(account, amount)


class TestConversionMath:
    """Tests for native/target conversions."""

    def test_native_for_target_rounds_up(self):
        # 1 USDT at 3900 USDT/ETH is 256410256410256.41... wei
        assert native_for_target(UNIT, Decimal("3900"), 18, 6) == 256_410_256_410_257

    def test_target_for_native_rounds_down(self):
        assert target_for_native(ETH, Decimal("3900"), 18, 6) == 3_900 * UNIT
        assert target_for_native(256_410_256_410_257, Decimal("3900"), 18, 6) == UNIT

    def test_fractional_price(self):
        assert native_for_target(62 * 10**4, Decimal("0.62"), 18, 6) == ETH

    def test_rejects_non_positive_price(self):
        with pytest.raises(ValueError):
            native_for_target(UNIT, Decimal("0"), 18, 6)


class TestSwapLiquiditySource:
    """Tests for the estimate and buffer."""

    @pytest.fixture
    def source(self):
        oracle = FixedPriceOracle({"ETH": Decimal("3900")})
        target = InMemoryCustody(asset="USDT", address="bridge")
        return SwapLiquiditySource(
            venue=DryRunSwapVenue(target=target, oracle=oracle),
            oracle=oracle,
            native_custody=InMemoryCustody(asset="ETH", address="bridge"),
        )

    @pytest.mark.asyncio
    async def test_estimate_includes_buffer(self, source):
        """1,000 USDT needs ceil(1000/3900 ETH) plus 5%."""
        needed = native_for_target(1_000 * UNIT, Decimal("3900"), 18, 6)

        required = await source.estimate_native(1_000 * UNIT)

        assert needed == 256_410_256_410_256_411
        assert required == -(-needed * 10_500 // 10_000)
        assert required > needed

    def test_min_output(self, source):
        assert source.min_output(997 * UNIT) == 947_150_000

    def test_buffer_must_be_below_100_percent(self):
        oracle = FixedPriceOracle()
        with pytest.raises(ValueError):
            SwapLiquiditySource(
                venue=DryRunSwapVenue(target=InMemoryCustody(), oracle=oracle),
                oracle=oracle,
                native_custody=InMemoryCustody(asset="ETH"),
                buffer_bps=10_000,
            )


class TestSwapSourcedDelivery:
    """Tests for inbound transfers paid from the native reserve."""

    @pytest.mark.asyncio
    async def test_delivery_swaps_reserve(self, swap_bridge):
        reserve = await seed_reserve(swap_bridge, ETH)
        assert reserve == ETH
        source = swap_bridge.dest.orchestrator.source
        result = await send(swap_bridge, 1_000 * UNIT)
        required = await source.estimate_native(result.instruction.amount)

        [delivery] = await swap_bridge.transport.deliver_all()

        assert delivery.status == DeliveryStatus.COMPLETED
        assert delivery.amount >= source.min_output(997 * UNIT)
        assert swap_bridge.dest.custody.balance_of("carol") == delivery.amount

        stats = await swap_bridge.dest.orchestrator.stats()
        assert stats.native_reserve == ETH - required
        assert stats.liquidity_source == "swap"
        assert swap_bridge.dest.native_custody.balance_of(source.venue.address) == required
        assert len(source.venue.swaps) == 1

    @pytest.mark.asyncio
    async def test_insufficient_reserve(self, swap_bridge):
        result = await send(swap_bridge, 1_000 * UNIT)

        with pytest.raises(InsufficientReserve):
            await swap_bridge.transport.deliver_next()

        assert not await swap_bridge.dest.orchestrator.is_processed(result.guid)
        assert swap_bridge.dest.custody.balance_of("carol") == 0

    @pytest.mark.asyncio
    async def test_swap_below_minimum_rolls_back(self, swap_bridge):
        await seed_reserve(swap_bridge, ETH)
        venue = swap_bridge.dest.orchestrator.source.venue
        venue.slippage_bps = 1_000
        result = await send(swap_bridge, 1_000 * UNIT)

        with pytest.raises(SwapError):
            await swap_bridge.transport.deliver_next()

        stats = await swap_bridge.dest.orchestrator.stats()
        assert stats.native_reserve == ETH
        assert not await swap_bridge.dest.orchestrator.is_processed(result.guid)
        assert await swap_bridge.dest.native_custody.balance() == ETH

    @pytest.mark.asyncio
    async def test_unfunded_venue_input_pays_nothing(self, swap_bridge):
        """A native input the venue cannot collect leaves the recipient unpaid."""
        await seed_reserve(swap_bridge, ETH)
        native = swap_bridge.dest.native_custody
        address = native.address
        result = await send(swap_bridge, 1_000 * UNIT)
        native.balances[address] = 0

        with pytest.raises(CustodyError):
            await swap_bridge.transport.deliver_next()

        assert swap_bridge.dest.custody.balance_of("carol") == 0
        assert not await swap_bridge.dest.orchestrator.is_processed(result.guid)
        assert (await swap_bridge.dest.orchestrator.stats()).native_reserve == ETH

        native.balances[address] = ETH
        delivery = await swap_bridge.transport.deliver_next()

        assert delivery.status == DeliveryStatus.COMPLETED
        assert swap_bridge.dest.custody.balance_of("carol") == delivery.amount
        assert len(swap_bridge.dest.orchestrator.source.venue.swaps) == 1

    @pytest.mark.asyncio
    async def test_price_unavailable(self, swap_bridge):
        await seed_reserve(swap_bridge, ETH)
        swap_bridge.dest.orchestrator.source.oracle.prices.clear()
        await send(swap_bridge, 1_000 * UNIT)

        with pytest.raises(PriceUnavailable):
            await swap_bridge.transport.deliver_next()

        assert (await swap_bridge.dest.orchestrator.stats()).native_reserve == ETH

    @pytest.mark.asyncio
    async def test_redelivery_does_not_swap_twice(self, swap_bridge):
        await seed_reserve(swap_bridge, ETH)
        result = await send(swap_bridge, 100 * UNIT)
        await swap_bridge.transport.deliver_all()
        reserve = (await swap_bridge.dest.orchestrator.stats()).native_reserve

        again = await swap_bridge.transport.redeliver(result.guid)

        assert again.status == DeliveryStatus.DUPLICATE
        assert (await swap_bridge.dest.orchestrator.stats()).native_reserve == reserve
        assert len(swap_bridge.dest.orchestrator.source.venue.swaps) == 1


class TestNativeReserve:
    """Tests for native reserve deposits and withdrawals."""

    @pytest.mark.asyncio
    async def test_withdraw_own_contribution(self, swap_bridge):
        await seed_reserve(swap_bridge, ETH)

        withdrawn = await swap_bridge.dest.orchestrator.withdraw_native("nina", ETH // 2)

        assert withdrawn == ETH // 2
        assert swap_bridge.dest.native_custody.balance_of("nina") == ETH // 2
        assert (await swap_bridge.dest.orchestrator.stats()).native_reserve == ETH // 2

    @pytest.mark.asyncio
    async def test_withdraw_limited_to_contribution(self, swap_bridge):
        await seed_reserve(swap_bridge, ETH)

        with pytest.raises(InsufficientReserve):
            await swap_bridge.dest.orchestrator.withdraw_native("nina", 2 * ETH)
        with pytest.raises(InsufficientReserve):
            await swap_bridge.dest.orchestrator.withdraw_native("oscar", 1)

    @pytest.mark.asyncio
    async def test_withdraw_limited_to_remaining_reserve(self, swap_bridge):
        """Reserve spent on swaps cannot be withdrawn."""
        await seed_reserve(swap_bridge, ETH)
        await send(swap_bridge, 1_000 * UNIT)
        await swap_bridge.transport.deliver_all()

        with pytest.raises(InsufficientReserve):
            await swap_bridge.dest.orchestrator.withdraw_native("nina", ETH)
