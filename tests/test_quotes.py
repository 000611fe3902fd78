"""Tests for the quote service."""

import pytest

from lpbridge.codec import lz_receive_option
from lpbridge.errors import InvalidAmount, UnregisteredDestination

from tests.conftest import BUDGET, DEST_DOMAIN, OWNER, UNIT


class TestQuoteService:
    """Tests for read-only quotes."""

    @pytest.mark.asyncio
    async def test_quote_fee_split(self, bridge):
        quote = await bridge.source.quotes.quote(DEST_DOMAIN, 1_000 * UNIT)

        assert quote.lp_fee == 500_000
        assert quote.protocol_fee == 2_500_000
        assert quote.total_fee == 3_000_000
        assert quote.amount_to_receive == 997 * UNIT
        assert quote.messaging_fee > 0
        assert not quote.fee_capped

    @pytest.mark.asyncio
    async def test_quote_is_read_only(self, bridge):
        before = await bridge.source.orchestrator.stats()

        await bridge.source.quotes.quote(DEST_DOMAIN, 1_000 * UNIT)

        assert await bridge.source.orchestrator.stats() == before
        assert bridge.transport.pending == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [1_000, 1_000 * UNIT, 10**12 * UNIT])
    async def test_quote_matches_execution(self, bridge, amount):
        """Quote and initiate with the same arguments charge the same."""
        extra = lz_receive_option(25_000)
        await bridge.source.orchestrator.set_enforced_options(
            OWNER, DEST_DOMAIN, lz_receive_option(150_000)
        )
        quote = await bridge.source.quotes.quote(
            DEST_DOMAIN, amount, options=extra, recipient="carol"
        )
        bridge.source.custody.mint("alice", amount)

        result = await bridge.source.orchestrator.initiate(
            "alice", DEST_DOMAIN, "carol", amount, messaging_budget=BUDGET, options=extra
        )

        assert result.messaging_fee == quote.messaging_fee
        assert result.fees.lp_fee == quote.lp_fee
        assert result.fees.protocol_fee == quote.protocol_fee
        assert result.fees.total_fee == quote.total_fee
        assert result.instruction.amount == quote.amount_to_receive
        assert quote.options == "0x" + bridge.transport.pending[0].options.hex()

    @pytest.mark.asyncio
    async def test_capped_quote(self, bridge):
        quote = await bridge.source.quotes.quote(DEST_DOMAIN, 1_000_000 * UNIT)
        assert quote.fee_capped
        assert quote.total_fee == 5_000_000

    @pytest.mark.asyncio
    async def test_unregistered_destination(self, bridge):
        with pytest.raises(UnregisteredDestination):
            await bridge.source.quotes.quote(999, 1_000 * UNIT)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -10])
    async def test_invalid_amount(self, bridge, amount):
        with pytest.raises(InvalidAmount):
            await bridge.source.quotes.quote(DEST_DOMAIN, amount)
