"""Tests for price oracles."""

from decimal import Decimal

import httpx
import pytest

from lpbridge.errors import PriceUnavailable
from lpbridge.routing.coingecko import CoinGeckoPriceOracle
from lpbridge.routing.dry_run import FixedPriceOracle


def coingecko(handler) -> CoinGeckoPriceOracle:
    return CoinGeckoPriceOracle(
        coin_ids={"ETH": "ethereum"},
        api_url="https://coingecko.test/api/v3",
        transport=httpx.MockTransport(handler),
    )


class TestCoinGeckoPriceOracle:
    """Tests for the CoinGecko oracle over a mock transport."""

    @pytest.mark.asyncio
    async def test_fetches_price(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"ethereum": {"usd": 3912.5}})

        oracle = coingecko(handler)
        rate = await oracle.get_rate("ETH", "USDT")

        assert rate == Decimal("3912.5")
        assert requests[0].url.path == "/api/v3/simple/price"
        assert requests[0].url.params["ids"] == "ethereum"
        assert requests[0].url.params["vs_currencies"] == "usd"

    @pytest.mark.asyncio
    async def test_caches_price(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json={"ethereum": {"usd": 4000}})

        oracle = coingecko(handler)
        await oracle.get_rate("ETH", "USDT")
        await oracle.get_rate("eth", "USDC")

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_http_error(self):
        oracle = coingecko(lambda request: httpx.Response(429, json={"error": "rate limited"}))

        with pytest.raises(PriceUnavailable):
            await oracle.get_rate("ETH", "USDT")

    @pytest.mark.asyncio
    async def test_missing_price(self):
        oracle = coingecko(lambda request: httpx.Response(200, json={}))

        with pytest.raises(PriceUnavailable):
            await oracle.get_rate("ETH", "USDT")

    @pytest.mark.asyncio
    async def test_unknown_asset(self):
        oracle = coingecko(lambda request: httpx.Response(200, json={}))

        with pytest.raises(PriceUnavailable):
            await oracle.get_rate("BTC", "USDT")
        with pytest.raises(PriceUnavailable):
            await oracle.get_rate("ETH", "EUR")


class TestFixedPriceOracle:
    """Tests for the dry-run oracle."""

    @pytest.mark.asyncio
    async def test_simulated_price(self):
        assert await FixedPriceOracle().get_rate("ETH", "USDT") == Decimal("3900.00")

    @pytest.mark.asyncio
    async def test_unknown(self):
        with pytest.raises(PriceUnavailable):
            await FixedPriceOracle().get_rate("DOGE", "USDT")
