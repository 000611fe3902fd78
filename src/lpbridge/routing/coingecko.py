"""CoinGecko price oracle."""

import logging
import time
from decimal import Decimal
from typing import Optional

import httpx

from lpbridge.errors import PriceUnavailable
from lpbridge.routing.base import PriceOracle

logger = logging.getLogger(__name__)

COINGECKO_API = "https://api.coingecko.com/api/v3"

# Stablecoins are quoted against USD
USD_QUOTES = {"USDT": "usd", "USDC": "usd", "DAI": "usd"}


class CoinGeckoPriceOracle(PriceOracle):
    """Native asset price from the CoinGecko simple price API.

    Prices are cached for ``cache_seconds``.
    """

    def __init__(
        self,
        coin_ids: dict[str, str],
        api_url: str = COINGECKO_API,
        cache_seconds: float = 60.0,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize CoinGecko oracle.

        Args:
            coin_ids: Native symbol -> CoinGecko id (e.g. {"ETH": "ethereum"})
            api_url: CoinGecko API base URL
            cache_seconds: How long a fetched price stays valid
            timeout: HTTP timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.coin_ids = {k.upper(): v for k, v in coin_ids.items()}
        self.api_url = api_url.rstrip("/")
        self.cache_seconds = cache_seconds
        self.timeout = timeout
        self.transport = transport
        self._price_cache: dict[str, tuple[Decimal, float]] = {}

    @property
    def name(self) -> str:
        return "CoinGecko"

    async def get_rate(self, native_asset: str, target_asset: str) -> Decimal:
        native = native_asset.upper()
        vs_currency = USD_QUOTES.get(target_asset.upper())
        coin_id = self.coin_ids.get(native)
        if not coin_id or not vs_currency:
            raise PriceUnavailable(f"No CoinGecko mapping for {native_asset}->{target_asset}")

        cached = self._price_cache.get(native)
        now = time.time()
        if cached and now - cached[1] < self.cache_seconds:
            return cached[0]

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.get(
                    f"{self.api_url}/simple/price",
                    params={"ids": coin_id, "vs_currencies": vs_currency},
                )
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            logger.warning(f"CoinGecko price fetch failed: {e}")
            raise PriceUnavailable(f"CoinGecko request failed: {e}") from e

        price = data.get(coin_id, {}).get(vs_currency)
        if not price:
            raise PriceUnavailable(f"CoinGecko returned no price for {coin_id}")

        price_decimal = Decimal(str(price))
        self._price_cache[native] = (price_decimal, now)
        return price_decimal
