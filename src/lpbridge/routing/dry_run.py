"""Dry-run swap venue and fixed-price oracle (simulated execution)."""

import logging
from decimal import Decimal
from typing import Optional

from lpbridge.custody.base import AssetCustody
from lpbridge.custody.memory import InMemoryCustody
from lpbridge.errors import PriceUnavailable, SwapError
from lpbridge.routing.base import PriceOracle, SwapVenue, target_for_native

logger = logging.getLogger(__name__)

# Simulated prices of native assets in USD stablecoin units
SIMULATED_PRICES: dict[str, Decimal] = {
    "ETH": Decimal("3900.00"),
    "BNB": Decimal("710.00"),
    "AVAX": Decimal("52.00"),
    "MATIC": Decimal("0.62"),
}

STABLECOINS = {"USDT", "USDC", "DAI"}


class FixedPriceOracle(PriceOracle):
    """Oracle returning configured prices."""

    def __init__(self, prices: Optional[dict[str, Decimal]] = None):
        self.prices = dict(prices if prices is not None else SIMULATED_PRICES)

    @property
    def name(self) -> str:
        return "Fixed Price"

    async def get_rate(self, native_asset: str, target_asset: str) -> Decimal:
        if target_asset.upper() not in STABLECOINS:
            raise PriceUnavailable(f"No simulated rate for {native_asset}->{target_asset}")
        price = self.prices.get(native_asset.upper())
        if price is None:
            raise PriceUnavailable(f"No simulated price for {native_asset}")
        return price


class DryRunSwapVenue(SwapVenue):
    """Simulated venue paying out from a token ledger at oracle price.

    ``slippage_bps`` is taken off the fair output to mimic price impact.
    """

    def __init__(
        self,
        target: InMemoryCustody,
        oracle: PriceOracle,
        native_asset: str = "ETH",
        native_decimals: int = 18,
        target_decimals: int = 6,
        slippage_bps: int = 30,
        address: str = "dry-run-venue",
    ):
        self.target = target
        self.oracle = oracle
        self.native_asset = native_asset
        self.native_decimals = native_decimals
        self.target_decimals = target_decimals
        self.slippage_bps = slippage_bps
        self._address = address
        self.swaps: list[dict] = []

    @property
    def name(self) -> str:
        return "Dry Run"

    @property
    def address(self) -> str:
        return self._address

    async def swap(
        self,
        native_in: int,
        min_out: int,
        target_asset: str,
        recipient: str,
        payer: AssetCustody,
    ) -> int:
        price = await self.oracle.get_rate(self.native_asset, target_asset)
        fair_out = target_for_native(
            native_in, price, self.native_decimals, self.target_decimals
        )
        amount_out = fair_out * (10_000 - self.slippage_bps) // 10_000

        if amount_out < min_out:
            raise SwapError(f"Output {amount_out} below minimum {min_out}")

        await payer.transfer_out(self.address, native_in)
        self.target.mint(recipient, amount_out)
        self.swaps.append(
            {
                "native_in": native_in,
                "min_out": min_out,
                "amount_out": amount_out,
                "recipient": recipient,
            }
        )
        logger.info(
            f"[DRY RUN] Swapped {native_in} {self.native_asset} base units for "
            f"{amount_out} {target_asset} to {recipient}"
        )
        return amount_out
