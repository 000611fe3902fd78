"""Swap venues and price oracles for swap-sourced liquidity."""

from lpbridge.routing.base import PriceOracle, SwapVenue, native_for_target, target_for_native
from lpbridge.routing.coingecko import CoinGeckoPriceOracle
from lpbridge.routing.dry_run import DryRunSwapVenue, FixedPriceOracle

__all__ = [
    "CoinGeckoPriceOracle",
    "DryRunSwapVenue",
    "FixedPriceOracle",
    "PriceOracle",
    "SwapVenue",
    "native_for_target",
    "target_for_native",
]
