"""Abstract swap venue and price oracle interfaces."""

from abc import ABC, abstractmethod
from decimal import Decimal

from lpbridge.custody.base import AssetCustody


def native_for_target(
    target_amount: int,
    price: Decimal,
    native_decimals: int,
    target_decimals: int,
) -> int:
    """Native base units needed to buy ``target_amount`` at ``price``.

    ``price`` is whole target units per whole native unit. Exact integer
    arithmetic, rounded up so the estimate never under-funds the swap.
    """
    if price <= 0:
        raise ValueError(f"Price must be positive, got {price}")
    num, den = price.as_integer_ratio()
    numerator = target_amount * den * 10**native_decimals
    denominator = num * 10**target_decimals
    return -(-numerator // denominator)


def target_for_native(
    native_amount: int,
    price: Decimal,
    native_decimals: int,
    target_decimals: int,
) -> int:
    """Target base units ``native_amount`` is worth at ``price`` (floored)."""
    if price <= 0:
        raise ValueError(f"Price must be positive, got {price}")
    num, den = price.as_integer_ratio()
    return native_amount * num * 10**target_decimals // (den * 10**native_decimals)


class PriceOracle(ABC):
    """Source of the native -> target asset rate."""

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    async def get_rate(self, native_asset: str, target_asset: str) -> Decimal:
        """
        Get the conversion rate.

        Returns:
            Whole target units per whole native unit

        Raises:
            PriceUnavailable: no rate could be obtained
        """
        pass


class SwapVenue(ABC):
    """External venue converting native reserve into the target asset."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Venue name identifier."""
        pass

    @property
    @abstractmethod
    def address(self) -> str:
        """Account that receives the native input."""
        pass

    @abstractmethod
    async def swap(
        self,
        native_in: int,
        min_out: int,
        target_asset: str,
        recipient: str,
        payer: AssetCustody,
    ) -> int:
        """
        Swap native input for the target asset, paid to ``recipient``.

        The venue collects ``native_in`` from ``payer`` before it pays out,
        so a failed collection leaves the recipient unpaid.

        Args:
            native_in: Native base units spent
            min_out: Minimum acceptable output in target base units
            target_asset: Asset symbol to buy
            recipient: Account credited with the output
            payer: Custody the native input is collected from

        Returns:
            Target base units actually delivered

        Raises:
            SwapError: output would fall below ``min_out`` or the swap failed
            CustodyError: the native input could not be collected
        """
        pass
