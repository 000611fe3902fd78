"""Destination liquidity sources.

An inbound transfer is paid either from the LP pool or by converting the
native reserve through a swap venue. Both follow the same two steps:
``prepare`` checks and stages every ledger change inside the caller's
transaction, then ``release`` performs the external payout last.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from lpbridge.custody.base import AssetCustody
from lpbridge.errors import InsufficientReserve
from lpbridge.ledger.liquidity import BPS_DENOMINATOR, LiquidityLedger
from lpbridge.routing.base import PriceOracle, SwapVenue, native_for_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReleasePlan:
    """Staged payout for one inbound transfer."""

    amount: int
    native_in: int = 0
    min_out: int = 0


class LiquiditySource(ABC):
    """Where destination-side funds come from."""

    @property
    @abstractmethod
    def kind(self) -> str:
        """Short identifier recorded with processed instructions."""
        pass

    @abstractmethod
    async def prepare(self, ledger: LiquidityLedger, amount: int) -> ReleasePlan:
        """Check availability and stage ledger changes.

        Raises:
            ResourceError: the source cannot cover ``amount``
        """
        pass

    @abstractmethod
    async def release(self, plan: ReleasePlan, recipient: str) -> int:
        """Pay the recipient; returns the amount actually delivered."""
        pass


class PoolLiquiditySource(LiquiditySource):
    """Pays inbound transfers out of the LP pool."""

    def __init__(self, custody: AssetCustody):
        self.custody = custody

    @property
    def kind(self) -> str:
        return "pool"

    async def prepare(self, ledger: LiquidityLedger, amount: int) -> ReleasePlan:
        ledger.draw(amount)
        return ReleasePlan(amount=amount)

    async def release(self, plan: ReleasePlan, recipient: str) -> int:
        await self.custody.transfer_out(recipient, plan.amount)
        return plan.amount


class SwapLiquiditySource(LiquiditySource):
    """Converts the native reserve into the target asset on delivery.

    The estimate is padded by ``buffer_bps``; the venue is asked for at
    least the target less the same buffer and its reported output is
    what the recipient gets. Slippage is absorbed by the reserve.
    """

    def __init__(
        self,
        venue: SwapVenue,
        oracle: PriceOracle,
        native_custody: AssetCustody,
        target_asset: str = "USDT",
        native_asset: str = "ETH",
        native_decimals: int = 18,
        target_decimals: int = 6,
        buffer_bps: int = 500,
    ):
        if not 0 <= buffer_bps < BPS_DENOMINATOR:
            raise ValueError(f"Slippage buffer must be below 100%, got {buffer_bps} bps")
        self.venue = venue
        self.oracle = oracle
        self.native_custody = native_custody
        self.target_asset = target_asset
        self.native_asset = native_asset
        self.native_decimals = native_decimals
        self.target_decimals = target_decimals
        self.buffer_bps = buffer_bps

    @property
    def kind(self) -> str:
        return "swap"

    async def estimate_native(self, target_amount: int) -> int:
        """Native base units required, buffer included, for ``target_amount``."""
        rate = await self.oracle.get_rate(self.native_asset, self.target_asset)
        needed = native_for_target(
            target_amount, rate, self.native_decimals, self.target_decimals
        )
        numerator = needed * (BPS_DENOMINATOR + self.buffer_bps)
        return -(-numerator // BPS_DENOMINATOR)

    def min_output(self, target_amount: int) -> int:
        return target_amount * (BPS_DENOMINATOR - self.buffer_bps) // BPS_DENOMINATOR

    async def prepare(self, ledger: LiquidityLedger, amount: int) -> ReleasePlan:
        required = await self.estimate_native(amount)
        reserve = ledger.pool.native_reserve
        if reserve < required:
            raise InsufficientReserve(reserve, required)

        ledger.pool.native_reserve = reserve - required
        return ReleasePlan(amount=amount, native_in=required, min_out=self.min_output(amount))

    async def release(self, plan: ReleasePlan, recipient: str) -> int:
        # The venue collects the native input itself; the payout is its last step
        amount_out = await self.venue.swap(
            plan.native_in,
            plan.min_out,
            self.target_asset,
            recipient,
            payer=self.native_custody,
        )
        if amount_out != plan.amount:
            logger.info(
                f"Swap via {self.venue.name} delivered {amount_out} {self.target_asset} "
                f"for a {plan.amount} request"
            )
        return amount_out
