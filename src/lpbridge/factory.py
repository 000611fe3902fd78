"""Domain wiring.

Builds one domain's orchestrator and quote service from settings. In
dry-run mode the collaborators are in-process: loopback transport,
in-memory custody and the simulated swap venue. Live collaborators must
be passed in explicitly.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lpbridge.codec import lz_receive_option
from lpbridge.config import Settings, get_settings
from lpbridge.custody.base import AssetCustody
from lpbridge.custody.memory import InMemoryCustody
from lpbridge.fees import FeeSchedule
from lpbridge.ledger.database import get_session_factory
from lpbridge.orchestrator import TransferOrchestrator
from lpbridge.routing.base import PriceOracle, SwapVenue
from lpbridge.routing.coingecko import CoinGeckoPriceOracle
from lpbridge.routing.dry_run import DryRunSwapVenue, FixedPriceOracle
from lpbridge.services.quote_service import QuoteService
from lpbridge.sources import LiquiditySource, PoolLiquiditySource, SwapLiquiditySource
from lpbridge.transport.base import MessagingTransport
from lpbridge.transport.loopback import LoopbackTransport

logger = logging.getLogger(__name__)


@dataclass
class BridgeDomain:
    """Everything one domain runs on."""

    settings: Settings
    orchestrator: TransferOrchestrator
    quotes: QuoteService
    transport: MessagingTransport
    custody: AssetCustody
    native_custody: Optional[AssetCustody] = None


def schedule_from_settings(settings: Settings) -> FeeSchedule:
    return FeeSchedule(
        lp_rate_bps=settings.lp_fee_bps,
        protocol_rate_bps=settings.protocol_fee_bps,
        fee_cap=settings.fee_cap,
    )


def build_oracle(settings: Settings) -> PriceOracle:
    """Fixed-price oracle in dry-run mode, CoinGecko otherwise."""
    if settings.dry_run:
        return FixedPriceOracle({settings.native_symbol.upper(): Decimal(settings.native_price)})
    return CoinGeckoPriceOracle(
        coin_ids={settings.native_symbol: settings.coingecko_native_id},
        api_url=settings.coingecko_api_url,
    )


def build_domain(
    settings: Optional[Settings] = None,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    transport: Optional[MessagingTransport] = None,
    custody: Optional[AssetCustody] = None,
    native_custody: Optional[AssetCustody] = None,
    venue: Optional[SwapVenue] = None,
    oracle: Optional[PriceOracle] = None,
    address: Optional[str] = None,
) -> BridgeDomain:
    """Wire a domain from settings.

    Raises:
        ValueError: a live deployment is missing a collaborator, or the
            liquidity source setting is unknown
    """
    settings = settings or get_settings()
    session_factory = session_factory or get_session_factory()
    address = address or f"bridge-{settings.domain_id}"

    if not settings.dry_run and (transport is None or custody is None):
        raise ValueError("Live deployments need an explicit transport and custody")

    transport = transport or LoopbackTransport()
    custody = custody or InMemoryCustody(asset=settings.asset_symbol, address=address)

    source: LiquiditySource
    kind = settings.liquidity_source.lower()
    if kind == "pool":
        source = PoolLiquiditySource(custody)
    elif kind == "swap":
        oracle = oracle or build_oracle(settings)
        if venue is None or native_custody is None:
            if not settings.dry_run:
                raise ValueError("Swap-sourced live deployments need a venue and native custody")
            native_custody = native_custody or InMemoryCustody(
                asset=settings.native_symbol, address=address
            )
            venue = venue or DryRunSwapVenue(
                target=custody,
                oracle=oracle,
                native_asset=settings.native_symbol,
                native_decimals=settings.native_decimals,
                target_decimals=settings.token_decimals,
            )
        source = SwapLiquiditySource(
            venue=venue,
            oracle=oracle,
            native_custody=native_custody,
            target_asset=settings.asset_symbol,
            native_asset=settings.native_symbol,
            native_decimals=settings.native_decimals,
            target_decimals=settings.token_decimals,
            buffer_bps=settings.slippage_buffer_bps,
        )
    else:
        raise ValueError(f"Unknown liquidity source {settings.liquidity_source!r}")

    orchestrator = TransferOrchestrator(
        domain_id=settings.domain_id,
        address=address,
        session_factory=session_factory,
        transport=transport,
        custody=custody,
        source=source,
        schedule=schedule_from_settings(settings),
        owner=settings.owner,
        default_options=lz_receive_option(settings.default_receive_gas),
        lock_timeout=settings.lock_timeout,
    )
    if isinstance(transport, LoopbackTransport):
        transport.register(settings.domain_id, orchestrator.deliver)

    logger.info(
        f"Domain {settings.domain_id} wired: source={source.kind} "
        f"transport={transport.name} dry_run={settings.dry_run}"
    )
    return BridgeDomain(
        settings=settings,
        orchestrator=orchestrator,
        quotes=QuoteService(orchestrator),
        transport=transport,
        custody=custody,
        native_custody=native_custody,
    )
