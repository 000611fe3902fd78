"""Tests for domain wiring."""

import pytest

from lpbridge.factory import build_domain, build_oracle
from lpbridge.ledger.database import build_session_factory
from lpbridge.routing.coingecko import CoinGeckoPriceOracle
from lpbridge.routing.dry_run import FixedPriceOracle
from lpbridge.sources import PoolLiquiditySource, SwapLiquiditySource
from lpbridge.transport.loopback import LoopbackTransport

from tests.conftest import SOURCE_DOMAIN, domain_settings


class TestBuildDomain:
    """Tests for build_domain."""

    def test_pool_domain(self, db_engine):
        domain = build_domain(
            settings=domain_settings(SOURCE_DOMAIN, lp_fee_bps=10, fee_cap=1_000),
            session_factory=build_session_factory(db_engine),
        )

        orchestrator = domain.orchestrator
        assert isinstance(orchestrator.source, PoolLiquiditySource)
        assert isinstance(domain.transport, LoopbackTransport)
        assert orchestrator.address == f"bridge-{SOURCE_DOMAIN}"
        assert orchestrator.schedule.lp_rate_bps == 10
        assert orchestrator.schedule.fee_cap == 1_000
        assert domain.native_custody is None

    def test_swap_domain(self, db_engine):
        domain = build_domain(
            settings=domain_settings(SOURCE_DOMAIN, liquidity_source="swap", slippage_buffer_bps=300),
            session_factory=build_session_factory(db_engine),
        )

        source = domain.orchestrator.source
        assert isinstance(source, SwapLiquiditySource)
        assert source.buffer_bps == 300
        assert source.native_custody is domain.native_custody
        assert source.venue.target is domain.custody

    def test_unknown_source(self, db_engine):
        with pytest.raises(ValueError):
            build_domain(
                settings=domain_settings(SOURCE_DOMAIN, liquidity_source="bonds"),
                session_factory=build_session_factory(db_engine),
            )

    def test_live_requires_collaborators(self, db_engine):
        with pytest.raises(ValueError):
            build_domain(
                settings=domain_settings(SOURCE_DOMAIN, dry_run=False),
                session_factory=build_session_factory(db_engine),
            )

    def test_loopback_registration(self, db_engine):
        transport = LoopbackTransport()
        domain = build_domain(
            settings=domain_settings(SOURCE_DOMAIN),
            session_factory=build_session_factory(db_engine),
            transport=transport,
        )

        assert transport._handlers[SOURCE_DOMAIN] == domain.orchestrator.deliver


class TestBuildOracle:
    """Tests for oracle selection."""

    def test_dry_run_uses_fixed_price(self):
        oracle = build_oracle(domain_settings(SOURCE_DOMAIN, native_price="2500.5"))
        assert isinstance(oracle, FixedPriceOracle)
        assert str(oracle.prices["ETH"]) == "2500.5"

    def test_live_uses_coingecko(self):
        oracle = build_oracle(domain_settings(SOURCE_DOMAIN, dry_run=False))
        assert isinstance(oracle, CoinGeckoPriceOracle)
        assert oracle.coin_ids == {"ETH": "ethereum"}
