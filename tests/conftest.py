"""Pytest configuration and fixtures."""

import os
from dataclasses import dataclass
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["DEBUG"] = "true"
os.environ["ADMIN_TOKEN"] = ""

from lpbridge.config import Settings
from lpbridge.factory import BridgeDomain, build_domain
from lpbridge.ledger.database import build_engine, build_session_factory, init_db
from lpbridge.ledger.repository import BridgeRepository
from lpbridge.transport.loopback import LoopbackTransport

SOURCE_DOMAIN = 40161
DEST_DOMAIN = 40231
OWNER = "owner"

# One whole token at 6 decimals
UNIT = 10**6
# Comfortably above any loopback messaging fee
BUDGET = 10**15


def domain_settings(domain_id: int, **overrides) -> Settings:
    """Settings for a dry-run test domain."""
    values = {
        "domain_id": domain_id,
        "owner": OWNER,
        "dry_run": True,
        "database_url": "sqlite+aiosqlite:///:memory:",
        "admin_token": "",
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create in-memory database engine for testing."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create database session for testing."""
    session_factory = build_session_factory(db_engine)

    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def repo(db_session: AsyncSession) -> BridgeRepository:
    """Create bridge repository for testing."""
    return BridgeRepository(db_session)


@pytest.fixture
def transport() -> LoopbackTransport:
    """Loopback relay shared by every domain of a test."""
    return LoopbackTransport()


@pytest_asyncio.fixture
async def make_domain(transport):
    """Factory building dry-run domains, each on its own in-memory database."""
    engines: list[AsyncEngine] = []

    async def _make(domain_id: int, **overrides) -> BridgeDomain:
        engine = build_engine("sqlite+aiosqlite:///:memory:")
        await init_db(engine)
        engines.append(engine)
        return build_domain(
            settings=domain_settings(domain_id, **overrides),
            session_factory=build_session_factory(engine),
            transport=transport,
        )

    yield _make

    for engine in engines:
        await engine.dispose()


@dataclass
class BridgePair:
    """Two domains registered as each other's peer."""

    source: BridgeDomain
    dest: BridgeDomain
    transport: LoopbackTransport


async def link(a: BridgeDomain, b: BridgeDomain) -> None:
    await a.orchestrator.set_peer(OWNER, b.orchestrator.domain_id, b.orchestrator.address)
    await b.orchestrator.set_peer(OWNER, a.orchestrator.domain_id, a.orchestrator.address)


@pytest_asyncio.fixture
async def bridge(make_domain, transport) -> BridgePair:
    """Pool-sourced source and destination domains, linked."""
    source = await make_domain(SOURCE_DOMAIN)
    dest = await make_domain(DEST_DOMAIN)
    await link(source, dest)
    return BridgePair(source=source, dest=dest, transport=transport)


@pytest_asyncio.fixture
async def swap_bridge(make_domain, transport) -> BridgePair:
    """Pool-sourced source domain linked to a swap-sourced destination."""
    source = await make_domain(SOURCE_DOMAIN)
    dest = await make_domain(DEST_DOMAIN, liquidity_source="swap", native_price="3900")
    await link(source, dest)
    return BridgePair(source=source, dest=dest, transport=transport)
