"""Ledger module for pool state, LP positions and instruction tracking."""

from lpbridge.ledger.database import init_db, session_scope
from lpbridge.ledger.liquidity import LiquidityLedger, LPPosition
from lpbridge.ledger.models import (
    BridgeEvent,
    EventType,
    LiquidityPosition,
    NativeDeposit,
    OutboundTransfer,
    Peer,
    PoolState,
    ProcessedInstruction,
)
from lpbridge.ledger.repository import BridgeRepository

__all__ = [
    # Models
    "BridgeEvent",
    "LiquidityPosition",
    "NativeDeposit",
    "OutboundTransfer",
    "Peer",
    "PoolState",
    "ProcessedInstruction",
    # Enums
    "EventType",
    # Database
    "init_db",
    "session_scope",
    "BridgeRepository",
    # Accounting
    "LiquidityLedger",
    "LPPosition",
]
