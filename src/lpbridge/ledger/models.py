"""SQLAlchemy models for the bridge ledger."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import (
    DateTime,
    Index,
    Integer,
    LargeBinary,
    String,
    Text,
    TypeDecorator,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class UInt256(TypeDecorator):
    """Unsigned 256-bit integer stored as a decimal string.

    Keeps base-unit amounts bit-exact on every backend.
    """

    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value < 0:
            raise ValueError(f"Negative value {value} for unsigned column")
        return str(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class EventType(str, Enum):
    """Events emitted by the orchestrator."""

    TRANSFER_INITIATED = "TransferInitiated"
    TRANSFER_COMPLETED = "TransferCompleted"
    LIQUIDITY_ADDED = "LiquidityAdded"
    LIQUIDITY_REMOVED = "LiquidityRemoved"
    PEER_SET = "PeerSet"
    ENFORCED_OPTIONS_SET = "EnforcedOptionsSet"
    PROTOCOL_FEES_WITHDRAWN = "ProtocolFeesWithdrawn"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"
    NATIVE_DEPOSITED = "NativeDeposited"
    NATIVE_WITHDRAWN = "NativeWithdrawn"


class PoolState(Base):
    """Global pool totals of one domain (single row)."""

    __tablename__ = "pool_state"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    domain_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    owner: Mapped[str] = mapped_column(String(255), nullable=False)
    total_liquidity: Mapped[int] = mapped_column(UInt256, default=0)  # principal backing
    fee_pool: Mapped[int] = mapped_column(UInt256, default=0)  # undistributed LP fees
    total_shares: Mapped[int] = mapped_column(UInt256, default=0)
    protocol_fees: Mapped[int] = mapped_column(UInt256, default=0)  # owner-claimable
    total_volume: Mapped[int] = mapped_column(UInt256, default=0)
    tx_count: Mapped[int] = mapped_column(UInt256, default=0)
    lp_fees_accrued: Mapped[int] = mapped_column(UInt256, default=0)  # cumulative, for APY
    native_reserve: Mapped[int] = mapped_column(UInt256, default=0)  # swap source only
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class LiquidityPosition(Base):
    """LP share balance of one account."""

    __tablename__ = "liquidity_positions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    shares: Mapped[int] = mapped_column(UInt256, default=0)
    principal: Mapped[int] = mapped_column(UInt256, default=0)  # deposits not yet withdrawn
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class Peer(Base):
    """Trusted counterpart on another domain."""

    __tablename__ = "peers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    domain_id: Mapped[int] = mapped_column(Integer, unique=True, nullable=False, index=True)
    peer: Mapped[str] = mapped_column(String(255), nullable=False)
    enforced_options: Mapped[bytes] = mapped_column(LargeBinary, default=b"")
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class ProcessedInstruction(Base):
    """Inbound instructions already applied on this domain.

    The unique guid is the exactly-once proof: a redelivered instruction
    finds its row and is rejected.
    """

    __tablename__ = "processed_instructions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(66), unique=True, nullable=False, index=True)
    src_domain: Mapped[int] = mapped_column(Integer, nullable=False)
    sender: Mapped[str] = mapped_column(String(255), nullable=False)
    sequence: Mapped[int] = mapped_column(UInt256, default=0)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(UInt256, nullable=False)
    amount_released: Mapped[int] = mapped_column(UInt256, nullable=False)
    source: Mapped[str] = mapped_column(String(20), nullable=False)  # pool, swap
    processed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class OutboundTransfer(Base):
    """Instruction dispatched from this domain."""

    __tablename__ = "outbound_transfers"
    __table_args__ = (Index("ix_outbound_dest_sequence", "dest_domain", "sequence"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    guid: Mapped[str] = mapped_column(String(66), unique=True, nullable=False, index=True)
    sequence: Mapped[int] = mapped_column(UInt256, nullable=False)
    dest_domain: Mapped[int] = mapped_column(Integer, nullable=False)
    sender: Mapped[str] = mapped_column(String(255), nullable=False)
    recipient: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[int] = mapped_column(UInt256, nullable=False)  # gross, before fees
    lp_fee: Mapped[int] = mapped_column(UInt256, nullable=False)
    protocol_fee: Mapped[int] = mapped_column(UInt256, nullable=False)
    amount_after_fee: Mapped[int] = mapped_column(UInt256, nullable=False)
    messaging_fee: Mapped[int] = mapped_column(UInt256, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class NativeDeposit(Base):
    """Native reserve contributed by one account (swap source)."""

    __tablename__ = "native_deposits"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    amount: Mapped[int] = mapped_column(UInt256, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class BridgeEvent(Base):
    """Append-only log of emitted events."""

    __tablename__ = "bridge_events"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    event_type: Mapped[EventType] = mapped_column(String(40), nullable=False, index=True)
    guid: Mapped[Optional[str]] = mapped_column(String(66), nullable=True, index=True)
    account: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    amount: Mapped[Optional[int]] = mapped_column(UInt256, nullable=True)
    data_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
