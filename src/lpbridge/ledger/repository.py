"""Repository for bridge ledger persistence."""

import json
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

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


class BridgeRepository:
    """Repository for all bridge ledger database operations.

    Methods flush but never commit; the caller owns the transaction.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    # Pool operations
    async def get_pool(self, domain_id: int, for_update: bool = False) -> Optional[PoolState]:
        """Get the pool row of a domain."""
        stmt = select(PoolState).where(PoolState.domain_id == domain_id)
        if for_update and self._dialect() == "postgresql":
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_pool(
        self, domain_id: int, owner: str, for_update: bool = False
    ) -> PoolState:
        """Get the pool row, creating an empty one on first use."""
        pool = await self.get_pool(domain_id, for_update=for_update)
        if pool is None:
            pool = PoolState(
                domain_id=domain_id,
                owner=owner,
                total_liquidity=0,
                fee_pool=0,
                total_shares=0,
                protocol_fees=0,
                total_volume=0,
                tx_count=0,
                native_reserve=0,
                lp_fees_accrued=0,
                created_at=datetime.now(timezone.utc),
            )
            self.session.add(pool)
            await self.session.flush()
        return pool

    def _dialect(self) -> str:
        return self.session.bind.dialect.name if self.session.bind else "sqlite"

    # Liquidity position operations
    async def get_position(self, account: str) -> Optional[LiquidityPosition]:
        """Get the LP position of an account."""
        stmt = select(LiquidityPosition).where(LiquidityPosition.account == account)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_or_create_position(self, account: str) -> LiquidityPosition:
        """Get or create an LP position for an account."""
        position = await self.get_position(account)
        if position is None:
            position = LiquidityPosition(account=account, shares=0, principal=0)
            self.session.add(position)
            await self.session.flush()
        return position

    async def get_all_positions(self) -> list[LiquidityPosition]:
        """Get every LP position."""
        stmt = select(LiquidityPosition).order_by(LiquidityPosition.account)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # Peer operations
    async def get_peer(self, domain_id: int) -> Optional[Peer]:
        """Get the registered peer for a domain."""
        stmt = select(Peer).where(Peer.domain_id == domain_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_peer(self, domain_id: int, peer: str) -> Peer:
        """Register or replace the peer for a domain."""
        record = await self.get_peer(domain_id)
        if record is None:
            record = Peer(domain_id=domain_id, peer=peer, enforced_options=b"")
            self.session.add(record)
        else:
            record.peer = peer
        await self.session.flush()
        return record

    async def get_all_peers(self) -> list[Peer]:
        """Get all registered peers."""
        stmt = select(Peer).order_by(Peer.domain_id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # Processed instruction tracking (exactly-once)
    async def get_processed_instruction(self, guid: str) -> Optional[ProcessedInstruction]:
        """Get the processed record of a guid."""
        stmt = select(ProcessedInstruction).where(ProcessedInstruction.guid == guid)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def is_instruction_processed(self, guid: str) -> bool:
        """Check if an instruction has already been applied."""
        return await self.get_processed_instruction(guid) is not None

    async def mark_instruction_processed(
        self,
        guid: str,
        src_domain: int,
        sender: str,
        sequence: int,
        recipient: str,
        amount: int,
        amount_released: int,
        source: str,
    ) -> ProcessedInstruction:
        """Mark an instruction as applied."""
        processed = ProcessedInstruction(
            guid=guid,
            src_domain=src_domain,
            sender=sender,
            sequence=sequence,
            recipient=recipient,
            amount=amount,
            amount_released=amount_released,
            source=source,
        )
        self.session.add(processed)
        await self.session.flush()
        return processed

    async def count_processed_instructions(self) -> int:
        """Number of instructions applied on this domain."""
        result = await self.session.execute(select(func.count(ProcessedInstruction.id)))
        return result.scalar() or 0

    # Outbound transfers
    async def record_outbound_transfer(
        self,
        guid: str,
        sequence: int,
        dest_domain: int,
        sender: str,
        recipient: str,
        amount: int,
        lp_fee: int,
        protocol_fee: int,
        amount_after_fee: int,
        messaging_fee: int,
    ) -> OutboundTransfer:
        """Record an instruction handed to the transport."""
        transfer = OutboundTransfer(
            guid=guid,
            sequence=sequence,
            dest_domain=dest_domain,
            sender=sender,
            recipient=recipient,
            amount=amount,
            lp_fee=lp_fee,
            protocol_fee=protocol_fee,
            amount_after_fee=amount_after_fee,
            messaging_fee=messaging_fee,
        )
        self.session.add(transfer)
        await self.session.flush()
        return transfer

    async def get_outbound_transfer(self, guid: str) -> Optional[OutboundTransfer]:
        """Get an outbound transfer by guid."""
        stmt = select(OutboundTransfer).where(OutboundTransfer.guid == guid)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    # Native reserve contributions
    async def get_native_deposit(self, account: str) -> Optional[NativeDeposit]:
        """Get the native reserve contribution of an account."""
        stmt = select(NativeDeposit).where(NativeDeposit.account == account)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def credit_native_deposit(self, account: str, amount: int) -> NativeDeposit:
        """Add to an account's native reserve contribution."""
        record = await self.get_native_deposit(account)
        if record is None:
            record = NativeDeposit(account=account, amount=0)
            self.session.add(record)
        record.amount += amount
        await self.session.flush()
        return record

    async def debit_native_deposit(self, account: str, amount: int) -> NativeDeposit:
        """Subtract from an account's contribution. Raises ValueError if insufficient."""
        record = await self.get_native_deposit(account)
        available = record.amount if record else 0
        if available < amount:
            raise ValueError(f"Insufficient native deposit: have {available}, need {amount}")
        record.amount -= amount
        await self.session.flush()
        return record

    # Event log
    async def add_event(
        self,
        event_type: EventType,
        guid: Optional[str] = None,
        account: Optional[str] = None,
        amount: Optional[int] = None,
        data: Optional[dict] = None,
    ) -> BridgeEvent:
        """Append an emitted event."""
        event = BridgeEvent(
            event_type=EventType(event_type).value,
            guid=guid,
            account=account,
            amount=amount,
            data_json=json.dumps(data, sort_keys=True) if data else None,
        )
        self.session.add(event)
        await self.session.flush()
        return event

    async def get_events(
        self,
        event_type: Optional[EventType] = None,
        guid: Optional[str] = None,
        limit: int = 100,
    ) -> list[BridgeEvent]:
        """Get emitted events in emission order."""
        stmt = select(BridgeEvent)
        if event_type is not None:
            stmt = stmt.where(BridgeEvent.event_type == EventType(event_type).value)
        if guid is not None:
            stmt = stmt.where(BridgeEvent.guid == guid)
        stmt = stmt.order_by(BridgeEvent.id).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
