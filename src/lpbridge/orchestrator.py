"""Transfer orchestrator: send, receive and administer one bridge domain.

Every public mutating operation runs under the domain execution lock and
inside a single database transaction. Ledger changes are staged first and
external collaborator calls come last, so any failure rolls the whole
call back. Inbound instructions are applied at most once per guid.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from lpbridge.codec import combine_options, decode_payload, encode_payload, parse_options
from lpbridge.custody.base import AssetCustody
from lpbridge.errors import (
    BridgeError,
    DuplicateInstruction,
    InsufficientMessagingBudget,
    InsufficientReserve,
    InvalidRecipient,
    NotOwner,
    UnregisteredDestination,
    UnsupportedOperation,
    UntrustedOrigin,
)
from lpbridge.fees import FeeQuote, FeeSchedule, compute_fees
from lpbridge.ledger.database import session_scope
from lpbridge.ledger.liquidity import LiquidityLedger, LPPosition, require_positive
from lpbridge.ledger.models import EventType, OutboundTransfer, Peer, PoolState
from lpbridge.ledger.repository import BridgeRepository
from lpbridge.sources import LiquiditySource, SwapLiquiditySource
from lpbridge.transport.base import Envelope, MessagingTransport, Origin
from lpbridge.utils.locks import DomainExecutionLock

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferInstruction:
    """The unit exchanged between domains."""

    src_domain: int
    dest_domain: int
    recipient: str
    amount: int
    guid: str
    sequence: int


@dataclass(frozen=True)
class InitiatedTransfer:
    """Result of ``initiate``: the instruction plus what was charged."""

    instruction: TransferInstruction
    fees: FeeQuote
    messaging_fee: int

    @property
    def guid(self) -> str:
        return self.instruction.guid


class DeliveryStatus(str, Enum):
    """Outcome of an inbound delivery."""

    COMPLETED = "completed"
    DUPLICATE = "duplicate"


@dataclass(frozen=True)
class DeliveryResult:
    guid: str
    status: DeliveryStatus
    amount: int = 0


@dataclass(frozen=True)
class PoolStats:
    """Snapshot of pool totals."""

    domain_id: int
    owner: str
    total_liquidity: int
    available_liquidity: int
    fee_pool: int
    protocol_fees: int
    total_shares: int
    total_volume: int
    tx_count: int
    share_price: Decimal
    native_reserve: int
    liquidity_source: str
    inbound_count: int
    apy_bps: int
    created_at: Optional[datetime]


class TransferOrchestrator:
    """Bridge state machine of one domain."""

    def __init__(
        self,
        domain_id: int,
        address: str,
        session_factory: async_sessionmaker[AsyncSession],
        transport: MessagingTransport,
        custody: AssetCustody,
        source: LiquiditySource,
        schedule: Optional[FeeSchedule] = None,
        owner: str = "owner",
        default_options: bytes = b"",
        lock_timeout: Optional[float] = 30.0,
    ):
        """Initialize the orchestrator.

        Args:
            domain_id: Identifier of this domain
            address: This bridge's identity, as registered in remote peers
            session_factory: Sessions on this domain's database
            transport: Messaging collaborator
            custody: Custody of the bridged asset
            source: Destination-side liquidity source
            schedule: Fee schedule (defaults to 5/25 bps, cap 5,000,000)
            owner: Administrator used when the pool row is first created
            default_options: Messaging options used when no enforced options are set
            lock_timeout: Seconds to wait for the domain lock
        """
        self.domain_id = domain_id
        self.address = address
        self.transport = transport
        self.custody = custody
        self.source = source
        self.schedule = schedule or FeeSchedule()
        self.initial_owner = owner
        self.default_options = default_options
        self._session_factory = session_factory
        self._lock = DomainExecutionLock(domain_id, timeout=lock_timeout)

    # ------------------------------------------------------------------
    # Transaction plumbing
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _transaction(self, operation: str):
        async with self._lock.hold(operation):
            async with session_scope(self._session_factory) as session:
                repo = BridgeRepository(session)
                pool = await repo.get_or_create_pool(
                    self.domain_id, self.initial_owner, for_update=True
                )
                yield repo, LiquidityLedger(repo, pool)

    @asynccontextmanager
    async def _snapshot(self):
        async with self._session_factory() as session:
            repo = BridgeRepository(session)
            pool = await repo.get_pool(self.domain_id)
            if pool is None:
                pool = PoolState(
                    domain_id=self.domain_id,
                    owner=self.initial_owner,
                    total_liquidity=0,
                    fee_pool=0,
                    total_shares=0,
                    protocol_fees=0,
                    total_volume=0,
                    tx_count=0,
                    native_reserve=0,
                    lp_fees_accrued=0,
                )
            yield repo, LiquidityLedger(repo, pool)

    @staticmethod
    def _require_owner(pool: PoolState, caller: str) -> None:
        if caller != pool.owner:
            logger.warning(f"Rejected admin call from non-owner {caller!r}")
            raise NotOwner(caller)

    def _send_options(self, peer: Peer, options: bytes) -> bytes:
        enforced = peer.enforced_options or self.default_options
        return combine_options(enforced, options or b"")

    async def messaging_options(self, dest_domain: int, options: bytes = b"") -> bytes:
        """Options ``initiate`` would send to ``dest_domain``.

        Raises:
            UnregisteredDestination: no peer for the domain
        """
        async with self._snapshot() as (repo, _):
            peer = await repo.get_peer(dest_domain)
            if peer is None:
                raise UnregisteredDestination(dest_domain)
            return self._send_options(peer, options)

    # ------------------------------------------------------------------
    # Source side
    # ------------------------------------------------------------------

    async def initiate(
        self,
        sender: str,
        dest_domain: int,
        recipient: str,
        amount: int,
        messaging_budget: int,
        options: bytes = b"",
        refund_to: Optional[str] = None,
    ) -> InitiatedTransfer:
        """Lock ``amount`` from ``sender`` and dispatch the net amount to ``recipient``.

        Raises:
            InvalidAmount: amount is not positive
            InvalidRecipient: recipient is empty
            UnregisteredDestination: no peer for ``dest_domain``
            InsufficientMessagingBudget: budget below the transport fee
            CustodyError: sender could not fund the transfer
        """
        require_positive(amount)
        if not recipient or not isinstance(recipient, str):
            raise InvalidRecipient(recipient)

        async with self._transaction("initiate") as (repo, ledger):
            peer = await repo.get_peer(dest_domain)
            if peer is None:
                raise UnregisteredDestination(dest_domain)

            fees = compute_fees(amount, self.schedule)
            payload = encode_payload(recipient, fees.amount_after_fee)
            send_options = self._send_options(peer, options)

            native_fee = await self.transport.estimate_fee(dest_domain, payload, send_options)
            if messaging_budget < native_fee:
                raise InsufficientMessagingBudget(messaging_budget, native_fee)

            ledger.accrue_fee(fees.lp_fee)
            ledger.pool.protocol_fees += fees.protocol_fee
            ledger.add_backing(fees.amount_after_fee)
            ledger.accrue_volume(amount)
            ledger.increment_tx_count()
            await repo.session.flush()

            await self.custody.transfer_in(sender, amount)
            try:
                receipt = await self.transport.dispatch(
                    sender=self.address,
                    src_domain=self.domain_id,
                    dest_domain=dest_domain,
                    payload=payload,
                    options=send_options,
                    budget=messaging_budget,
                    refund_to=refund_to or sender,
                )
            except Exception as e:
                logger.error(f"Dispatch to domain {dest_domain} failed, refunding {sender}: {e}")
                await self.custody.transfer_out(sender, amount)
                raise

            await repo.record_outbound_transfer(
                guid=receipt.guid,
                sequence=receipt.sequence,
                dest_domain=dest_domain,
                sender=sender,
                recipient=recipient,
                amount=amount,
                lp_fee=fees.lp_fee,
                protocol_fee=fees.protocol_fee,
                amount_after_fee=fees.amount_after_fee,
                messaging_fee=receipt.native_fee,
            )
            await repo.add_event(
                EventType.TRANSFER_INITIATED,
                guid=receipt.guid,
                account=sender,
                amount=fees.amount_after_fee,
                data={"total_fee": fees.total_fee, "dest_domain": dest_domain},
            )

        instruction = TransferInstruction(
            src_domain=self.domain_id,
            dest_domain=dest_domain,
            recipient=recipient,
            amount=fees.amount_after_fee,
            guid=receipt.guid,
            sequence=receipt.sequence,
        )
        logger.info(
            f"Transfer {receipt.guid} initiated: {amount} from {sender} -> {recipient} "
            f"on domain {dest_domain} (net {fees.amount_after_fee}, fee {fees.total_fee})"
        )
        return InitiatedTransfer(
            instruction=instruction, fees=fees, messaging_fee=receipt.native_fee
        )

    # ------------------------------------------------------------------
    # Destination side
    # ------------------------------------------------------------------

    async def _check_origin(
        self, repo: BridgeRepository, origin: Origin, guid: str, instruction: TransferInstruction
    ) -> None:
        peer = await repo.get_peer(origin.src_domain)
        if peer is None:
            raise UntrustedOrigin(origin.src_domain, origin.sender, "no peer registered")
        if peer.peer != origin.sender:
            raise UntrustedOrigin(origin.src_domain, origin.sender, "peer mismatch")
        if instruction.src_domain != origin.src_domain or instruction.dest_domain != self.domain_id:
            raise UntrustedOrigin(origin.src_domain, origin.sender, "channel mismatch")
        if instruction.guid != guid:
            raise UntrustedOrigin(origin.src_domain, origin.sender, "guid mismatch")

    async def receive(
        self, origin: Origin, guid: str, instruction: TransferInstruction
    ) -> DeliveryResult:
        """Apply an inbound instruction exactly once.

        Raises:
            UntrustedOrigin: origin is not the registered peer for its domain
            DuplicateInstruction: guid already applied
            InsufficientLiquidity: pool cannot cover the amount (terminal for
                this delivery; a later redelivery may succeed once topped up)
            InsufficientReserve: swap source cannot cover the amount
        """
        async with self._transaction("receive") as (repo, ledger):
            await self._check_origin(repo, origin, guid, instruction)
            if await repo.is_instruction_processed(guid):
                raise DuplicateInstruction(guid)
            require_positive(instruction.amount)

            plan = await self.source.prepare(ledger, instruction.amount)
            processed = await repo.mark_instruction_processed(
                guid=guid,
                src_domain=origin.src_domain,
                sender=origin.sender,
                sequence=instruction.sequence,
                recipient=instruction.recipient,
                amount=instruction.amount,
                amount_released=0,
                source=self.source.kind,
            )

            released = await self.source.release(plan, instruction.recipient)

            processed.amount_released = released
            await repo.add_event(
                EventType.TRANSFER_COMPLETED,
                guid=guid,
                account=instruction.recipient,
                amount=released,
                data={"src_domain": origin.src_domain, "sequence": instruction.sequence},
            )

        logger.info(
            f"Transfer {guid} completed: {released} to {instruction.recipient} "
            f"via {self.source.kind}"
        )
        return DeliveryResult(guid=guid, status=DeliveryStatus.COMPLETED, amount=released)

    async def deliver(self, envelope: Envelope) -> DeliveryResult:
        """Transport entry point.

        A redelivered guid is reported as ``DeliveryStatus.DUPLICATE``
        rather than raised; every other rejection propagates, an
        undecodable payload as ``InvalidPayload``.
        """
        try:
            payload = decode_payload(envelope.payload)
            instruction = TransferInstruction(
                src_domain=envelope.origin.src_domain,
                dest_domain=envelope.dest_domain,
                recipient=payload.recipient,
                amount=payload.amount,
                guid=envelope.guid,
                sequence=envelope.sequence,
            )
            return await self.receive(envelope.origin, envelope.guid, instruction)
        except DuplicateInstruction:
            logger.info(f"Ignored redelivery of {envelope.guid} (seq {envelope.sequence})")
            return DeliveryResult(guid=envelope.guid, status=DeliveryStatus.DUPLICATE)
        except BridgeError as e:
            logger.warning(f"Rejected delivery of {envelope.guid}: {e}")
            raise

    # ------------------------------------------------------------------
    # Liquidity providers
    # ------------------------------------------------------------------

    async def add_liquidity(self, account: str, amount: int) -> int:
        """Deposit ``amount`` into the pool; returns shares minted."""
        require_positive(amount)
        async with self._transaction("add_liquidity") as (repo, ledger):
            shares = await ledger.deposit(account, amount)
            await repo.session.flush()
            await self.custody.transfer_in(account, amount)
            await repo.add_event(
                EventType.LIQUIDITY_ADDED,
                account=account,
                amount=amount,
                data={"shares": shares},
            )
        return shares

    async def remove_liquidity(self, account: str, shares: int) -> int:
        """Burn ``shares``; returns the amount paid out."""
        async with self._transaction("remove_liquidity") as (repo, ledger):
            held = await self.custody.balance()
            # Protocol fees in custody belong to the owner
            lp_available = max(0, held - ledger.pool.protocol_fees)
            amount = await ledger.withdraw(account, shares, lp_available)
            await repo.session.flush()
            await self.custody.transfer_out(account, amount)
            await repo.add_event(
                EventType.LIQUIDITY_REMOVED,
                account=account,
                amount=amount,
                data={"shares": shares},
            )
        return amount

    # ------------------------------------------------------------------
    # Native reserve (swap-sourced domains)
    # ------------------------------------------------------------------

    def _swap_source(self) -> SwapLiquiditySource:
        if not isinstance(self.source, SwapLiquiditySource):
            raise UnsupportedOperation(
                f"Domain {self.domain_id} uses {self.source.kind} liquidity, not a native reserve"
            )
        return self.source

    async def deposit_native(self, account: str, amount: int) -> int:
        """Add native reserve; returns the new reserve total."""
        source = self._swap_source()
        require_positive(amount)
        async with self._transaction("deposit_native") as (repo, ledger):
            ledger.pool.native_reserve += amount
            await repo.credit_native_deposit(account, amount)
            await source.native_custody.transfer_in(account, amount)
            await repo.add_event(EventType.NATIVE_DEPOSITED, account=account, amount=amount)
            reserve = ledger.pool.native_reserve
        logger.info(f"Native deposit: {account} added {amount}, reserve now {reserve}")
        return reserve

    async def withdraw_native(self, account: str, amount: int) -> int:
        """Withdraw an account's own native contribution still in reserve."""
        source = self._swap_source()
        require_positive(amount)
        async with self._transaction("withdraw_native") as (repo, ledger):
            record = await repo.get_native_deposit(account)
            contributed = record.amount if record else 0
            if contributed < amount:
                raise InsufficientReserve(contributed, amount)
            if ledger.pool.native_reserve < amount:
                raise InsufficientReserve(ledger.pool.native_reserve, amount)

            ledger.pool.native_reserve -= amount
            await repo.debit_native_deposit(account, amount)
            await source.native_custody.transfer_out(account, amount)
            await repo.add_event(EventType.NATIVE_WITHDRAWN, account=account, amount=amount)
        return amount

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    async def set_peer(self, caller: str, domain_id: int, peer: str) -> None:
        """Register the trusted counterpart for ``domain_id``. Owner only."""
        async with self._transaction("set_peer") as (repo, ledger):
            self._require_owner(ledger.pool, caller)
            if not peer:
                raise InvalidRecipient(peer)
            await repo.set_peer(domain_id, peer)
            await repo.add_event(
                EventType.PEER_SET, account=peer, data={"domain_id": domain_id}
            )
        logger.info(f"Peer for domain {domain_id} set to {peer}")

    async def set_enforced_options(self, caller: str, domain_id: int, options: bytes) -> None:
        """Set options every send to ``domain_id`` must carry. Owner only."""
        async with self._transaction("set_enforced_options") as (repo, ledger):
            self._require_owner(ledger.pool, caller)
            parse_options(options)
            record = await repo.get_peer(domain_id)
            if record is None:
                raise UnregisteredDestination(domain_id)
            record.enforced_options = options
            await repo.add_event(
                EventType.ENFORCED_OPTIONS_SET,
                data={"domain_id": domain_id, "options": "0x" + options.hex()},
            )
        logger.info(f"Enforced options for domain {domain_id} set to 0x{options.hex()}")

    async def withdraw_protocol_fees(self, caller: str) -> int:
        """Pay accrued protocol fees to the owner. Owner only."""
        async with self._transaction("withdraw_protocol_fees") as (repo, ledger):
            self._require_owner(ledger.pool, caller)
            amount = ledger.pool.protocol_fees
            if amount == 0:
                return 0
            ledger.pool.protocol_fees = 0
            await repo.session.flush()
            await self.custody.transfer_out(ledger.pool.owner, amount)
            await repo.add_event(
                EventType.PROTOCOL_FEES_WITHDRAWN, account=ledger.pool.owner, amount=amount
            )
        logger.info(f"Protocol fees withdrawn: {amount}")
        return amount

    async def transfer_ownership(self, caller: str, new_owner: str) -> None:
        """Hand administration to ``new_owner``. Owner only."""
        async with self._transaction("transfer_ownership") as (repo, ledger):
            self._require_owner(ledger.pool, caller)
            if not new_owner:
                raise InvalidRecipient(new_owner)
            ledger.pool.owner = new_owner
            await repo.add_event(
                EventType.OWNERSHIP_TRANSFERRED, account=new_owner, data={"previous": caller}
            )
        logger.info(f"Ownership of domain {self.domain_id} transferred to {new_owner}")

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    async def stats(self) -> PoolStats:
        """Current pool totals."""
        async with self._snapshot() as (repo, ledger):
            pool = ledger.pool
            held = await self.custody.balance()
            available = min(pool.total_liquidity, max(0, held - pool.protocol_fees))
            return PoolStats(
                domain_id=self.domain_id,
                owner=pool.owner,
                total_liquidity=pool.total_liquidity,
                available_liquidity=available,
                fee_pool=pool.fee_pool,
                protocol_fees=pool.protocol_fees,
                total_shares=pool.total_shares,
                total_volume=pool.total_volume,
                tx_count=pool.tx_count,
                share_price=ledger.share_price,
                native_reserve=pool.native_reserve,
                liquidity_source=self.source.kind,
                inbound_count=await repo.count_processed_instructions(),
                apy_bps=ledger.estimate_apy_bps(),
                created_at=ledger.created_at,
            )

    async def estimate_apy(self, now: Optional[datetime] = None) -> int:
        """Annualised LP fee yield in basis points."""
        async with self._snapshot() as (_, ledger):
            return ledger.estimate_apy_bps(now)

    async def lp_position(self, account: str) -> LPPosition:
        """Shares, value, ownership and earnings of an LP."""
        async with self._snapshot() as (_, ledger):
            return await ledger.position(account)

    async def peer(self, domain_id: int) -> Optional[str]:
        """Registered peer for a domain, if any."""
        async with self._snapshot() as (repo, _):
            record = await repo.get_peer(domain_id)
            return record.peer if record else None

    async def peers(self) -> dict[int, str]:
        """Every registered peer, by domain."""
        async with self._snapshot() as (repo, _):
            return {record.domain_id: record.peer for record in await repo.get_all_peers()}

    async def outbound_transfer(self, guid: str) -> Optional[OutboundTransfer]:
        """Record of an instruction dispatched from this domain."""
        async with self._snapshot() as (repo, _):
            return await repo.get_outbound_transfer(guid)

    async def is_processed(self, guid: str) -> bool:
        """Whether an inbound guid has been applied."""
        async with self._snapshot() as (repo, _):
            return await repo.is_instruction_processed(guid)

    async def events(self, event_type: Optional[EventType] = None, guid: Optional[str] = None):
        """Emitted events, oldest first."""
        async with self._snapshot() as (repo, _):
            return await repo.get_events(event_type=event_type, guid=guid)
