"""In-process transport for dry-run deployments and tests.

Envelopes queue up on ``dispatch`` and are only handed to the destination
when a delivery method is called, so callers can delay, reorder and
duplicate deliveries the way a real relay might.
"""

import hashlib
import logging
from typing import Awaitable, Callable, Optional

from lpbridge.codec import receive_gas
from lpbridge.errors import TransportError
from lpbridge.transport.base import DispatchReceipt, Envelope, MessagingTransport, Origin

logger = logging.getLogger(__name__)

DeliveryHandler = Callable[[Envelope], Awaitable[object]]


class LoopbackTransport(MessagingTransport):
    """Shared in-memory relay between registered domains."""

    def __init__(
        self,
        base_fee: int = 10**13,
        gas_price: int = 10**8,
        byte_fee: int = 10**9,
    ):
        """Initialize loopback transport.

        Args:
            base_fee: Flat native fee per message
            gas_price: Native fee per unit of requested receive gas
            byte_fee: Native fee per payload byte
        """
        self.base_fee = base_fee
        self.gas_price = gas_price
        self.byte_fee = byte_fee
        self._handlers: dict[int, DeliveryHandler] = {}
        self._sequences: dict[tuple[int, int], int] = {}
        self._nonce = 0
        self.pending: list[Envelope] = []
        self.delivered: list[Envelope] = []
        self.fees_collected = 0
        self.refunds: dict[str, int] = {}

    @property
    def name(self) -> str:
        return "Loopback"

    def register(self, domain_id: int, handler: DeliveryHandler) -> None:
        """Route envelopes for ``domain_id`` to ``handler``."""
        self._handlers[domain_id] = handler

    async def estimate_fee(self, dest_domain: int, payload: bytes, options: bytes) -> int:
        return self.base_fee + receive_gas(options) * self.gas_price + len(payload) * self.byte_fee

    async def dispatch(
        self,
        sender: str,
        src_domain: int,
        dest_domain: int,
        payload: bytes,
        options: bytes,
        budget: int,
        refund_to: Optional[str] = None,
    ) -> DispatchReceipt:
        fee = await self.estimate_fee(dest_domain, payload, options)
        if budget < fee:
            raise TransportError(f"Messaging budget {budget} below fee {fee}")

        channel = (src_domain, dest_domain)
        sequence = self._sequences.get(channel, 0) + 1
        self._sequences[channel] = sequence
        self._nonce += 1

        seed = f"{src_domain}:{sender}:{dest_domain}:{sequence}:{self._nonce}".encode()
        guid = "0x" + hashlib.sha256(seed).hexdigest()

        self.fees_collected += fee
        if budget > fee and refund_to:
            self.refunds[refund_to] = self.refunds.get(refund_to, 0) + budget - fee

        envelope = Envelope(
            origin=Origin(src_domain=src_domain, sender=sender),
            dest_domain=dest_domain,
            guid=guid,
            sequence=sequence,
            payload=payload,
            options=options,
        )
        self.pending.append(envelope)
        logger.debug(f"Queued {guid} on channel {src_domain}->{dest_domain} seq {sequence}")
        return DispatchReceipt(guid=guid, sequence=sequence, native_fee=fee)

    async def deliver(self, envelope: Envelope) -> object:
        """Hand one envelope to its destination (may be a redelivery)."""
        handler = self._handlers.get(envelope.dest_domain)
        if handler is None:
            raise TransportError(f"No endpoint registered for domain {envelope.dest_domain}")

        result = await handler(envelope)
        if envelope in self.pending:
            self.pending.remove(envelope)
        self.delivered.append(envelope)
        return result

    async def deliver_next(self) -> Optional[object]:
        """Deliver the oldest pending envelope."""
        if not self.pending:
            return None
        return await self.deliver(self.pending[0])

    async def deliver_all(self, reverse: bool = False) -> list[object]:
        """Deliver every pending envelope, optionally newest first."""
        batch = list(reversed(self.pending)) if reverse else list(self.pending)
        return [await self.deliver(envelope) for envelope in batch]

    async def redeliver(self, guid: str) -> object:
        """Deliver an already-delivered envelope again."""
        for envelope in self.delivered:
            if envelope.guid == guid:
                return await self.deliver(envelope)
        raise TransportError(f"No delivered envelope with guid {guid}")
