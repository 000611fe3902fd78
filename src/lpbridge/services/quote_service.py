"""Quote service for bridge transfers.

This service computes what ``initiate`` would charge but does NOT move
funds or touch the ledger. It goes through the same fee engine, option
combination and transport estimate as ``initiate``, so a quote taken
with the same arguments matches what execution charges.
"""

import logging
from typing import Optional

from lpbridge.codec import encode_payload
from lpbridge.contracts.quotes import BridgeQuote
from lpbridge.fees import compute_fees
from lpbridge.orchestrator import TransferOrchestrator

logger = logging.getLogger(__name__)

# Payload size only affects the messaging fee; a 20-byte hex address is
# the typical recipient length.
PLACEHOLDER_RECIPIENT = "0x" + "0" * 40


class QuoteService:
    """Service for quoting bridge transfers.

    This is a READ-ONLY service that does not execute any transactions.
    """

    def __init__(self, orchestrator: TransferOrchestrator):
        self.orchestrator = orchestrator

    async def quote(
        self,
        dest_domain: int,
        amount: int,
        options: bytes = b"",
        recipient: Optional[str] = None,
    ) -> BridgeQuote:
        """Quote a transfer.

        Args:
            dest_domain: Destination domain id
            amount: Amount to send in base units
            options: Caller messaging options (combined with enforced ones)
            recipient: Recipient the transfer will name; only its length
                matters for the messaging fee

        Raises:
            InvalidAmount: amount is not positive
            UnregisteredDestination: no peer for ``dest_domain``
        """
        fees = compute_fees(amount, self.orchestrator.schedule)
        send_options = await self.orchestrator.messaging_options(dest_domain, options)
        payload = encode_payload(recipient or PLACEHOLDER_RECIPIENT, fees.amount_after_fee)
        messaging_fee = await self.orchestrator.transport.estimate_fee(
            dest_domain, payload, send_options
        )

        logger.debug(
            f"Quote to domain {dest_domain}: amount={amount} fee={fees.total_fee} "
            f"messaging={messaging_fee}"
        )
        return BridgeQuote(
            dest_domain=dest_domain,
            amount=amount,
            messaging_fee=messaging_fee,
            lp_fee=fees.lp_fee,
            protocol_fee=fees.protocol_fee,
            total_fee=fees.total_fee,
            amount_to_receive=fees.amount_after_fee,
            fee_capped=fees.capped,
            options="0x" + send_options.hex(),
        )
