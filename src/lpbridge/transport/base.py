"""Abstract messaging transport interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Origin:
    """Authenticated source of an inbound delivery."""

    src_domain: int
    sender: str


@dataclass(frozen=True)
class DispatchReceipt:
    """What the transport returns for an accepted send."""

    guid: str
    sequence: int
    native_fee: int


@dataclass(frozen=True)
class Envelope:
    """A payload in flight between two domains."""

    origin: Origin
    dest_domain: int
    guid: str
    sequence: int
    payload: bytes
    options: bytes = b""


class MessagingTransport(ABC):
    """Moves opaque payloads between domains.

    Delivery is at-least-once and unordered; receivers must be idempotent.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Transport name identifier."""
        pass

    @abstractmethod
    async def estimate_fee(self, dest_domain: int, payload: bytes, options: bytes) -> int:
        """Native fee required to send ``payload`` to ``dest_domain``."""
        pass

    @abstractmethod
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
        """
        Send a payload.

        Args:
            sender: Identifier of the sending bridge on the source domain
            src_domain: Source domain id
            dest_domain: Destination domain id
            payload: Opaque encoded instruction
            options: Executor options
            budget: Native fee offered
            refund_to: Where unused budget is returned

        Returns:
            Receipt carrying the guid and channel sequence

        Raises:
            TransportError: the budget is too low or the send failed
        """
        pass
