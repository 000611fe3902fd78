"""Messaging transport collaborators."""

from lpbridge.transport.base import DispatchReceipt, Envelope, MessagingTransport, Origin
from lpbridge.transport.loopback import LoopbackTransport

__all__ = [
    "DispatchReceipt",
    "Envelope",
    "LoopbackTransport",
    "MessagingTransport",
    "Origin",
]
