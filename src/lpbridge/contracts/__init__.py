"""Request and response contracts for the HTTP surface."""

from lpbridge.contracts.admin import (
    PeerRequest,
    PeerResponse,
    ProtocolFeeWithdrawalRequest,
    ProtocolFeeWithdrawalResponse,
)
from lpbridge.contracts.pool import LPPositionResponse, PoolStatsResponse
from lpbridge.contracts.quotes import BridgeQuote
from lpbridge.contracts.transfers import TransferResponse

__all__ = [
    "BridgeQuote",
    "LPPositionResponse",
    "PeerRequest",
    "PeerResponse",
    "PoolStatsResponse",
    "ProtocolFeeWithdrawalRequest",
    "ProtocolFeeWithdrawalResponse",
    "TransferResponse",
]
