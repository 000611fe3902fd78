"""Administrative request and response contracts."""

from typing import Optional

from pydantic import BaseModel, Field


class PeerRequest(BaseModel):
    """Register the trusted counterpart of a remote domain."""

    caller: str = Field(..., description="Identity performing the change (must be the owner)")
    domain_id: int = Field(..., ge=0, description="Remote domain id")
    peer: str = Field(..., min_length=1, description="Remote bridge identity")
    enforced_options: Optional[str] = Field(
        None, description="Hex type-3 options every send to this domain must carry"
    )


class PeerResponse(BaseModel):
    domain_id: int
    peer: Optional[str] = None
    registered: bool


class ProtocolFeeWithdrawalRequest(BaseModel):
    caller: str = Field(..., description="Identity performing the withdrawal (must be the owner)")


class ProtocolFeeWithdrawalResponse(BaseModel):
    success: bool
    amount: int
    recipient: str
