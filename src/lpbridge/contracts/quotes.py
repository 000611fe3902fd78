"""Bridge quote contracts."""

from pydantic import BaseModel, Field


class BridgeQuote(BaseModel):
    """What a transfer of ``amount`` to ``dest_domain`` would cost right now."""

    dest_domain: int = Field(..., description="Destination domain id")
    amount: int = Field(..., description="Amount sent, in base units")
    messaging_fee: int = Field(..., description="Native fee the transport charges")
    lp_fee: int = Field(..., description="Fee credited to liquidity providers")
    protocol_fee: int = Field(..., description="Fee credited to the protocol")
    total_fee: int = Field(..., description="lp_fee + protocol_fee")
    amount_to_receive: int = Field(..., description="Amount released on the destination")
    fee_capped: bool = Field(default=False, description="Whether the absolute fee cap applied")
    options: str = Field(default="0x", description="Hex messaging options that would be sent")
