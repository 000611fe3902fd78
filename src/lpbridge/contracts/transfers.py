"""Outbound transfer contracts."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TransferResponse(BaseModel):
    """An instruction dispatched from this domain."""

    guid: str
    sequence: int
    dest_domain: int
    sender: str
    recipient: str
    amount: int = Field(..., description="Gross amount locked, before fees")
    lp_fee: int
    protocol_fee: int
    amount_after_fee: int = Field(..., description="Amount released on the destination")
    messaging_fee: int
    created_at: Optional[datetime] = None
