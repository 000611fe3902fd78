"""Pool and LP position contracts."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field


class PoolStatsResponse(BaseModel):
    """Pool totals of a domain."""

    domain_id: int
    owner: str
    liquidity_source: str = Field(..., description="'pool' or 'swap'")
    total_liquidity: int
    available_liquidity: int = Field(..., description="Liquidity custody can pay out now")
    fee_pool: int = Field(..., description="Undistributed LP fees")
    protocol_fees: int
    total_shares: int
    total_volume: int
    tx_count: int
    share_price: Decimal = Field(..., description="Base units per share")
    native_reserve: int
    inbound_count: int = Field(..., description="Inbound instructions applied")
    apy_bps: int = Field(..., description="Annualised LP fee yield in basis points")
    created_at: Optional[datetime] = None


class LPPositionResponse(BaseModel):
    """An LP's shares and their current value."""

    account: str
    shares: int
    value: int = Field(..., description="Current redemption value in base units")
    principal: int = Field(..., description="Deposited amount still attributed to the shares")
    earnings: int = Field(..., description="value - principal, floored at zero")
    ownership_bps: int = Field(..., description="Share of the pool in basis points")
