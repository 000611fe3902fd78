"""Admin API endpoints (token-protected).

The token gates the HTTP surface; the ``caller`` in each request must
additionally be the pool owner.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException

from lpbridge.api.deps import get_domain, options_from_hex
from lpbridge.contracts.admin import (
    PeerRequest,
    PeerResponse,
    ProtocolFeeWithdrawalRequest,
    ProtocolFeeWithdrawalResponse,
)
from lpbridge.factory import BridgeDomain

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


async def require_admin_token(
    x_admin_token: str = Header(None), domain: BridgeDomain = Depends(get_domain)
) -> bool:
    """Verify admin token from header.

    If ADMIN_TOKEN is not set, allows access (dev mode).
    """
    settings = domain.settings

    if not settings.admin_token:
        # Dev mode - no token required
        if settings.is_production:
            logger.warning("Admin endpoint called without ADMIN_TOKEN configured")
        return True

    if x_admin_token != settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid admin token")

    return True


@router.post("/peers", response_model=PeerResponse)
async def set_peer(
    request: PeerRequest,
    domain: BridgeDomain = Depends(get_domain),
    _: bool = Depends(require_admin_token),
) -> PeerResponse:
    """Register a remote peer, optionally with enforced options."""
    orchestrator = domain.orchestrator
    options = options_from_hex(request.enforced_options)
    await orchestrator.set_peer(request.caller, request.domain_id, request.peer)
    if request.enforced_options is not None:
        await orchestrator.set_enforced_options(request.caller, request.domain_id, options)
    return PeerResponse(domain_id=request.domain_id, peer=request.peer, registered=True)


@router.post("/protocol-fees/withdraw", response_model=ProtocolFeeWithdrawalResponse)
async def withdraw_protocol_fees(
    request: ProtocolFeeWithdrawalRequest,
    domain: BridgeDomain = Depends(get_domain),
    _: bool = Depends(require_admin_token),
) -> ProtocolFeeWithdrawalResponse:
    """Pay accrued protocol fees to the owner."""
    orchestrator = domain.orchestrator
    amount = await orchestrator.withdraw_protocol_fees(request.caller)
    stats = await orchestrator.stats()
    return ProtocolFeeWithdrawalResponse(success=True, amount=amount, recipient=stats.owner)
