"""Public bridge endpoints: quotes and read-only views."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from lpbridge.api.deps import get_domain, options_from_hex
from lpbridge.contracts.admin import PeerResponse
from lpbridge.contracts.pool import LPPositionResponse, PoolStatsResponse
from lpbridge.contracts.quotes import BridgeQuote
from lpbridge.contracts.transfers import TransferResponse
from lpbridge.factory import BridgeDomain

router = APIRouter()


@router.get("/quote", response_model=BridgeQuote)
async def get_quote(
    dest_domain: int = Query(..., description="Destination domain id"),
    amount: int = Query(..., description="Amount to send in base units"),
    options: Optional[str] = Query(None, description="Hex messaging options"),
    recipient: Optional[str] = Query(None, description="Recipient on the destination"),
    domain: BridgeDomain = Depends(get_domain),
) -> BridgeQuote:
    """Quote fees and messaging cost for a transfer."""
    return await domain.quotes.quote(
        dest_domain, amount, options=options_from_hex(options), recipient=recipient
    )


@router.get("/stats", response_model=PoolStatsResponse)
async def get_stats(domain: BridgeDomain = Depends(get_domain)) -> PoolStatsResponse:
    """Pool totals of this domain."""
    stats = await domain.orchestrator.stats()
    return PoolStatsResponse(
        domain_id=stats.domain_id,
        owner=stats.owner,
        liquidity_source=stats.liquidity_source,
        total_liquidity=stats.total_liquidity,
        available_liquidity=stats.available_liquidity,
        fee_pool=stats.fee_pool,
        protocol_fees=stats.protocol_fees,
        total_shares=stats.total_shares,
        total_volume=stats.total_volume,
        tx_count=stats.tx_count,
        share_price=stats.share_price,
        native_reserve=stats.native_reserve,
        inbound_count=stats.inbound_count,
        apy_bps=stats.apy_bps,
        created_at=stats.created_at,
    )


@router.get("/positions/{account}", response_model=LPPositionResponse)
async def get_position(
    account: str, domain: BridgeDomain = Depends(get_domain)
) -> LPPositionResponse:
    """Shares, value and earnings of an LP."""
    position = await domain.orchestrator.lp_position(account)
    return LPPositionResponse(
        account=position.account,
        shares=position.shares,
        value=position.value,
        principal=position.principal,
        earnings=position.earnings,
        ownership_bps=position.ownership_bps,
    )


@router.get("/peers", response_model=list[PeerResponse])
async def list_peers(domain: BridgeDomain = Depends(get_domain)) -> list[PeerResponse]:
    """Every registered peer."""
    peers = await domain.orchestrator.peers()
    return [
        PeerResponse(domain_id=domain_id, peer=peer, registered=True)
        for domain_id, peer in peers.items()
    ]


@router.get("/peers/{domain_id}", response_model=PeerResponse)
async def get_peer(domain_id: int, domain: BridgeDomain = Depends(get_domain)) -> PeerResponse:
    """Registered peer of a remote domain."""
    peer = await domain.orchestrator.peer(domain_id)
    return PeerResponse(domain_id=domain_id, peer=peer, registered=peer is not None)


@router.get("/transfers/{guid}", response_model=TransferResponse)
async def get_transfer(guid: str, domain: BridgeDomain = Depends(get_domain)) -> TransferResponse:
    """An outbound transfer by guid."""
    record = await domain.orchestrator.outbound_transfer(guid)
    if record is None:
        raise HTTPException(status_code=404, detail=f"No outbound transfer {guid}")
    return TransferResponse(
        guid=record.guid,
        sequence=record.sequence,
        dest_domain=record.dest_domain,
        sender=record.sender,
        recipient=record.recipient,
        amount=record.amount,
        lp_fee=record.lp_fee,
        protocol_fee=record.protocol_fee,
        amount_after_fee=record.amount_after_fee,
        messaging_fee=record.messaging_fee,
        created_at=record.created_at,
    )
