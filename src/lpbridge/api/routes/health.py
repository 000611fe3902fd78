"""Health check endpoints."""

from fastapi import APIRouter, Depends

from lpbridge.api.deps import get_domain
from lpbridge.factory import BridgeDomain

router = APIRouter()


@router.get("/health")
async def health_check():
    """Basic health check endpoint."""
    return {"status": "healthy", "service": "lpbridge"}


@router.get("/health/detailed")
async def detailed_health(domain: BridgeDomain = Depends(get_domain)):
    """Detailed health check with configuration info."""
    orchestrator = domain.orchestrator
    return {
        "status": "healthy",
        "service": "lpbridge",
        "version": "0.1.0",
        "domain_id": orchestrator.domain_id,
        "liquidity_source": orchestrator.source.kind,
        "transport": domain.transport.name,
        "config": domain.settings.get_safe_dict(),
    }
