"""Read-only services built on top of a domain orchestrator."""

from lpbridge.services.quote_service import QuoteService

__all__ = ["QuoteService"]
