"""Asset custody collaborators."""

from lpbridge.custody.base import AssetCustody
from lpbridge.custody.memory import InMemoryCustody

__all__ = ["AssetCustody", "InMemoryCustody"]
