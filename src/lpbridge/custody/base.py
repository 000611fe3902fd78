"""Abstract asset custody interface."""

from abc import ABC, abstractmethod


class AssetCustody(ABC):
    """Holds the bridge's balance of one asset.

    Implementations raise ``CustodyError`` on insufficient balance or
    allowance; the failing call is then aborted as a whole.
    """

    @property
    @abstractmethod
    def asset(self) -> str:
        """Asset symbol held by this custody."""
        pass

    @property
    @abstractmethod
    def address(self) -> str:
        """Identifier of the custody account itself."""
        pass

    @abstractmethod
    async def transfer_in(self, from_account: str, amount: int) -> None:
        """Pull ``amount`` from ``from_account`` into custody."""
        pass

    @abstractmethod
    async def transfer_out(self, to_account: str, amount: int) -> None:
        """Release ``amount`` from custody to ``to_account``."""
        pass

    @abstractmethod
    async def balance(self) -> int:
        """Amount currently held in custody."""
        pass
