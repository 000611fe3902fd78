"""In-memory custody for dry-run deployments and tests."""

import logging
from typing import Awaitable, Callable, Optional

from lpbridge.custody.base import AssetCustody
from lpbridge.errors import CustodyError

logger = logging.getLogger(__name__)

TransferHook = Callable[[str, str, int], Awaitable[None]]


class InMemoryCustody(AssetCustody):
    """Token balances kept in a dict, custody included.

    ``on_transfer`` is awaited after every movement with
    ``(direction, account, amount)``; it stands in for token callbacks
    that can call back into the bridge.
    """

    def __init__(
        self,
        asset: str = "USDT",
        address: str = "bridge",
        balances: Optional[dict[str, int]] = None,
        on_transfer: Optional[TransferHook] = None,
    ):
        self._asset = asset
        self._address = address
        self.balances: dict[str, int] = dict(balances or {})
        self.on_transfer = on_transfer

    @property
    def asset(self) -> str:
        return self._asset

    @property
    def address(self) -> str:
        return self._address

    def mint(self, account: str, amount: int) -> None:
        """Credit an external account (faucet)."""
        self.balances[account] = self.balances.get(account, 0) + amount

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    async def transfer_in(self, from_account: str, amount: int) -> None:
        self._move(from_account, self._address, amount)
        logger.debug(f"{self._asset}: {amount} in from {from_account}")
        if self.on_transfer:
            await self.on_transfer("in", from_account, amount)

    async def transfer_out(self, to_account: str, amount: int) -> None:
        self._move(self._address, to_account, amount)
        logger.debug(f"{self._asset}: {amount} out to {to_account}")
        if self.on_transfer:
            await self.on_transfer("out", to_account, amount)

    async def balance(self) -> int:
        return self.balance_of(self._address)

    def _move(self, source: str, target: str, amount: int) -> None:
        if amount < 0:
            raise CustodyError(f"Negative transfer amount {amount}")
        available = self.balances.get(source, 0)
        if available < amount:
            raise CustodyError(
                f"Insufficient {self._asset} balance: {source} has {available}, need {amount}"
            )
        self.balances[source] = available - amount
        self.balances[target] = self.balances.get(target, 0) + amount
