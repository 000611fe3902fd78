"""Per-domain serialization of ledger operations.

Each domain's orchestrator runs one operation at a time. Concurrent tasks
queue on the lock; a nested call from the task that already holds it
(for example a custody or swap callback re-entering the orchestrator) is
rejected instead of deadlocking.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from lpbridge.errors import ReentrantCall

logger = logging.getLogger(__name__)


class LockTimeoutError(Exception):
    """Raised when a lock cannot be acquired within the timeout period."""

    pass


class DomainExecutionLock:
    """Serializes operations of one domain and detects reentrancy.

    Example:
        async with lock.hold("initiate"):
            # Read, mutate and commit domain state
            ...
    """

    def __init__(self, domain_id: int, timeout: Optional[float] = 30.0):
        """Initialize the lock.

        Args:
            domain_id: Domain whose state this lock guards
            timeout: Maximum time to wait for the lock (None = wait forever)
        """
        self.domain_id = domain_id
        self.timeout = timeout
        self._lock = asyncio.Lock()
        self._owner: Optional[asyncio.Task] = None
        self._operation: Optional[str] = None

    @property
    def active_operation(self) -> Optional[str]:
        """Operation currently holding the lock."""
        return self._operation

    def locked(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def hold(self, operation: str):
        """Run the block as the only operation on this domain.

        Raises:
            ReentrantCall: the current task already holds the lock
            LockTimeoutError: the lock was not acquired in time
        """
        task = asyncio.current_task()
        if self._owner is not None and self._owner is task:
            logger.warning(
                f"Rejected reentrant {operation} on domain {self.domain_id} "
                f"during {self._operation}"
            )
            raise ReentrantCall(operation, self._operation or "unknown")

        try:
            if self.timeout:
                await asyncio.wait_for(self._lock.acquire(), timeout=self.timeout)
            else:
                await self._lock.acquire()
        except asyncio.TimeoutError:
            logger.warning(
                f"Lock timeout for domain {self.domain_id} after {self.timeout}s: {operation}"
            )
            raise LockTimeoutError(
                f"Could not acquire lock for domain {self.domain_id} within {self.timeout}s"
            )

        self._owner = task
        self._operation = operation
        logger.debug(f"Lock acquired for domain {self.domain_id}: {operation}")
        try:
            yield
        finally:
            self._owner = None
            self._operation = None
            self._lock.release()
            logger.debug(f"Lock released for domain {self.domain_id}: {operation}")
