"""Utility modules for lpbridge."""

from lpbridge.utils.locks import DomainExecutionLock, LockTimeoutError

__all__ = ["DomainExecutionLock", "LockTimeoutError"]
