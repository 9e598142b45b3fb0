"""
Store Port - Abstract interface for the shared key-value store.

The broker only needs a handful of commands: plain keys with TTLs and
lists with a blocking pop. This port keeps the Redis client out of the
directory, registry and queue so they can run against a fake in tests.
"""

from abc import ABC, abstractmethod
from typing import Optional, Union

Value = Union[bytes, str, int, float]


class StorePort(ABC):
    """
    Abstract interface for shared store access.

    Operations raise on failure. Callers decide whether a failure trips
    the availability breaker.
    """

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the single underlying connection.

        Raises:
            ConnectionError: If the store cannot be reached
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close the connection."""
        pass

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        pass

    @abstractmethod
    async def get(self, key: str) -> Optional[bytes]:
        """
        Returns:
            Raw value, or None if the key is absent or expired
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Value, ex: Optional[int] = None) -> None:
        """
        Set a value.

        Args:
            key: Key to set
            value: Value to store
            ex: Optional expiration in seconds
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> int:
        pass

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> bool:
        """Reset a key's TTL without touching its value."""
        pass

    @abstractmethod
    async def rpush(self, key: str, value: Value) -> int:
        """Append to the tail of a list; returns the new length."""
        pass

    @abstractmethod
    async def ltrim(self, key: str, start: int, end: int) -> None:
        pass

    @abstractmethod
    async def blpop(self, key: str, timeout: float) -> Optional[bytes]:
        """
        Pop the head of a list, waiting up to timeout seconds.

        Args:
            key: List key
            timeout: Seconds to wait; 0 waits indefinitely

        Returns:
            The popped value, or None on timeout
        """
        pass

    @abstractmethod
    async def llen(self, key: str) -> int:
        pass
