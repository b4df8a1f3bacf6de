"""Cart storage backends.

A store only moves opaque payload strings. Every write is conditional
on the payload the caller last read, which is what lets the repository
run an optimistic read-modify-write loop per cart key.
"""
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from storefront.db import RedisKeys
from storefront.errors import ERROR_STORE_UNAVAILABLE, StoreUnavailableError
from storefront.logging import get_logger, sanitize_id_for_logging

logger = get_logger(__name__)

# Absent key is compared as "", payloads are JSON objects and never empty.
CAS_SET_SCRIPT = """
local current = redis.call('GET', KEYS[1])
if current == false then current = '' end
if current ~= ARGV[1] then return 0 end
redis.call('SET', KEYS[1], ARGV[2], 'EX', tonumber(ARGV[3]))
return 1
"""

CAS_DELETE_SCRIPT = """
if redis.call('GET', KEYS[1]) ~= ARGV[1] then return 0 end
redis.call('DEL', KEYS[1])
return 1
"""


class CartStore(ABC):
    """Key-value contract the cart repository relies on."""

    @abstractmethod
    async def load(self, key: str) -> Optional[str]:
        """Return the stored payload, or None if absent or expired."""

    @abstractmethod
    async def compare_and_set(
        self, key: str, expected: Optional[str], value: str, ttl: int
    ) -> bool:
        """Store value with ttl only if the current payload equals expected.

        expected=None means "only if absent". Returns False on mismatch.
        """

    @abstractmethod
    async def compare_and_delete(self, key: str, expected: str) -> bool:
        """Delete only if the current payload equals expected."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Delete unconditionally. Deleting an absent key is not an error."""


class RedisCartStore(CartStore):
    """Cart store on Upstash Redis.

    Conditional writes run as Lua scripts, so each commit is a single
    atomic command on the server.
    """

    def __init__(self, redis, key_builder: Callable[[str], str] = RedisKeys.cart_key) -> None:
        self.redis = redis
        self._key = key_builder

    async def load(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(self._key(key))
        except Exception as e:
            self._log_failure("load", key, e)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e

    async def compare_and_set(
        self, key: str, expected: Optional[str], value: str, ttl: int
    ) -> bool:
        try:
            result = await self.redis.eval(
                CAS_SET_SCRIPT,
                keys=[self._key(key)],
                args=[expected or "", value, str(ttl)],
            )
        except Exception as e:
            self._log_failure("compare_and_set", key, e)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
        return int(result) == 1

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        try:
            result = await self.redis.eval(
                CAS_DELETE_SCRIPT,
                keys=[self._key(key)],
                args=[expected],
            )
        except Exception as e:
            self._log_failure("compare_and_delete", key, e)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e
        return int(result) == 1

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except Exception as e:
            self._log_failure("delete", key, e)
            raise StoreUnavailableError(ERROR_STORE_UNAVAILABLE) from e

    @staticmethod
    def _log_failure(operation: str, key: str, error: Exception) -> None:
        logger.error(
            "Redis %s failed for cart %s: %s",
            operation,
            sanitize_id_for_logging(key),
            type(error).__name__,
        )


class MemoryCartStore(CartStore):
    """In-process cart store for local development and tests.

    Same semantics as RedisCartStore, including TTL eviction, but
    scoped to one process.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[str, float]] = {}

    def _current(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if deadline <= self._clock():
            del self._entries[key]
            return None
        return value

    def _sweep(self) -> None:
        """Drop every expired entry, not just the key being written."""
        now = self._clock()
        expired = [key for key, (_, deadline) in self._entries.items() if deadline <= now]
        for key in expired:
            del self._entries[key]

    async def load(self, key: str) -> Optional[str]:
        return self._current(key)

    async def compare_and_set(
        self, key: str, expected: Optional[str], value: str, ttl: int
    ) -> bool:
        if self._current(key) != expected:
            return False
        self._sweep()
        self._entries[key] = (value, self._clock() + ttl)
        return True

    async def compare_and_delete(self, key: str, expected: str) -> bool:
        if self._current(key) != expected:
            return False
        del self._entries[key]
        return True

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def __len__(self) -> int:
        return len(self._entries)
