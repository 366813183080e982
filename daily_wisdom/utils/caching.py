"""
Cache-or-compute helpers.

The same "look it up, otherwise build and persist it" flow is used for base
articles, translations and provider quota, so it lives here once.
"""

import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


async def get_or_create(
    fetch: Callable[[], Awaitable[Optional[T]]],
    create: Callable[[], Awaitable[T]],
    force: bool = False,
) -> T:
    """
    Return the cached value from ``fetch`` or build one with ``create``.

    ``create`` is responsible for persisting what it builds. With ``force``
    the lookup is skipped entirely.
    """
    if not force:
        cached = await fetch()
        if cached is not None:
            return cached
    return await create()


@dataclass
class _Entry(Generic[T]):
    value: T
    stored_at: float


class ExpiringValue(Generic[T]):
    """
    A single cached value with a time-to-live.

    An expired entry reads as missing ("unknown"), never as a stale value.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entry: Optional[_Entry[T]] = None

    def get(self) -> Optional[T]:
        if self._entry is None:
            return None
        if self._clock() - self._entry.stored_at >= self.ttl_seconds:
            return None
        return self._entry.value

    def set(self, value: T) -> T:
        self._entry = _Entry(value=value, stored_at=self._clock())
        return value

    def clear(self) -> None:
        self._entry = None

    async def get_or_refresh(self, refresh: Callable[[], Awaitable[T]], force_refresh: bool = False) -> T:
        """Return the fresh cached value or store the result of ``refresh``."""
        async def _refresh() -> T:
            return self.set(await refresh())

        async def _fetch() -> Optional[T]:
            return self.get()

        return await get_or_create(_fetch, _refresh, force=force_refresh)
