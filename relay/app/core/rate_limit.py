import asyncio
import time
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional
from relay.app.core.config import settings
from relay.app.core.errors import RateLimitExceeded
from relay.app.core.metrics import metrics

logger = logging.getLogger(__name__)


@dataclass
class RateLimitRecord:
    """Request count for one caller identity within the current window."""
    window_start: float
    count: int = 0


class RateLimitStore(ABC):
    """Storage backend for rate limit records.

    The in-memory store keeps counters per process. A shared backend
    (e.g. Redis) can implement the same three operations to enforce the
    limit across instances.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[RateLimitRecord]:
        ...

    @abstractmethod
    async def increment(self, key: str) -> RateLimitRecord:
        ...

    @abstractmethod
    async def reset(self, key: str, window_start: float) -> RateLimitRecord:
        ...

    async def prune(self, older_than: float) -> int:
        """Drop records whose window started before ``older_than``.

        Backends that expire keys on their own can keep this no-op.
        """
        return 0


class InMemoryRateLimitStore(RateLimitStore):
    def __init__(self) -> None:
        self._records: Dict[str, RateLimitRecord] = {}

    async def get(self, key: str) -> Optional[RateLimitRecord]:
        return self._records.get(key)

    async def increment(self, key: str) -> RateLimitRecord:
        record = self._records[key]
        record.count += 1
        return record

    async def reset(self, key: str, window_start: float) -> RateLimitRecord:
        record = RateLimitRecord(window_start=window_start)
        self._records[key] = record
        return record

    async def prune(self, older_than: float) -> int:
        expired = [k for k, r in self._records.items() if r.window_start < older_than]
        for key in expired:
            del self._records[key]
        return len(expired)

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)


class RateLimiter:
    """Fixed-window request counter per caller identity.

    A window opens on the first request from an identity and lasts
    ``window_ms``. Requests beyond ``max_requests`` inside the window are
    rejected. Store failures never block a request.
    """

    def __init__(
        self,
        store: RateLimitStore,
        window_ms: Optional[int] = None,
        max_requests: Optional[int] = None,
    ) -> None:
        self._store = store
        self._window_ms = window_ms
        self._max_requests = max_requests
        self._lock = asyncio.Lock()
        self._last_prune: Optional[float] = None

    @property
    def window_ms(self) -> int:
        return self._window_ms if self._window_ms is not None else settings.rate_limit_window_ms

    @property
    def max_requests(self) -> int:
        return self._max_requests if self._max_requests is not None else settings.rate_limit_max

    async def hit(self, identity: str, now: Optional[float] = None) -> RateLimitRecord:
        """Count one request for ``identity`` and return the updated record."""
        if now is None:
            now = time.time() * 1000
        async with self._lock:
            await self._prune_expired(now)
            record = await self._store.get(identity)
            if record is None or now - record.window_start > self.window_ms:
                await self._store.reset(identity, now)
            return await self._store.increment(identity)

    async def _prune_expired(self, now: float) -> None:
        # At most one sweep per window
        if self._last_prune is None:
            self._last_prune = now
            return
        if now - self._last_prune > self.window_ms:
            removed = await self._store.prune(now - self.window_ms)
            self._last_prune = now
            if removed:
                logger.debug(f"Pruned {removed} expired rate limit records")

    async def check(self, identity: str, now: Optional[float] = None) -> None:
        """Admit or reject a request from ``identity``.

        Raises RateLimitExceeded when the identity is over its budget.
        """
        try:
            record = await self.hit(identity, now)
        except Exception as e:
            logger.warning(f"Rate limiter error for {identity}, admitting request: {e}")
            return

        if record.count > self.max_requests:
            metrics.record_rate_limit()
            logger.warning(
                f"Rate limit exceeded for {identity} "
                f"({record.count}/{self.max_requests} in {self.window_ms}ms)"
            )
            raise RateLimitExceeded()


rate_limiter = RateLimiter(InMemoryRateLimitStore())
