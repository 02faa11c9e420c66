"""Schema cache with TTL, single-flight refresh and tiered fallback"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Literal, Optional

from ..config import settings
from ..models import Schema

logger = logging.getLogger(__name__)

SchemaSource = Literal["cache", "live", "stale", "static"]


@dataclass
class CacheEntry:
    schema: Schema
    fetched_at: float


@dataclass
class SchemaLookup:
    """A schema and the tier it was served from"""
    schema: Schema
    source: SchemaSource


class SchemaCache:
    """
    Per-data-source schema cache.

    Lookup order:
    1. Fresh cache entry (younger than the TTL)
    2. Live fetch, bounded by a short timeout
    3. Last cached entry, even if stale
    4. Static reference schema (empty schema when none is given)

    Concurrent lookups during a refresh await the same in-flight fetch.
    """

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        fetch_timeout: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.SCHEMA_CACHE_TTL
        self.fetch_timeout = fetch_timeout if fetch_timeout is not None else settings.SCHEMA_FETCH_TIMEOUT
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._inflight: Dict[str, asyncio.Task] = {}

    def _is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self.ttl_seconds

    async def _refresh(self, key: str, fetcher: Callable[[], Awaitable[Schema]]) -> Optional[Schema]:
        try:
            schema = await asyncio.wait_for(fetcher(), timeout=self.fetch_timeout)
            self._entries[key] = CacheEntry(schema=schema, fetched_at=self._clock())
            return schema
        except asyncio.TimeoutError:
            logger.warning(f"Schema fetch for '{key}' timed out after {self.fetch_timeout}s")
            return None
        except Exception as e:
            logger.warning(f"Schema fetch for '{key}' failed: {e}")
            return None
        finally:
            self._inflight.pop(key, None)

    async def get(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Schema]],
        static_schema: Optional[Schema] = None
    ) -> SchemaLookup:
        """
        Get the schema for a data source.

        Args:
            key: Cache key (data source id)
            fetcher: Coroutine function performing the live fetch
            static_schema: Reference schema for the last tier

        Returns:
            Schema lookup; never raises on fetch failure
        """
        entry = self._entries.get(key)
        if entry and self._is_fresh(entry):
            return SchemaLookup(schema=entry.schema, source="cache")

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._refresh(key, fetcher))
            self._inflight[key] = task
        schema = await asyncio.shield(task)
        if schema is not None:
            return SchemaLookup(schema=schema, source="live")

        entry = self._entries.get(key)
        if entry:
            logger.warning(f"Serving stale schema for '{key}'")
            return SchemaLookup(schema=entry.schema, source="stale")

        logger.warning(f"Serving static reference schema for '{key}'")
        return SchemaLookup(schema=static_schema or Schema(columns=[]), source="static")

    def invalidate(self, key: Optional[str] = None):
        """Drop one entry, or all entries"""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)
