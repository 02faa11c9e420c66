"""
Unit tests for the schema cache
"""

import asyncio

import pytest

from nl_analytics.models import ColumnSchema, Schema
from nl_analytics.services.schema_cache import SchemaCache

LIVE = Schema(columns=[ColumnSchema(name="amount", type="number")])
REFERENCE = Schema(columns=[ColumnSchema(name="reference", type="string")])


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class CountingFetcher:
    def __init__(self, schema=LIVE, delay=0.0, error=None):
        self.schema = schema
        self.delay = delay
        self.error = error
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.schema


class TestSchemaCache:
    """Test cases for SchemaCache"""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return SchemaCache(ttl_seconds=300, fetch_timeout=0.5, clock=clock)

    @pytest.mark.asyncio
    async def test_single_flight(self, cache):
        """Test concurrent cold lookups trigger exactly one fetch"""
        fetcher = CountingFetcher(delay=0.05)

        lookups = await asyncio.gather(*(cache.get("source-1", fetcher) for _ in range(10)))

        assert fetcher.calls == 1
        assert all(lookup.schema == LIVE for lookup in lookups)
        assert {lookup.source for lookup in lookups} == {"live"}

    @pytest.mark.asyncio
    async def test_fresh_hit(self, cache):
        """Test a fresh entry is served without fetching"""
        fetcher = CountingFetcher()
        await cache.get("source-1", fetcher)
        lookup = await cache.get("source-1", fetcher)

        assert lookup.source == "cache"
        assert fetcher.calls == 1

    @pytest.mark.asyncio
    async def test_ttl_expiry_refetches(self, cache, clock):
        """Test entries older than the TTL are refreshed"""
        fetcher = CountingFetcher()
        await cache.get("source-1", fetcher)
        clock.now += 301
        lookup = await cache.get("source-1", fetcher)

        assert lookup.source == "live"
        assert fetcher.calls == 2

    @pytest.mark.asyncio
    async def test_stale_entry_on_failure(self, cache, clock):
        """Test a failed refresh serves the last cached schema"""
        await cache.get("source-1", CountingFetcher())
        clock.now += 301
        lookup = await cache.get("source-1", CountingFetcher(error=RuntimeError("catalog down")))

        assert lookup.source == "stale"
        assert lookup.schema == LIVE

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_static(self, cache):
        """Test a slow fetch does not block and serves the reference schema"""
        lookup = await cache.get("source-1", CountingFetcher(delay=5), static_schema=REFERENCE)

        assert lookup.source == "static"
        assert lookup.schema == REFERENCE

    @pytest.mark.asyncio
    async def test_empty_schema_when_no_reference(self, cache):
        """Test the last tier is an empty schema"""
        lookup = await cache.get("source-1", CountingFetcher(error=ValueError("bad config")))

        assert lookup.source == "static"
        assert lookup.schema.columns == []

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, cache):
        """Test each data source has its own entry"""
        first, second = CountingFetcher(), CountingFetcher(schema=REFERENCE)
        await cache.get("a", first)
        lookup = await cache.get("b", second)

        assert lookup.schema == REFERENCE
        assert first.calls == second.calls == 1

    @pytest.mark.asyncio
    async def test_invalidate(self, cache):
        """Test invalidation forces a refetch"""
        fetcher = CountingFetcher()
        await cache.get("a", fetcher)
        cache.invalidate("a")
        await cache.get("a", fetcher)
        assert fetcher.calls == 2
