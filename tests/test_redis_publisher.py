"""
Unit tests for progress publishing
"""

import json
from unittest.mock import AsyncMock

import pytest

from nl_analytics.services.redis_publisher import ProgressPublisher, RedisPublisher, create_publisher


class TestRedisPublisher:
    """Test cases for RedisPublisher"""

    @pytest.fixture
    def publisher(self):
        publisher = RedisPublisher(redis_url="redis://localhost:6379/0")
        publisher._client = AsyncMock()
        return publisher

    @pytest.mark.asyncio
    async def test_publishes_to_query_channel(self, publisher):
        """Test progress goes to the per-query channel as JSON"""
        await publisher.publish_progress("q1", "executing_query", "Running", extra_data={"rows": 3})

        channel, message = publisher._client.publish.await_args.args
        payload = json.loads(message)
        assert channel == "query_status_q1"
        assert payload["queryId"] == "q1"
        assert payload["stage"] == "executing_query"
        assert payload["rows"] == 3
        assert "timestamp" in payload

    @pytest.mark.asyncio
    async def test_publish_errors_are_swallowed(self, publisher):
        """Test Redis failures never reach the pipeline"""
        publisher._client.publish.side_effect = ConnectionError("redis down")

        await publisher.publish_progress("q1", "done", "Finished")

    @pytest.mark.asyncio
    async def test_close(self, publisher):
        """Test closing releases the client"""
        client = publisher._client
        await publisher.close()

        client.close.assert_awaited_once()
        assert publisher._client is None


class TestCreatePublisher:
    """Test cases for create_publisher"""

    def test_disabled_by_default(self):
        """Test the logging publisher is used when publishing is off"""
        publisher = create_publisher()
        assert type(publisher) is ProgressPublisher
