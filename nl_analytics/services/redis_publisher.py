"""Progress publishing for query stages"""
import logging
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import redis.asyncio as aioredis

from ..config import settings
from ..utils.json_encoder import json_dumps

logger = logging.getLogger(__name__)


class ProgressPublisher:
    """Publisher that only logs; used when Redis publishing is disabled"""

    async def publish_progress(
        self,
        query_id: str,
        stage: str,
        message: str,
        extra_data: Optional[Dict[str, Any]] = None
    ):
        logger.debug(f"[{query_id}] {stage}: {message}")

    async def close(self):
        pass


class RedisPublisher(ProgressPublisher):
    """Redis pub/sub publisher for stage progress updates"""

    def __init__(self, redis_url: Optional[str] = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self._client: Optional[aioredis.Redis] = None

    async def get_client(self) -> aioredis.Redis:
        """Get or create Redis client"""
        if self._client is None:
            self._client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True
            )
        return self._client

    async def close(self):
        """Close Redis connection"""
        if self._client:
            await self._client.close()
            self._client = None

    async def publish_progress(
        self,
        query_id: str,
        stage: str,
        message: str,
        extra_data: Optional[Dict[str, Any]] = None
    ):
        """
        Publish progress update to the query's Redis channel.

        Args:
            query_id: Query ID to publish to
            stage: Current workflow stage
            message: Human-readable progress message
            extra_data: Additional data to include in message
        """
        try:
            client = await self.get_client()
            channel = f"query_status_{query_id}"

            payload = {
                "queryId": query_id,
                "stage": stage,
                "message": message,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
            if extra_data:
                payload.update(extra_data)

            await client.publish(channel, json_dumps(payload))
            logger.debug(f"Published {stage} to {channel}: {message}")

        except Exception as e:
            logger.error(f"Failed to publish progress: {e}")
            # Don't raise - progress updates are non-critical


def create_publisher() -> ProgressPublisher:
    """Publisher selected by PROGRESS_PUBLISHING_ENABLED"""
    if settings.PROGRESS_PUBLISHING_ENABLED:
        return RedisPublisher()
    return ProgressPublisher()
