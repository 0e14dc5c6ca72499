from redis import asyncio as aioredis
from medianode.core.config import settings


class RedisManager:
    def __init__(self):
        self.redis = None

    async def connect(self):
        """Connect to Redis (called on FastAPI startup when a URL is configured)."""
        if not settings.REDIS_URL:
            return
        # media records hold raw key bytes, so responses are not decoded
        self.redis = await aioredis.from_url(settings.REDIS_URL)

    async def close(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.close()
            self.redis = None

redis_manager = RedisManager()
