"""
Redis client initialization and connection management.

Redis backs the token revocation list.
"""

import redis.asyncio as redis
from budget_ledger.app.core.config import settings


redis_client = redis.from_url(
    settings.redis_url,
    decode_responses=settings.redis_decode_responses,
)


async def get_redis():
    """
    Get Redis client instance.

    Used as a FastAPI dependency so tests can swap the client.
    """
    return redis_client
