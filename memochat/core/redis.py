import redis.asyncio as aioredis
from memochat.core.config import settings

redis_client: aioredis.Redis = None

def init_redis():
    global redis_client
    redis_client = aioredis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=10,
        socket_timeout=10,
    )

def get_redis() -> aioredis.Redis:
    return redis_client

async def close_redis():
    global redis_client
    if redis_client is not None:
        await redis_client.aclose()
        redis_client = None
