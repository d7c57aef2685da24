"""
Redis client management and connection pooling.
"""

from typing import Optional

from redis import Redis
from redis.connection import ConnectionPool

from bedflow.config.settings import RedisSettings, settings

_redis_pool: Optional[ConnectionPool] = None


def get_redis_pool(redis_settings: Optional[RedisSettings] = None) -> ConnectionPool:
    """Create (once) and return the shared Redis connection pool."""
    global _redis_pool
    if _redis_pool is None:
        cfg = redis_settings or settings.redis
        _redis_pool = ConnectionPool(
            host=cfg.REDIS_HOST,
            port=cfg.REDIS_PORT,
            db=cfg.REDIS_DB,
            password=cfg.REDIS_PASSWORD,
            max_connections=cfg.REDIS_MAX_CONNECTIONS,
            socket_timeout=cfg.REDIS_SOCKET_TIMEOUT,
            decode_responses=True,
        )
    return _redis_pool


def get_redis_client(redis_settings: Optional[RedisSettings] = None) -> Redis:
    """Get a Redis client bound to the shared pool."""
    return Redis(connection_pool=get_redis_pool(redis_settings))
