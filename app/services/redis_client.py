"""Redis client for state shared across server instances."""

import redis
import logging

logger = logging.getLogger(__name__)

# Connections by URL (lazy initialization)
_redis_clients = {}


def get_redis(redis_url):
    """Get or create a Redis connection. Returns None when unavailable."""
    if not redis_url:
        return None

    client = _redis_clients.get(redis_url)
    if client is not None:
        return client

    try:
        client = redis.from_url(redis_url, decode_responses=True)
        # Test connection
        client.ping()
        logger.info("Redis connected successfully")
        _redis_clients[redis_url] = client
        return client
    except Exception as e:
        logger.error(f"Redis connection failed: {e}")
        return None
