from typing import Optional

import redis.asyncio as redis
from redis.asyncio.connection import SSLConnection

from core.logger import logging
from core.config import (
    DEBUG,
    REDIS_HOST,
    REDIS_PORT,
    REDIS_PROTOCOL,
    REDIS_PASSWORD,
)


class RedisClient:
    _instance: Optional[redis.Redis] = None
    _pool: Optional[redis.ConnectionPool] = None

    @classmethod
    def get_instance(cls) -> Optional[redis.Redis]:
        if cls._instance is None:
            cls._instance = cls._create_client()
        return cls._instance

    @classmethod
    def _create_client(cls) -> Optional[redis.Redis]:
        if cls._pool is None:
            redis_config = {
                "host": REDIS_HOST,
                "port": REDIS_PORT,
                "decode_responses": True,
                "protocol": REDIS_PROTOCOL,
            }

            if not DEBUG:
                redis_config.update(
                    {"password": REDIS_PASSWORD, "connection_class": SSLConnection}
                )

            try:
                cls._pool = redis.ConnectionPool(**redis_config)
            except Exception as e:
                logging.error(f"Failed to create Redis pool: {e}")
                return None

        try:
            return redis.Redis(connection_pool=cls._pool)
        except Exception as e:
            logging.error(f"Failed to create Redis client: {e}")
            return None

    @classmethod
    async def close(cls):
        """Close the Redis client and its pool"""
        if cls._instance:
            await cls._instance.aclose()
            cls._instance = None
        if cls._pool:
            await cls._pool.disconnect()
            cls._pool = None
