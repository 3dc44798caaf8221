import uvicorn

from bus import LocalChannel, RedisChannel
from core.config import (
    WEB_HOST,
    WEB_PORT,
    WIKI_CHANNEL,
    WIKI_DB_DRIVER,
    WIKI_DB_MAX_POOL_SIZE,
    WIKI_DB_QUEUE,
    WIKI_DB_URL,
    WIKI_REQUEST_TIMEOUT,
    WIKI_SQL_QUERIES_FILE,
)
from core.logger import logging
from core.redis import RedisClient
from dispatcher import WikiDatabaseService
from web import create_app


def build_channel():
    """Channel selected by WIKI_CHANNEL"""
    if WIKI_CHANNEL == "redis":
        client = RedisClient.get_instance()
        if client is None:
            raise RuntimeError("Redis channel requested but no Redis client could be created")
        return RedisChannel(client, default_timeout=WIKI_REQUEST_TIMEOUT)
    if WIKI_CHANNEL != "local":
        raise ValueError(f"Unknown channel type: {WIKI_CHANNEL}")
    return LocalChannel(default_timeout=WIKI_REQUEST_TIMEOUT)


def main():
    channel = build_channel()
    service = WikiDatabaseService(
        channel,
        db_url=WIKI_DB_URL,
        db_driver=WIKI_DB_DRIVER,
        pool_size=WIKI_DB_MAX_POOL_SIZE,
        queries_file=WIKI_SQL_QUERIES_FILE or None,
        address=WIKI_DB_QUEUE,
    )
    app = create_app(
        channel,
        address=WIKI_DB_QUEUE,
        service=service,
        on_shutdown=RedisClient.close if WIKI_CHANNEL == "redis" else None,
    )

    # Configure web service
    config = uvicorn.Config(app=app, host=WEB_HOST, port=WEB_PORT, log_level="info")
    server = uvicorn.Server(config)
    try:
        server.run()
    except KeyboardInterrupt:
        logging.info("Server shutdown by keyboard interrupt")


if __name__ == "__main__":
    main()
