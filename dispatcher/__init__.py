import asyncio
from typing import Optional

from bus.channel import Channel, Registration
from core.db import create_db_engine
from core.exceptions import StartupError, handle_exception
from core.logger import logging
from dispatcher.actions import ACTION_HEADER, Action, ErrorCode
from dispatcher.handlers import ActionDispatcher
from storage.queries import QueryCatalog
from storage.store import PageStore


class WikiDatabaseService:
    """Storage tier: owns the page store and serves it on one channel address"""

    def __init__(
        self,
        channel: Channel,
        db_url: str,
        db_driver: str = "",
        pool_size: int = 30,
        queries_file: Optional[str] = None,
        address: str = "wikidb.queue",
    ):
        self.channel = channel
        self.db_url = db_url
        self.db_driver = db_driver
        self.pool_size = pool_size
        self.queries_file = queries_file
        self.address = address
        self.store: Optional[PageStore] = None
        self.dispatcher: Optional[ActionDispatcher] = None
        self.registration: Optional[Registration] = None

    async def start(self):
        """Ensure the schema, then start consuming messages

        Any failure leaves nothing bound on the channel and raises StartupError.
        """
        if self.is_running:
            logging.warning("Wiki database service already running")
            return

        store = None
        try:
            queries = QueryCatalog.load(self.queries_file)
            engine = create_db_engine(self.db_url, self.db_driver, self.pool_size)
            store = PageStore(engine, queries)

            await asyncio.to_thread(store.ensure_schema)
            logging.info("Pages table ready")

            dispatcher = ActionDispatcher(store)
            registration = await self.channel.consumer(self.address, dispatcher.on_message)
        except Exception as e:
            if store is not None:
                store.close()
            handle_exception(e, "Wiki database service failed to start", source="dispatcher")
            raise StartupError(str(e)) from e

        self.store = store
        self.dispatcher = dispatcher
        self.registration = registration
        logging.info(f"Wiki database service listening on {self.address}")

    async def stop(self):
        # Stop taking messages before the pool goes away
        if self.registration is not None:
            await self.registration.unregister()
            self.registration = None
        if self.store is not None:
            self.store.close()
            self.store = None
            self.dispatcher = None
            logging.info("Wiki database service stopped")

    @property
    def is_running(self) -> bool:
        return self.dispatcher is not None


__all__ = [
    "ACTION_HEADER",
    "Action",
    "ActionDispatcher",
    "ErrorCode",
    "WikiDatabaseService",
]
