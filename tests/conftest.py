from pathlib import Path

import pytest
import pytest_asyncio

from bus import LocalChannel
from core.db import create_db_engine
from dispatcher import ActionDispatcher
from storage import PageStore, QueryCatalog

ADDRESS = "wikidb.test"


def sqlite_url(path: Path) -> str:
    return f"sqlite:///{path}"


@pytest.fixture
def queries() -> QueryCatalog:
    return QueryCatalog.load()


@pytest.fixture
def store(tmp_path: Path, queries: QueryCatalog):
    engine = create_db_engine(sqlite_url(tmp_path / "wiki.db"), pool_size=5)
    store = PageStore(engine, queries)
    store.ensure_schema()
    yield store
    store.close()


@pytest.fixture
def dispatcher(store: PageStore) -> ActionDispatcher:
    return ActionDispatcher(store)


@pytest_asyncio.fixture
async def channel(dispatcher: ActionDispatcher):
    channel = LocalChannel(default_timeout=5)
    await channel.consumer(ADDRESS, dispatcher.on_message)
    yield channel
    await channel.close()
