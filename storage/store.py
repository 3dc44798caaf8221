from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlmodel import Session

from core.exceptions import StoreError
from core.logger import logging
from model.page import Page
from storage.queries import QueryCatalog, SqlQuery


def _backend_message(e: SQLAlchemyError) -> str:
    """The driver's own message, without SQLAlchemy decoration"""
    if isinstance(e, DBAPIError) and e.orig is not None:
        return str(e.orig)
    return str(e)


def _page_id(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise StoreError(f"Invalid page id: {value!r}")


class PageStore:
    """Runs page statements, one pooled connection per call"""

    def __init__(self, engine: Engine, queries: QueryCatalog):
        self.engine = engine
        self.queries = queries

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Lease a connection for a single statement and always give it back"""
        with Session(self.engine) as session:
            try:
                yield session
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(_backend_message(e)) from e

    def _execute(self, query: SqlQuery, params: Optional[Dict[str, Any]] = None):
        with self._session() as session:
            session.exec(text(self.queries.get(query)), params=params or {})
            session.commit()

    def ensure_schema(self):
        """Create the pages table if it does not exist yet"""
        self._execute(SqlQuery.CREATE_PAGES_TABLE)
        logging.debug("Pages table created")

    def list_page_names(self) -> List[str]:
        with self._session() as session:
            rows = session.exec(text(self.queries.get(SqlQuery.ALL_PAGES))).all()
        # Sorted here so every backend gives the same order
        return sorted(row[0] for row in rows)

    def get_page(self, name: str) -> Optional[Page]:
        """Return the page called ``name``, or None when there is none"""
        with self._session() as session:
            row = session.exec(
                text(self.queries.get(SqlQuery.GET_PAGE)), params={"name": name}
            ).first()
        if row is None:
            return None
        return Page(id=row[0], name=name, content=row[1])

    def create_page(self, name: str, content: Optional[str]):
        logging.debug(f"Creating page {name!r}")
        self._execute(SqlQuery.CREATE_PAGE, {"name": name, "content": content})

    def save_page(self, page_id: Any, content: Optional[str]):
        # An unknown id updates nothing and still succeeds
        self._execute(SqlQuery.SAVE_PAGE, {"id": _page_id(page_id), "content": content})

    def delete_page(self, page_id: Any):
        self._execute(SqlQuery.DELETE_PAGE, {"id": _page_id(page_id)})

    def close(self):
        self.engine.dispose()
