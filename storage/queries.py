import configparser
import pathlib
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from core.exceptions import QueryCatalogError
from core.logger import logging

DEFAULT_QUERIES_FILE = pathlib.Path(__file__).parent / "db-queries.ini"
QUERIES_SECTION = "queries"


class SqlQuery(str, Enum):
    CREATE_PAGES_TABLE = "create-pages-table"
    ALL_PAGES = "all-pages"
    GET_PAGE = "get-page"
    CREATE_PAGE = "create-page"
    SAVE_PAGE = "save-page"
    DELETE_PAGE = "delete-page"


class QueryCatalog:
    """Backend SQL text for every store operation, fixed once loaded"""

    def __init__(self, queries: Mapping[SqlQuery, str]):
        missing = [q.value for q in SqlQuery if not queries.get(q)]
        if missing:
            raise QueryCatalogError(f"Missing SQL queries: {', '.join(missing)}")
        self._queries = MappingProxyType(dict(queries))

    @classmethod
    def load(cls, path: Optional[str] = None) -> "QueryCatalog":
        """Load queries from ``path``, or from the built-in resource"""
        source = pathlib.Path(path) if path else DEFAULT_QUERIES_FILE

        parser = configparser.ConfigParser(interpolation=None)
        try:
            with open(source, encoding="utf-8") as f:
                parser.read_file(f)
        except (OSError, configparser.Error) as e:
            raise QueryCatalogError(f"Cannot read SQL queries from {source}: {e}") from e

        if not parser.has_section(QUERIES_SECTION):
            raise QueryCatalogError(f"No [{QUERIES_SECTION}] section in {source}")

        section = parser[QUERIES_SECTION]
        queries = {q: section.get(q.value, "").strip() for q in SqlQuery}
        catalog = cls(queries)
        logging.debug(f"Loaded {len(queries)} SQL queries from {source}")
        return catalog

    def get(self, query: SqlQuery) -> str:
        return self._queries[query]
