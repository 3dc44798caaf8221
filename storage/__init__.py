from storage.queries import QueryCatalog, SqlQuery
from storage.store import PageStore


__all__ = [
    "PageStore",
    "QueryCatalog",
    "SqlQuery",
]
