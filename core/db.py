import pathlib

from sqlalchemy.engine import make_url
from sqlmodel import create_engine


def create_db_engine(url: str, driver: str = "", pool_size: int = 30):
    """Create an engine with a bounded connection pool"""
    db_url = make_url(url)
    if driver:
        db_url = db_url.set(drivername=driver)

    # File based sqlite needs its directory in place
    if db_url.get_backend_name() == "sqlite" and db_url.database not in (None, "", ":memory:"):
        pathlib.Path(db_url.database).parent.mkdir(parents=True, exist_ok=True)

    # Requests beyond the pool size wait, without limit, for a connection to be returned
    return create_engine(
        db_url, pool_size=pool_size, max_overflow=0, pool_timeout=None, pool_pre_ping=True
    )
