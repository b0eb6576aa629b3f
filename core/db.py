"""
core/db.py -- Engine factory and shared schema metadata.

The Engine is the process-wide connection pool. It is built once (by the API
lifespan or the CLI) and passed into every store constructor, so tests can
hand the stores an isolated in-memory database instead.

All tables are declared against the single `metadata` object below, which lets
the gallery store join pictures against users in one query.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/, or gallery/.
"""

from sqlalchemy import MetaData, create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

metadata = MetaData()


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(db_url: str) -> Engine:
    """Build the connection pool for db_url.

    SQLite connections are shared across the threadpool FastAPI runs sync
    handlers in, so check_same_thread is disabled.
    """
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine


def ping(engine: Engine) -> bool:
    """Return True if the database answers a trivial query."""
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
    except SQLAlchemyError:
        return False
    return True
