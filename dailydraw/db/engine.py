"""Engine and session factory for the lottery database."""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .utils import resolve_sqlite_url

load_dotenv()
# Repository root; relative SQLite paths in DB_URL are resolved against it.
ROOT_DIR = Path(__file__).resolve().parents[2]
DEFAULT_SQLITE_URL = resolve_sqlite_url(
    os.getenv("DB_URL", "sqlite:///./lottery.db"), ROOT_DIR
)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create an engine for ``database_url`` (``DB_URL`` by default).

    SQLite connections get foreign key enforcement so cascading deletes of
    drawings and periods behave like they do on other backends.
    """
    url = database_url or DEFAULT_SQLITE_URL
    engine = create_engine(url, echo=echo, future=True)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def get_sessionmaker(engine: Engine) -> sessionmaker:
    """Session factory used by :class:`~dailydraw.service.LotteryService`.

    ``expire_on_commit`` is off so entries, drawings and winners returned from
    a committed operation stay readable.
    """
    return sessionmaker(bind=engine, expire_on_commit=False, future=True)
