import os
from typing import Optional

from sqlalchemy.engine import Engine, make_url
from sqlmodel import SQLModel, create_engine

from config import load_config


def _ensure_sqlite_dir(database_url: str):
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        directory = os.path.dirname(url.database)
        if directory:
            os.makedirs(directory, exist_ok=True)


def make_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """Create the SQLAlchemy engine, defaulting to GOALS_DATABASE_URL"""
    database_url = database_url or load_config()["database_url"]
    _ensure_sqlite_dir(database_url)
    return create_engine(database_url, echo=echo)


def create_db_and_tables(engine: Engine):
    """Create database tables from SQLModel classes"""
    # Registers GoalRecord on SQLModel.metadata
    import storage.sql_store  # noqa: F401
    SQLModel.metadata.create_all(engine)
