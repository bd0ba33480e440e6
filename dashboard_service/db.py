from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

# Register every table on SQLModel.metadata before create_all runs
from .models import models  # noqa: F401


# 1. Create the Engine
def create_db_engine(database_url: str) -> Engine:
    """
    Builds the engine for DATABASE_URL.
    pool_pre_ping=True keeps us from using stale connections after a DB restart.
    """
    if not database_url.startswith("sqlite"):
        return create_engine(database_url, pool_pre_ping=True)

    # SQLite: FastAPI runs sync routes in a threadpool, so allow cross-thread use.
    # In-memory databases only exist per connection, so share a single one.
    kwargs = {"connect_args": {"check_same_thread": False}}
    if database_url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


# 2. Initialization
def init_db(engine: Engine) -> None:
    """
    Creates the dashboard tables if they don't exist.
    """
    SQLModel.metadata.create_all(engine)


def close_db_connection(engine: Engine) -> None:
    engine.dispose()
