from typing import Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker, declarative_base
from sqlalchemy.pool import NullPool, StaticPool

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str) -> Engine:
    # SQLite needs check_same_thread, PostgreSQL doesn't
    if database_url.startswith("sqlite"):
        engine_kwargs = {
            "connect_args": {"check_same_thread": False},
            "echo": False,
        }
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # In-memory databases only exist for the connection that made them
            engine_kwargs["poolclass"] = StaticPool
        else:
            # SQLite doesn't support max_overflow, pool_timeout, pool_recycle or pool_pre_ping
            engine_kwargs["poolclass"] = NullPool
    else:
        engine_kwargs = {
            "connect_args": {"connect_timeout": 10},
            "pool_size": 20,  # Number of connections to maintain
            "max_overflow": 10,  # Additional connections when pool is exhausted
            "pool_pre_ping": True,  # Verify connections before using
            "pool_recycle": 3600,  # Recycle connections after 1 hour
            "pool_timeout": 30,  # Wait up to 30 seconds for connection from pool
            "echo": False,
        }
    engine = create_engine(database_url, **engine_kwargs)
    if database_url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


class Database:
    """Process-scoped storage handle.

    Built once when the application is constructed, kept on ``app.state`` and
    disposed on shutdown. Repositories never import it; they receive the
    request-scoped ``Session`` produced by :meth:`session`.
    """

    def __init__(self, database_url: str, engine: Optional[Engine] = None):
        self.url = database_url
        self.engine = engine or build_engine(database_url)
        self.session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )

    @property
    def is_sqlite(self) -> bool:
        return self.engine.dialect.name == "sqlite"

    def create_all(self) -> None:
        # Import all models so they're registered with Base.metadata
        from ddproperty import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        from ddproperty import models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
