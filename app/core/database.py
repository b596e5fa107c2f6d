import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.declarative import declarative_base
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import ConfigurationError, StoreError

logger = logging.getLogger(__name__)

Base = declarative_base()


@dataclass(frozen=True)
class StoreEvent:
    kind: str  # connected, disconnected, reconnected, invalidated
    detail: Optional[str] = None


StoreListener = Callable[[StoreEvent], None]


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


class Database:
    """Owned handle to the record store.

    Built once at startup and passed to whoever needs it. Lifecycle is explicit
    (connect / disconnect) and connection-level events are published to
    subscribers instead of being logged from module globals.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self.engine: Optional[Engine] = None
        self._sessionmaker: Optional[sessionmaker] = None
        self._listeners: List[StoreListener] = []
        self._invalidated = False

    @property
    def is_connected(self) -> bool:
        return self.engine is not None

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a store event listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, kind: str, detail: Optional[str] = None) -> None:
        store_event = StoreEvent(kind=kind, detail=detail)
        for listener in list(self._listeners):
            try:
                listener(store_event)
            except Exception:
                logger.exception("Store event listener failed for %s", kind)

    def connect(self) -> Engine:
        if self.engine is not None:
            return self.engine
        if not self.url:
            raise ConfigurationError("DATABASE_URL is not configured")

        if self.url.startswith("sqlite"):
            engine_kwargs = {
                "echo": self.echo,
                "connect_args": {"check_same_thread": False},  # Allow SQLite to work with FastAPI
            }
            if _is_memory_sqlite(self.url):
                # One shared connection, otherwise every checkout sees an empty database
                engine_kwargs["poolclass"] = StaticPool
            engine = create_engine(self.url, **engine_kwargs)

            if not _is_memory_sqlite(self.url):
                @event.listens_for(engine, "connect")
                def set_sqlite_pragma(dbapi_connection, connection_record):
                    cursor = dbapi_connection.cursor()
                    cursor.execute("PRAGMA journal_mode=WAL;")
                    cursor.execute("PRAGMA synchronous=NORMAL;")
                    cursor.close()
        else:
            # Postgres or others
            engine = create_engine(self.url, echo=self.echo, pool_pre_ping=True)

        event.listen(engine, "connect", self._on_pool_connect)
        event.listen(engine, "invalidate", self._on_pool_invalidate)

        self.engine = engine
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        self._publish("connected", engine.url.render_as_string(hide_password=True))
        return engine

    def disconnect(self) -> None:
        if self.engine is None:
            return
        self.engine.dispose()
        self.engine = None
        self._sessionmaker = None
        self._publish("disconnected")

    def _on_pool_connect(self, dbapi_connection, connection_record):
        if self._invalidated:
            self._invalidated = False
            self._publish("reconnected")

    def _on_pool_invalidate(self, dbapi_connection, connection_record, exception):
        self._invalidated = True
        self._publish("invalidated", str(exception) if exception else None)

    def create_all(self) -> None:
        # Import models so they are registered on Base
        import app.models  # noqa: F401

        Base.metadata.create_all(bind=self.connect())

    def session(self) -> Session:
        if self._sessionmaker is None:
            raise StoreError("Database is not connected")
        return self._sessionmaker()


def log_store_event(store_event: StoreEvent) -> None:
    """Default subscriber: store lifecycle goes to the application log."""
    if store_event.kind in ("invalidated", "disconnected"):
        logger.warning("Database %s %s", store_event.kind, store_event.detail or "")
    else:
        logger.info("Database %s %s", store_event.kind, store_event.detail or "")


def get_db(request: Request):
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
