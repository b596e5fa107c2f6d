import pytest
from sqlalchemy import text

from app.core.database import Database
from app.core.exceptions import ConfigurationError, StoreError


def test_connect_and_disconnect_publish_events():
    events = []
    db = Database("sqlite://")
    db.subscribe(events.append)

    db.connect()
    assert db.is_connected
    db.disconnect()
    assert not db.is_connected

    assert [e.kind for e in events] == ["connected", "disconnected"]


def test_connect_is_idempotent():
    events = []
    db = Database("sqlite://")
    db.subscribe(events.append)
    engine = db.connect()
    assert db.connect() is engine
    assert [e.kind for e in events] == ["connected"]
    db.disconnect()


def test_unsubscribe():
    events = []
    db = Database("sqlite://")
    unsubscribe = db.subscribe(events.append)
    unsubscribe()
    db.connect()
    db.disconnect()
    assert events == []


def test_missing_url_is_configuration_error():
    with pytest.raises(ConfigurationError):
        Database("").connect()


def test_session_requires_connection():
    with pytest.raises(StoreError):
        Database("sqlite://").session()


def test_failing_listener_does_not_break_lifecycle():
    def broken(event):
        raise RuntimeError("boom")

    db = Database("sqlite://")
    db.subscribe(broken)
    db.connect()
    assert db.is_connected
    db.disconnect()


def test_invalidated_connection_reports_reconnect(tmp_path):
    events = []
    db = Database(f"sqlite:///{tmp_path / 'store.db'}")
    db.subscribe(events.append)
    engine = db.connect()

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
        conn.invalidate()

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))

    kinds = [e.kind for e in events]
    assert kinds[0] == "connected"
    assert "invalidated" in kinds
    assert kinds[-1] == "reconnected"
    db.disconnect()


def test_create_all_builds_waitlist_table():
    db = Database("sqlite://")
    db.create_all()
    with db.engine.connect() as conn:
        rows = conn.execute(text("SELECT name FROM sqlite_master WHERE type='table'")).fetchall()
    assert ("waitlist_entries",) in rows
    db.disconnect()
