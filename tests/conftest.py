import os

# Must be set before the app (and its Settings) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SHOPIFY_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["ENVIRONMENT"] = "development"
os.environ["WEBHOOK_AUTO_APPROVE_ON_ORDER"] = "false"

import pytest

from app.core.database import Database
from app.main import app


@pytest.fixture
def database():
    """Fresh in-memory store wired into the app for the duration of a test."""
    db = Database("sqlite://")
    db.create_all()
    previous = app.state.database
    app.state.database = db
    yield db
    app.state.database = previous
    db.disconnect()


@pytest.fixture
def db_session(database):
    session = database.session()
    yield session
    session.close()
