"""
Shared test fixtures for Orderflow tests

Provides database setup, client creation and seeded catalogue fixtures
"""
import os

# Point the application engine at SQLite before anything imports settings
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("LOW_STOCK_NOTIFY_EMAILS", "")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from orderflow.main import app
from orderflow.db.base import Base
from orderflow.db.session import get_db
from orderflow.core.limiter import limiter
from tests.factories import (
    create_test_product,
    create_test_raw_material,
    reset_sequences,
)

# Disable rate limiting for tests
limiter.enabled = False


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine):
    """Create all tables for testing using SQLAlchemy metadata"""
    import orderflow.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def drop_tables(engine):
    """Drop all tables after testing"""
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Create a fresh database session for each test"""
    create_tables(engine)
    reset_sequences()

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables(engine)


@pytest.fixture
def client(db_session):
    """Create a test client with database override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def settings_override():
    """
    Temporarily change settings values; restored after the test.

        def test_x(settings_override):
            settings_override(COUNT_CANCELLED_DELIVERIES=False)
    """
    from orderflow.core.config import settings

    original = {}

    def _apply(**values):
        for key, value in values.items():
            original.setdefault(key, getattr(settings, key))
            setattr(settings, key, value)

    yield _apply

    for key, value in original.items():
        setattr(settings, key, value)


@pytest.fixture
def materials(db_session):
    """Two raw materials: steel (100) and paint (50)."""
    steel = create_test_raw_material(db_session, name="Steel Sheet", unit="kg", stock=100)
    paint = create_test_raw_material(db_session, name="Paint", unit="l", stock=50)
    db_session.commit()
    return {"steel": steel, "paint": paint}


@pytest.fixture
def products(db_session, materials):
    """
    Catalogue used by most workflow tests:

    - Cabinet: 4 steel + 1 paint per unit
    - Shelf:   2 steel per unit
    """
    cabinet = create_test_product(
        db_session,
        name="Cabinet",
        ingredients=[(materials["steel"], 4), (materials["paint"], 1)],
    )
    shelf = create_test_product(
        db_session,
        name="Shelf",
        ingredients=[(materials["steel"], 2)],
    )
    db_session.commit()
    return {"cabinet": cabinet, "shelf": shelf}
