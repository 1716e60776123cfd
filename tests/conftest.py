"""Test configuration and fixtures."""

from typing import Generator, List

import pytest
from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from flex_attributes.db.base import Base

from . import models  # noqa: F401


@pytest.fixture
def db_engine() -> Generator[Engine, None, None]:
    """Create a fresh in-memory database for each test."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine) -> Generator[Session, None, None]:
    session_local = sessionmaker(bind=db_engine)
    session = session_local()
    yield session
    session.close()


@pytest.fixture
def statements(db_engine: Engine) -> Generator[List[str], None, None]:
    """Collect every SQL statement sent to the database."""
    captured: List[str] = []

    def _capture(conn, cursor, statement, parameters, context, executemany):
        captured.append(" ".join(statement.split()))

    event.listen(db_engine, "before_cursor_execute", _capture)
    yield captured
    event.remove(db_engine, "before_cursor_execute", _capture)
