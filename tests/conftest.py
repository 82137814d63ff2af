# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from models.base import Base
from models import client, notification, scheduling  # noqa: F401 (register models)


@pytest.fixture()
def session():
    # SQLite in-memory DB just for tests
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture()
def session_factory(tmp_path):
    # File-backed SQLite so several threads/requests can hold their own connection
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'booking.db'}", future=True)
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        future=True,
        expire_on_commit=False,
    )
    try:
        yield factory
    finally:
        engine.dispose()
