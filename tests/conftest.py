import os
import sys
from pathlib import Path as _Path

_ROOT = _Path(__file__).resolve().parents[1]
sys.path.insert(0, str(_ROOT / "app"))
sys.path.insert(0, str(_ROOT / "server"))

# Must be set before the server modules read their configuration.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SESSION_SECRET"] = "test-session-secret"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from core.sessions import SessionStore, get_session_store
from database import get_db, init_db, make_engine


@pytest.fixture()
def db_engine(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'accounts.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(db_engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    yield session
    session.close()


@pytest.fixture()
def store():
    return SessionStore()


def _client_for(engine, store):
    import main

    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    main.app.dependency_overrides[get_db] = override_get_db
    main.app.dependency_overrides[get_session_store] = lambda: store
    return TestClient(main.app)


@pytest.fixture()
def client(db_engine, store):
    import main

    with _client_for(db_engine, store) as c:
        yield c
    main.app.dependency_overrides.clear()


@pytest.fixture()
def broken_client(tmp_path, store):
    """Client whose database never had its schema created."""
    import main

    engine = make_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    with _client_for(engine, store) as c:
        yield c
    main.app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture()
def omkar():
    return {
        "user_id": "netm01",
        "user_name": "Omkar",
        "password": "Secret123",
        "email": "omkar@example.com",
        "phone": "9876543210",
    }
