import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.database import Base, get_db
from app.dependencies import bearer, get_verified_email

ADMIN_EMAIL = "admin@example.com"


def auth(email):
    # The test token is the email itself; see fake_verified_email below
    return {"Authorization": f"Bearer {email}"}


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory, monkeypatch):
    monkeypatch.setenv("ADMIN_EMAILS", ADMIN_EMAIL)

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    def fake_verified_email(credentials: HTTPAuthorizationCredentials = Depends(bearer)) -> str:
        return credentials.credentials

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_verified_email] = fake_verified_email
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def register(client):
    def _register(email, name=None):
        res = client.post(
            "/api/auth/register",
            json={"name": name or email.split("@")[0].title()},
            headers=auth(email),
        )
        assert res.status_code == 201, res.text
        return res.json()["user"]
    return _register


@pytest.fixture
def make_post(client):
    def _make_post(email, title="Hello", content="Body text", **fields):
        payload = {"title": title, "content": content}
        payload.update(fields)
        res = client.post("/api/posts", json=payload, headers=auth(email))
        assert res.status_code == 201, res.text
        return res.json()["post"]
    return _make_post


@pytest.fixture
def alice(register):
    return register("alice@example.com", "Alice")


@pytest.fixture
def bob(register):
    return register("bob@example.com", "Bob")


@pytest.fixture
def admin(register):
    return register(ADMIN_EMAIL, "Admin")


class _UnmatchedDelete:
    """Query whose ``delete`` matches no rows; other calls go to the real query."""

    def __init__(self, query):
        self._query = query

    def filter(self, *criteria):
        return _UnmatchedDelete(self._query.filter(*criteria))

    def delete(self, **kwargs):
        return 0

    def __getattr__(self, name):
        return getattr(self._query, name)


class LateInsertSession:
    """
    Session wrapper whose deletes on ``model`` (or on a core table) match nothing.

    Used to reproduce a toggle racing another request: the row exists, but the
    delete step ran before the other request's insert became visible.
    """

    def __init__(self, session, model=None):
        self._session = session
        self._model = model

    def query(self, *entities):
        query = self._session.query(*entities)
        if self._model is not None and entities and entities[0] is self._model:
            return _UnmatchedDelete(query)
        return query

    def execute(self, statement, *args, **kwargs):
        if getattr(statement, "is_delete", False):
            return type("Result", (), {"rowcount": 0})()
        return self._session.execute(statement, *args, **kwargs)

    def __getattr__(self, name):
        return getattr(self._session, name)
