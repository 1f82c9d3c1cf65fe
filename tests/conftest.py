from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from gamenight.db import Base, get_db, make_engine
from gamenight.main import app
from gamenight.models.game import Game
from gamenight.models.user import User
from gamenight.services.group_invites import issue_group
from gamenight.utils.telegram_dep import get_current_user_id

T0 = datetime(2026, 10, 18, 19, 0, tzinfo=timezone.utc)


@pytest.fixture()
def engine(tmp_path):
    # Файловая SQLite: параллельным тестам нужны отдельные соединения к одной базе
    eng = make_engine(f"sqlite:///{tmp_path / 'gamenight-test.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def users(db):
    ids = {}
    for i, name in enumerate(["alice", "bob", "carol", "dave"], start=1):
        u = User(telegram_id=1000 + i, username=name, name=name.title())
        db.add(u)
        db.flush()
        ids[name] = u.id
    db.commit()
    return ids


@pytest.fixture()
def game(db):
    g = Game(name="Catan")
    db.add(g)
    db.commit()
    return g.id


@pytest.fixture()
def group(db, users):
    """Группа Алисы, выпущенная в момент T0 (токен живёт до T0 + 1 час)."""
    result = issue_group(db, "Game Night", users["alice"], now=T0)
    assert result.ok
    return result.group


@pytest.fixture()
def current_user():
    return {"id": None}


@pytest.fixture()
def client(session_factory, current_user):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_user_id] = lambda: current_user["id"]
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
