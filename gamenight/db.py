# gamenight/db.py
# Инициализация SQLAlchemy: движок, сессии, Base и явные импорты моделей.

from __future__ import annotations

import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL") or "sqlite:///./gamenight.db"


def make_engine(url: str):
    """
    Пул настраиваем только для серверных БД; SQLite (локально и в тестах)
    работает с дефолтами, но должен разрешать доступ из разных потоков.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False, "timeout": 30})
    return create_engine(
        url,
        pool_size=20,
        max_overflow=20,
        pool_timeout=60,
        pool_recycle=1800,
        pool_pre_ping=True,
    )


engine = make_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

from gamenight.models import (  # noqa: E402
    user,
    group,
    group_member,
    game,
    game_session,
    event,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
