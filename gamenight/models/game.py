# gamenight/models/game.py

from sqlalchemy import Column, Integer, String, DateTime, func
from gamenight.db import Base


class Game(Base):
    """
    Справочник настольных игр. Наполняется вне этого сервиса,
    здесь нужен только как цель внешнего ключа для сессий.
    """
    __tablename__ = "games"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=func.now())

    def __repr__(self):
        return f"<Game(id={self.id}, name={self.name!r})>"
