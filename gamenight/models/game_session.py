# gamenight/models/game_session.py
# Сыгранная партия в группе + результаты игроков

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Index, func
from sqlalchemy.orm import relationship
from gamenight.db import Base


class GameSession(Base):
    __tablename__ = "game_sessions"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("game_groups.id"), nullable=False)
    game_id = Column(Integer, ForeignKey("games.id"), nullable=False)
    played_at = Column(DateTime(timezone=True), nullable=False)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    players = relationship("GameSessionPlayer", back_populates="session", cascade="all, delete-orphan")
    game = relationship("Game")

    __table_args__ = (
        Index("ix_game_sessions_group_played", "group_id", "played_at"),
    )


class GameSessionPlayer(Base):
    __tablename__ = "game_session_players"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("game_sessions.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    team = Column(String(64), nullable=True)
    role = Column(String(64), nullable=True)
    outcome = Column(String(32), nullable=True)  # win / loss / draw / ... (свободная строка)
    score = Column(Integer, nullable=True)

    session = relationship("GameSession", back_populates="players")
