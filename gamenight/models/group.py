# gamenight/models/group.py
# -----------------------------------------------------------------------------
# МОДЕЛЬ: GameGroup (SQLAlchemy)
# -----------------------------------------------------------------------------
# Текущая пара (join_code, invite_token) живёт прямо в строке группы:
# перевыпуск токена перезаписывает invite_token и срок, старый токен сразу
# перестаёт работать.

from __future__ import annotations

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index, func
from sqlalchemy.orm import relationship

from ..db import Base

JOIN_CODE_LENGTH = 6


class GameGroup(Base):
    __tablename__ = "game_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)

    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    creator = relationship("User")

    join_code = Column(
        String(JOIN_CODE_LENGTH),
        nullable=False,
        unique=True,
        comment="Короткий код для ручного ввода (A-Z0-9, верхний регистр)",
    )
    invite_token = Column(
        String(64),
        nullable=False,
        unique=True,
        comment="Текущий инвайт-токен (uuid4); перевыпуск инвалидирует предыдущий",
    )
    invite_token_expires_at = Column(
        DateTime(timezone=True),
        nullable=False,
        comment="Когда истекает текущий инвайт-токен (UTC)",
    )

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    members = relationship("GroupMember", back_populates="group", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_game_groups_join_code_token", "join_code", "invite_token"),
    )

    def __repr__(self):
        return f"<GameGroup(id={self.id}, name={self.name!r}, join_code={self.join_code})>"
