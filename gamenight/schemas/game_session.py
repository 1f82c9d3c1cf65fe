# gamenight/schemas/game_session.py

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class PlayerResultIn(BaseModel):
    """
    Результат одного игрока. Все поля кроме user_id необязательны;
    score принимаем и строкой ("12"), Pydantic приведёт к int.
    """
    user_id: int
    team: Optional[str] = Field(None, max_length=64)
    role: Optional[str] = Field(None, max_length=64)
    outcome: Optional[str] = Field(None, max_length=32)
    score: Optional[int] = None


class GameSessionCreate(BaseModel):
    game_id: int
    played_at: datetime
    notes: Optional[str] = None
    players: List[PlayerResultIn] = Field(default_factory=list)


class PlayerResultOut(BaseModel):
    user_id: int
    team: Optional[str] = None
    role: Optional[str] = None
    outcome: Optional[str] = None
    score: Optional[int] = None

    class Config:
        from_attributes = True


class GameSessionOut(BaseModel):
    id: int
    group_id: int
    game_id: int
    played_at: datetime
    notes: Optional[str] = None
    created_by: int
    players: List[PlayerResultOut] = Field(default_factory=list)

    class Config:
        from_attributes = True
