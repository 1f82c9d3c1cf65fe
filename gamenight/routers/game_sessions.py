# gamenight/routers/game_sessions.py
# РОУТЕР ПАРТИЙ ГРУППЫ

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from gamenight.db import get_db
from gamenight.schemas.game_session import GameSessionCreate, GameSessionOut
from gamenight.services.game_sessions import log_session, read_group_sessions
from gamenight.utils.errors import raise_for_result
from gamenight.utils.telegram_dep import get_current_user_id

router = APIRouter()


@router.post("/{group_id}/sessions", response_model=GameSessionOut, status_code=201)
def create_game_session(
    payload: GameSessionCreate,
    group_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """Записать партию. Игроки валидируются схемой до обращения к сервису."""
    result = log_session(
        db,
        group_id,
        user_id,
        game_id=payload.game_id,
        played_at=payload.played_at,
        notes=payload.notes,
        players=payload.players,
    )
    raise_for_result(result)
    return result.session


@router.get("/{group_id}/sessions", response_model=List[GameSessionOut])
def read_game_sessions(
    group_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """История партий видна только участникам."""
    result = read_group_sessions(db, group_id, user_id)
    raise_for_result(result)
    return result.sessions
