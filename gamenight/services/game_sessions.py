# gamenight/services/game_sessions.py
# Запись сыгранной партии в группе. Писать может только участник группы;
# сессия и результаты игроков сохраняются одним коммитом.

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gamenight.models.game import Game
from gamenight.models.game_session import GameSession, GameSessionPlayer
from gamenight.models.group import GameGroup
from gamenight.models.group_member import GroupMember
from gamenight.schemas.game_session import PlayerResultIn
from gamenight.services.events import log_event, SESSION_LOGGED
from gamenight.services.group_membership import is_member
from gamenight.services.results import ErrorCode

log = logging.getLogger(__name__)


@dataclass
class SessionLogResult:
    ok: bool
    error: Optional[ErrorCode] = None
    message: Optional[str] = None
    session: Optional[GameSession] = None
    sessions: List[GameSession] = field(default_factory=list)

    @classmethod
    def fail(cls, error: ErrorCode, message: str) -> SessionLogResult:
        return cls(ok=False, error=error, message=message)


def _member_ids(db: Session, group_id: int) -> set:
    return {uid for (uid,) in db.query(GroupMember.user_id).filter(GroupMember.group_id == group_id).all()}


def log_session(
    db: Session,
    group_id: int,
    user_id: Optional[int],
    *,
    game_id: int,
    played_at: datetime,
    notes: Optional[str] = None,
    players: Sequence[PlayerResultIn] = (),
) -> SessionLogResult:
    if user_id is None:
        return SessionLogResult.fail(ErrorCode.not_authenticated, "login_required")

    seen: set = set()
    for p in players:
        if p.user_id in seen:
            return SessionLogResult.fail(ErrorCode.invalid_input, "duplicate_player")
        seen.add(p.user_id)

    try:
        if db.get(GameGroup, group_id) is None:
            return SessionLogResult.fail(ErrorCode.not_found, "group_not_found")
        if not is_member(db, group_id, user_id):
            return SessionLogResult.fail(ErrorCode.not_found, "not_group_member")
        if db.get(Game, game_id) is None:
            return SessionLogResult.fail(ErrorCode.not_found, "game_not_found")

        # Игроки: только участники этой группы
        if seen - _member_ids(db, group_id):
            return SessionLogResult.fail(ErrorCode.invalid_input, "player_not_member")

        session = GameSession(
            group_id=group_id,
            game_id=game_id,
            played_at=played_at,
            notes=(notes or "").strip() or None,
            created_by=user_id,
        )
        session.players = [
            GameSessionPlayer(
                user_id=p.user_id,
                team=p.team or None,
                role=p.role or None,
                outcome=p.outcome or None,
                score=p.score,
            )
            for p in players
        ]
        db.add(session)
        db.flush()
        log_event(
            db,
            type=SESSION_LOGGED,
            actor_id=user_id,
            group_id=group_id,
            data={"session_id": session.id, "game_id": game_id, "players": len(session.players)},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("log session: failed for group %s by user %s", group_id, user_id)
        return SessionLogResult.fail(ErrorCode.store_failure, "session_create_failed")

    db.refresh(session)
    log.info("log session: session %s in group %s (%d players)", session.id, group_id, len(session.players))
    return SessionLogResult(ok=True, session=session)


def list_sessions(db: Session, group_id: int) -> List[GameSession]:
    return (
        db.query(GameSession)
        .filter(GameSession.group_id == group_id)
        .order_by(GameSession.played_at.desc(), GameSession.id.desc())
        .all()
    )


def read_group_sessions(db: Session, group_id: int, user_id: Optional[int]) -> SessionLogResult:
    """История партий группы; видна только участникам."""
    if user_id is None:
        return SessionLogResult.fail(ErrorCode.not_authenticated, "login_required")

    try:
        if db.get(GameGroup, group_id) is None:
            return SessionLogResult.fail(ErrorCode.not_found, "group_not_found")
        if not is_member(db, group_id, user_id):
            return SessionLogResult.fail(ErrorCode.not_found, "not_group_member")
        sessions = list_sessions(db, group_id)
    except SQLAlchemyError:
        db.rollback()
        log.exception("read sessions: failed for group %s by user %s", group_id, user_id)
        return SessionLogResult.fail(ErrorCode.store_failure, "session_list_failed")

    return SessionLogResult(ok=True, sessions=sessions)
