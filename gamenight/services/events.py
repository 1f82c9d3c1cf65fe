# gamenight/services/events.py
from __future__ import annotations
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from gamenight.models.event import Event

# Типы событий журнала
GROUP_CREATED = "group_created"
INVITE_REGENERATED = "invite_regenerated"
MEMBER_JOINED = "member_joined"
SESSION_LOGGED = "session_logged"


def log_event(
    db: Session,
    *,
    type: str,
    actor_id: int,
    group_id: Optional[int] = None,
    target_user_id: Optional[int] = None,
    data: Optional[Dict[str, Any]] = None,
) -> Event:
    """
    Единая точка записи событий. Вызывается в той же транзакции, что и бизнес-операция.
    Не делает commit: откат операции откатывает и событие.
    """
    ev = Event(
        type=type,
        actor_id=actor_id,
        group_id=group_id,
        target_user_id=target_user_id,
        data=(data or {}),
    )
    db.add(ev)
    return ev
