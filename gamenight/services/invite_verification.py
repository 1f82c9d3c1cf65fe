# gamenight/services/invite_verification.py
# Проверка предъявленной пары (join_code, invite_token). Только чтение.

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gamenight.models.group import GameGroup
from gamenight.services.invite_codes import as_utc, normalize_join_code, utc_now
from gamenight.services.results import ErrorCode, InviteResult, VerifiedGroup

log = logging.getLogger(__name__)


def find_group_by_credentials(db: Session, join_code: str, invite_token: str) -> Optional[GameGroup]:
    """Коды храним в верхнем регистре, поэтому сравнение с нормализованным вводом это обычное равенство."""
    return (
        db.query(GameGroup)
        .filter(GameGroup.join_code == join_code, GameGroup.invite_token == invite_token)
        .first()
    )


def verify_invite(
    db: Session,
    join_code: Optional[str],
    invite_token: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> InviteResult:
    """
    Ищет группу, у которой ТЕКУЩАЯ пара совпадает с предъявленной.
      • нет такой группы (неверный код, старый или перевыпущенный токен) → invalid_credential;
      • пара совпала, но срок вышел → expired;
      • иначе → verified с id группы и сроком токена.
    Состояние не меняет, повторять безопасно.
    """
    code = normalize_join_code(join_code)
    # токен сравниваем как есть: без обрезки и смены регистра
    token = invite_token or None
    if not code or not token:
        return InviteResult.fail(ErrorCode.invalid_credential, "missing_credential")

    try:
        group = find_group_by_credentials(db, code, token)
    except SQLAlchemyError:
        db.rollback()
        log.exception("invite verify: lookup failed for join_code=%s", code)
        return InviteResult.fail(ErrorCode.store_failure, "invite_lookup_failed")

    if group is None:
        log.warning("invite verify: no group for join_code=%s with presented token", code)
        return InviteResult.fail(ErrorCode.invalid_credential, "invalid_invite")

    expires_at = as_utc(group.invite_token_expires_at)
    if (now or utc_now()) > expires_at:
        log.info("invite verify: token for group %s expired at %s", group.id, expires_at.isoformat())
        return InviteResult.fail(ErrorCode.expired, "invite_expired")

    verified = VerifiedGroup(
        group_id=group.id,
        name=group.name,
        join_code=group.join_code,
        expires_at=expires_at,
    )
    return InviteResult(ok=True, group=group, verified=verified)
