# gamenight/services/group_invites.py
# Выпуск и перевыпуск инвайт-учётки группы.
#   • issue_group       : создаёт группу с кодом/токеном/сроком и делает создателя admin;
#   • regenerate_invite : новый токен + срок, старый токен сразу недействителен;
#   • get_invite        : данные для шаринга (только участникам).

from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Optional
from urllib.parse import quote

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from gamenight.models.group import GameGroup
from gamenight.models.group_member import GroupMember, MemberRole
from gamenight.models.user import User
from gamenight.services.events import log_event, GROUP_CREATED, INVITE_REGENERATED
from gamenight.services.group_membership import is_member
from gamenight.services.invite_codes import (
    as_utc,
    generate_invite_token,
    generate_join_code,
    token_expiry,
    utc_now,
)
from gamenight.services.results import ErrorCode, InviteInfo, InviteResult

log = logging.getLogger(__name__)

JOIN_CODE_MAX_ATTEMPTS = int(os.getenv("JOIN_CODE_MAX_ATTEMPTS", "10"))
PUBLIC_BASE_URL = (os.getenv("PUBLIC_BASE_URL") or "").strip()
GROUP_NAME_MAX_LENGTH = 120


class JoinCodeExhausted(Exception):
    pass


def _pick_join_code(db: Session, attempts: int = JOIN_CODE_MAX_ATTEMPTS) -> str:
    """Случайный код, которого ещё нет ни у одной группы. После attempts неудач сдаёмся."""
    for _ in range(attempts):
        code = generate_join_code()
        if not db.query(GameGroup.id).filter(GameGroup.join_code == code).first():
            return code
    raise JoinCodeExhausted(f"no free join code after {attempts} attempts")


def build_invite_url(join_code: str, invite_token: str, base_url: Optional[str] = None) -> Optional[str]:
    """Ссылка для шаринга: <base>/join/<code>?token=<token> (если задан PUBLIC_BASE_URL)."""
    base = (base_url or PUBLIC_BASE_URL).rstrip("/")
    if not base:
        return None
    return f"{base}/join/{quote(join_code)}?token={quote(invite_token)}"


def invite_info(group: GameGroup, *, now: Optional[datetime] = None, base_url: Optional[str] = None) -> InviteInfo:
    expires_at = as_utc(group.invite_token_expires_at)
    return InviteInfo(
        group_id=group.id,
        join_code=group.join_code,
        invite_token=group.invite_token,
        expires_at=expires_at,
        is_expired=(now or utc_now()) > expires_at,
        invite_url=build_invite_url(group.join_code, group.invite_token, base_url),
    )


def issue_group(
    db: Session,
    group_name: Optional[str],
    creator_id: Optional[int],
    *,
    now: Optional[datetime] = None,
) -> InviteResult:
    """
    Создаёт группу и первую инвайт-пару.
    Группа и membership создателя (role=admin) пишутся ОДНИМ коммитом:
    если вставка membership падает, откатывается и группа, «сирот» не остаётся.
    """
    if creator_id is None:
        return InviteResult.fail(ErrorCode.not_authenticated, "login_required")

    name = (group_name or "").strip()
    if not name:
        return InviteResult.fail(ErrorCode.invalid_input, "group_name_required")
    if len(name) > GROUP_NAME_MAX_LENGTH:
        return InviteResult.fail(ErrorCode.invalid_input, "group_name_too_long")

    now = now or utc_now()
    try:
        if db.get(User, creator_id) is None:
            return InviteResult.fail(ErrorCode.not_found, "user_not_found")

        group = GameGroup(
            name=name,
            created_by=creator_id,
            join_code=_pick_join_code(db),
            invite_token=generate_invite_token(),
            invite_token_expires_at=token_expiry(now),
            created_at=now,
        )
        db.add(group)
        db.flush()  # нужен group.id для membership и события

        db.add(GroupMember(group_id=group.id, user_id=creator_id, role=MemberRole.admin, joined_at=now))
        log_event(
            db,
            type=GROUP_CREATED,
            actor_id=creator_id,
            group_id=group.id,
            data={"name": name},
        )
        db.commit()
    except JoinCodeExhausted:
        db.rollback()
        log.exception("issue: could not allocate a join code for user %s", creator_id)
        return InviteResult.fail(ErrorCode.store_failure, "join_code_unavailable")
    except SQLAlchemyError:
        db.rollback()
        log.exception("issue: failed to create group %r for user %s", name, creator_id)
        return InviteResult.fail(ErrorCode.store_failure, "group_create_failed")

    db.refresh(group)
    log.info("issue: group %s created by user %s (join_code=%s)", group.id, creator_id, group.join_code)
    return InviteResult(ok=True, group=group, invite=invite_info(group, now=now))


def regenerate_invite(
    db: Session,
    group_id: int,
    requesting_user_id: Optional[int],
    *,
    now: Optional[datetime] = None,
) -> InviteResult:
    """
    Новый токен и срок для группы. Доступно ЛЮБОМУ участнику (не только admin).
    Параллельные перевыпуски не согласуются: побеждает последний записавший.
    """
    if requesting_user_id is None:
        return InviteResult.fail(ErrorCode.not_authenticated, "login_required")

    now = now or utc_now()
    try:
        group = db.get(GameGroup, group_id)
        if group is None:
            return InviteResult.fail(ErrorCode.not_found, "group_not_found")
        if not is_member(db, group_id, requesting_user_id):
            return InviteResult.fail(ErrorCode.not_found, "not_group_member")

        group.invite_token = generate_invite_token()
        group.invite_token_expires_at = token_expiry(now)
        log_event(
            db,
            type=INVITE_REGENERATED,
            actor_id=requesting_user_id,
            group_id=group_id,
            data={"expires_at": group.invite_token_expires_at.isoformat()},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        log.exception("regenerate: failed for group %s by user %s", group_id, requesting_user_id)
        return InviteResult.fail(ErrorCode.store_failure, "invite_regenerate_failed")

    db.refresh(group)
    log.info("regenerate: group %s invite rotated by user %s", group_id, requesting_user_id)
    return InviteResult(ok=True, group=group, invite=invite_info(group, now=now))


def get_invite(
    db: Session,
    group_id: int,
    user_id: Optional[int],
    *,
    now: Optional[datetime] = None,
) -> InviteResult:
    """Текущие код/токен/срок группы для окна «Поделиться». Видны только участникам."""
    if user_id is None:
        return InviteResult.fail(ErrorCode.not_authenticated, "login_required")

    try:
        group = db.get(GameGroup, group_id)
        if group is None:
            return InviteResult.fail(ErrorCode.not_found, "group_not_found")
        if not is_member(db, group_id, user_id):
            return InviteResult.fail(ErrorCode.not_found, "not_group_member")
    except SQLAlchemyError:
        db.rollback()
        log.exception("get invite: lookup failed for group %s", group_id)
        return InviteResult.fail(ErrorCode.store_failure, "invite_lookup_failed")

    return InviteResult(ok=True, group=group, invite=invite_info(group, now=now))
