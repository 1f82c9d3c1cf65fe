# gamenight/services/group_membership.py
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from gamenight.models.group import GameGroup
from gamenight.models.group_member import GroupMember, MemberRole
from gamenight.services.events import log_event, MEMBER_JOINED
from gamenight.services.invite_codes import normalize_join_code, utc_now
from gamenight.services.invite_verification import verify_invite
from gamenight.services.results import ErrorCode, InviteResult

log = logging.getLogger(__name__)

LEGACY_CODE_JOIN_ENABLED = os.getenv("LEGACY_CODE_JOIN_ENABLED") == "1"


def get_membership(db: Session, group_id: int, user_id: int) -> Optional[GroupMember]:
    return (
        db.query(GroupMember)
        .filter(GroupMember.group_id == group_id, GroupMember.user_id == user_id)
        .first()
    )


def is_member(db: Session, group_id: int, user_id: int) -> bool:
    return get_membership(db, group_id, user_id) is not None


def count_members(db: Session, group_id: int) -> int:
    return db.query(func.count(GroupMember.id)).filter(GroupMember.group_id == group_id).scalar() or 0


def join_group(
    db: Session,
    group_id: int,
    user_id: Optional[int],
    *,
    now: Optional[datetime] = None,
    via: str = "direct",
) -> InviteResult:
    """
    Идемпотентно добавляет пользователя в группу с ролью member.

    Возвращает:
      ok + membership               : создана новая запись;
      ok + already_member=True      : запись уже была (в т.ч. её только что вставил параллельный запрос).

    Предварительная проверка лишь оптимизация. Дубли отсекает UNIQUE (group_id, user_id):
    проигравший гонку INSERT получает IntegrityError, мы откатываемся и перечитываем запись.
    """
    if user_id is None:
        return InviteResult.fail(ErrorCode.not_authenticated, "login_required")

    try:
        group = db.get(GameGroup, group_id)
        if group is None:
            return InviteResult.fail(ErrorCode.not_found, "group_not_found")

        existing = get_membership(db, group_id, user_id)
        if existing is not None:
            return InviteResult(ok=True, group=group, membership=existing, already_member=True)

        gm = GroupMember(
            group_id=group_id,
            user_id=user_id,
            role=MemberRole.member,
            joined_at=now or utc_now(),
        )
        db.add(gm)
        log_event(
            db,
            type=MEMBER_JOINED,
            actor_id=user_id,
            group_id=group_id,
            target_user_id=user_id,
            data={"via": via},
        )
        db.commit()
    except IntegrityError:
        db.rollback()
        existing = get_membership(db, group_id, user_id)
        if existing is None:
            # UNIQUE тут ни при чём (например, FK на несуществующего пользователя)
            log.exception("join: insert rejected for group %s user %s", group_id, user_id)
            return InviteResult.fail(ErrorCode.store_failure, "join_failed")
        log.info("join: concurrent insert won for group %s user %s", group_id, user_id)
        return InviteResult(ok=True, group=existing.group, membership=existing, already_member=True)
    except SQLAlchemyError:
        db.rollback()
        log.exception("join: store failure for group %s user %s", group_id, user_id)
        return InviteResult.fail(ErrorCode.store_failure, "join_failed")

    db.refresh(gm)
    log.info("join: user %s joined group %s via %s", user_id, group_id, via)
    return InviteResult(ok=True, group=group, membership=gm)


def join_with_token(
    db: Session,
    join_code: Optional[str],
    invite_token: Optional[str],
    user_id: Optional[int],
    *,
    now: Optional[datetime] = None,
) -> InviteResult:
    """Основной путь: сначала проверка пары (join_code, token) и срока, затем вступление."""
    if user_id is None:
        return InviteResult.fail(ErrorCode.not_authenticated, "login_required")

    checked = verify_invite(db, join_code, invite_token, now=now)
    if not checked.ok:
        return checked

    result = join_group(db, checked.verified.group_id, user_id, now=now, via="invite_token")
    result.verified = checked.verified
    return result


def join_by_code(
    db: Session,
    join_code: Optional[str],
    user_id: Optional[int],
    *,
    now: Optional[datetime] = None,
    enabled: Optional[bool] = None,
) -> InviteResult:
    """
    Старый путь «только по коду»: без токена и без проверки срока.
    Выключен, пока не выставлен LEGACY_CODE_JOIN_ENABLED=1 (или enabled=True).
    """
    if not (LEGACY_CODE_JOIN_ENABLED if enabled is None else enabled):
        return InviteResult.fail(ErrorCode.invalid_credential, "code_only_join_disabled")

    if user_id is None:
        return InviteResult.fail(ErrorCode.not_authenticated, "login_required")

    code = normalize_join_code(join_code)
    if not code:
        return InviteResult.fail(ErrorCode.invalid_input, "join_code_required")

    try:
        group = db.query(GameGroup).filter(GameGroup.join_code == code).first()
    except SQLAlchemyError:
        db.rollback()
        log.exception("join by code: lookup failed for join_code=%s", code)
        return InviteResult.fail(ErrorCode.store_failure, "join_failed")

    if group is None:
        log.warning("join by code: unknown join_code=%s", code)
        return InviteResult.fail(ErrorCode.invalid_credential, "invalid_join_code")

    return join_group(db, group.id, user_id, now=now, via="join_code")


def preview_invite(
    db: Session,
    join_code: Optional[str],
    invite_token: Optional[str],
    user_id: Optional[int],
    *,
    now: Optional[datetime] = None,
) -> InviteResult:
    """
    Данные для страницы вступления: какая группа, сколько участников, состоит ли уже пользователь.
    Ничего не пишет.
    """
    if user_id is None:
        return InviteResult.fail(ErrorCode.not_authenticated, "login_required")

    checked = verify_invite(db, join_code, invite_token, now=now)
    if not checked.ok:
        return checked

    try:
        checked.verified.member_count = count_members(db, checked.verified.group_id)
        checked.already_member = is_member(db, checked.verified.group_id, user_id)
    except SQLAlchemyError:
        db.rollback()
        log.exception("invite preview: membership lookup failed for group %s", checked.verified.group_id)
        return InviteResult.fail(ErrorCode.store_failure, "invite_lookup_failed")
    return checked
