# gamenight/routers/group_invites.py
# РОУТЕР ИНВАЙТОВ ГРУПП
# -----------------------------------------------------------------------------
# Тонкий слой над сервисами: собрать вход, вызвать сервис, перевести результат в JSON/HTTP.

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Path
from sqlalchemy.orm import Session

from gamenight.db import get_db
from gamenight.schemas.group_invite import (
    GroupCreate,
    GroupIssuedOut,
    InviteCredentials,
    InviteOut,
    InvitePreviewOut,
    JoinByCode,
    JoinOut,
)
from gamenight.services.group_invites import get_invite, issue_group, regenerate_invite
from gamenight.services.group_membership import join_by_code, join_with_token, preview_invite
from gamenight.services.results import InviteResult
from gamenight.utils.errors import raise_for_result
from gamenight.utils.telegram_dep import get_current_user_id

router = APIRouter()


def _join_out(result: InviteResult) -> JoinOut:
    return JoinOut(
        group_id=result.membership.group_id,
        already_member=result.already_member,
        role=result.membership.role.value,
    )


@router.post("", response_model=GroupIssuedOut, status_code=201)
def create_group(
    payload: GroupCreate,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """Создать группу: создатель становится admin, сразу выдаётся инвайт на 1 час."""
    result = issue_group(db, payload.name, user_id)
    raise_for_result(result)
    return GroupIssuedOut(
        id=result.group.id,
        name=result.group.name,
        created_by=result.group.created_by,
        invite=InviteOut.model_validate(result.invite),
    )


@router.get("/{group_id}/invite", response_model=InviteOut)
def read_group_invite(
    group_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """Текущий код, токен, срок и ссылка. Только для участников."""
    result = get_invite(db, group_id, user_id)
    raise_for_result(result)
    return InviteOut.model_validate(result.invite)


@router.post("/{group_id}/invite/regenerate", response_model=InviteOut)
def regenerate_group_invite(
    group_id: int = Path(..., ge=1),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """Перевыпустить токен: старая ссылка перестаёт работать сразу."""
    result = regenerate_invite(db, group_id, user_id)
    raise_for_result(result)
    return InviteOut.model_validate(result.invite)


@router.post("/invite/preview", response_model=InvitePreviewOut)
def preview_group_invite(
    credentials: InviteCredentials,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """Данные для страницы вступления: группа, число участников, уже ли участник."""
    result = preview_invite(db, credentials.join_code, credentials.token, user_id)
    raise_for_result(result)
    v = result.verified
    return InvitePreviewOut(
        group_id=v.group_id,
        name=v.name,
        join_code=v.join_code,
        expires_at=v.expires_at,
        member_count=v.member_count or 0,
        already_member=result.already_member,
    )


@router.post("/invite/accept", response_model=JoinOut)
def accept_group_invite(
    credentials: InviteCredentials,
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """
    Вступить по ссылке (join_code + token). Повторный вызов не ошибка:
    ответ тот же, но already_member=true.
    """
    result = join_with_token(db, credentials.join_code, credentials.token, user_id)
    raise_for_result(result)
    return _join_out(result)


@router.post("/join", response_model=JoinOut)
def join_group_by_code(
    payload: JoinByCode = Body(...),
    db: Session = Depends(get_db),
    user_id: Optional[int] = Depends(get_current_user_id),
):
    """Старый вход только по коду (без токена и срока). Работает при LEGACY_CODE_JOIN_ENABLED=1."""
    result = join_by_code(db, payload.join_code, user_id)
    raise_for_result(result)
    return _join_out(result)
