# gamenight/services/results.py
# Значения-результаты workflow инвайтов: сервисы не бросают исключения
# для ожидаемых отказов, а возвращают InviteResult с кодом ошибки.

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from gamenight.models.group import GameGroup
from gamenight.models.group_member import GroupMember


class ErrorCode(str, enum.Enum):
    not_authenticated = "not_authenticated"
    not_found = "not_found"
    invalid_credential = "invalid_credential"
    expired = "expired"
    invalid_input = "invalid_input"
    store_failure = "store_failure"


@dataclass
class VerifiedGroup:
    group_id: int
    name: str
    join_code: str
    expires_at: datetime
    member_count: Optional[int] = None


@dataclass
class InviteInfo:
    """Данные для окна «Поделиться»: код, токен, срок и готовая ссылка."""
    group_id: int
    join_code: str
    invite_token: str
    expires_at: datetime
    is_expired: bool
    invite_url: Optional[str] = None


@dataclass
class InviteResult:
    """
    ok=False  → error заполнен, message: короткий машинный код причины.
    ok=True   → в зависимости от операции заполнены group / verified / invite / membership.
    already_member не ошибка, пользователь уже состоял в группе, новая запись не создавалась.
    """
    ok: bool
    error: Optional[ErrorCode] = None
    message: Optional[str] = None
    group: Optional[GameGroup] = None
    verified: Optional[VerifiedGroup] = None
    invite: Optional[InviteInfo] = None
    membership: Optional[GroupMember] = None
    already_member: bool = False

    @classmethod
    def fail(cls, error: ErrorCode, message: str) -> InviteResult:
        return cls(ok=False, error=error, message=message)
