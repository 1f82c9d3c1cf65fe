# gamenight/services/invite_codes.py
# Генерация инвайт-учётки группы: join code, токен и срок действия.

from __future__ import annotations

import os
import secrets
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from gamenight.models.group import JOIN_CODE_LENGTH

JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits

INVITE_TOKEN_TTL = timedelta(seconds=int(os.getenv("INVITE_TOKEN_TTL_SECONDS", "3600")))


def utc_now() -> datetime:
    """Текущее время в UTC (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(dt: datetime) -> datetime:
    """SQLite отдаёт naive datetime даже для DateTime(timezone=True), считаем его UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def generate_join_code(length: int = JOIN_CODE_LENGTH) -> str:
    return "".join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


def generate_invite_token() -> str:
    return str(uuid.uuid4())


def token_expiry(now: Optional[datetime] = None, ttl: timedelta = INVITE_TOKEN_TTL) -> datetime:
    return (now or utc_now()) + ttl


def normalize_join_code(raw: Optional[str]) -> Optional[str]:
    """Код вводится руками: обрезаем пробелы, приводим к верхнему регистру."""
    if not raw:
        return None
    code = raw.strip().upper()
    return code or None

