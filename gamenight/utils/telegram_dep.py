# gamenight/utils/telegram_dep.py
"""
Идентификация пользователя через Telegram WebApp initData.
- validate_and_sync_user: валидация initData + создание/обновление пользователя в БД
- get_current_user_id: FastAPI-зависимость; отдаёт id пользователя или None,
  если initData не пришёл (сервисы сами вернут not_authenticated)
"""

import logging
import os
from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from gamenight.db import get_db
from gamenight.models.user import User
from gamenight.utils.user import get_display_name
from telegram_webapp_auth.auth import TelegramAuthenticator, generate_secret_key

log = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def _authenticator() -> TelegramAuthenticator:
    token = os.environ.get("TELEGRAM_BOT_TOKEN")
    if not token:
        raise RuntimeError("TELEGRAM_BOT_TOKEN is not set")
    return TelegramAuthenticator(generate_secret_key(token))


def _get_init_data_from_request(request: Request) -> Optional[str]:
    """initData берём из заголовка 'x-telegram-initdata' или из query (?init_data=...)."""
    header_v = request.headers.get("x-telegram-initdata")
    if header_v:
        return header_v
    return request.query_params.get("init_data") or None


def validate_and_sync_user(init_data: str, db: Session) -> User:
    """
    Валидирует initData, находит или регистрирует пользователя и обновляет профиль.
    """
    authenticator = _authenticator()
    try:
        result = authenticator.validate(init_data)
    except Exception as e:
        log.warning("telegram auth rejected initData: %s", e)
        raise HTTPException(status_code=401, detail={"code": "not_authenticated", "message": "bad_init_data"})

    tg_user = result.user
    first_name = getattr(tg_user, "first_name", None)
    last_name = getattr(tg_user, "last_name", None)
    username = getattr(tg_user, "username", None)

    user: Optional[User] = db.query(User).filter_by(telegram_id=tg_user.id).first()
    if user is None:
        user = User(telegram_id=tg_user.id)
        db.add(user)

    user.first_name = first_name
    user.last_name = last_name
    user.username = username
    user.name = get_display_name(first_name, last_name, username, tg_user.id)

    if db.new or db.is_modified(user):
        db.commit()
        db.refresh(user)
    return user


def get_current_user_id(request: Request, db: Session = Depends(get_db)) -> Optional[int]:
    init_data = _get_init_data_from_request(request)
    if not init_data:
        return None
    return validate_and_sync_user(init_data, db).id
