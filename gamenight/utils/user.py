# gamenight/utils/user.py

from typing import Optional


def get_display_name(
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    username: Optional[str] = None,
    telegram_id: Optional[int] = None,
) -> str:
    """
    Имя для списков участников и результатов партий:
    "Имя Фамилия" → username → Telegram ID.
    """
    full = " ".join(part.strip() for part in (first_name, last_name) if part and part.strip())
    if full:
        return full
    if username:
        return username
    return str(telegram_id) if telegram_id is not None else ""
