# gamenight/models/user.py

from sqlalchemy import Column, BigInteger, Integer, String, DateTime, func
from gamenight.db import Base


class User(Base):
    """
    Зарегистрированный пользователь. Идентичность приходит от Telegram WebApp
    (initData), здесь храним только то, что нужно для групп и сессий.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    telegram_id = Column(BigInteger, unique=True, nullable=False, index=True)
    username = Column(String, index=True, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    name = Column(String, index=True, nullable=True)  # Отображаемое имя
    created_at = Column(DateTime, nullable=False, default=func.now())
    updated_at = Column(DateTime, nullable=False, default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, telegram_id={self.telegram_id}, username={self.username}, name={self.name})>"
