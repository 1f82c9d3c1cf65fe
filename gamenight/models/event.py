# gamenight/models/event.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from gamenight.db import Base


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)

    # кто совершил действие
    actor_id = Column(Integer, nullable=False)

    # к какой группе относится
    group_id = Column(Integer, nullable=True)

    # над кем действие (например, кто вступил), может быть NULL
    target_user_id = Column(Integer, nullable=True)

    # тип события
    type = Column(String(64), nullable=False)

    # произвольные данные события; JSONB на PostgreSQL, JSON на SQLite
    data = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True, default={})

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<Event id={self.id} type={self.type} actor={self.actor_id} group={self.group_id}>"
