# gamenight/models/group_member.py
# Модель участника группы + уникальность (group_id, user_id) + роль admin|member

import enum

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint, DateTime, Enum, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..db import Base


class MemberRole(enum.Enum):
    admin = "admin"
    member = "member"


class GroupMember(Base):
    __tablename__ = "group_members"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("game_groups.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    role = Column(
        Enum(MemberRole, name="member_role"),
        nullable=False,
        default=MemberRole.member,
        server_default=text("'member'"),
    )
    joined_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Единственная настоящая защита от дублей при параллельных вступлениях
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_members_group_user"),
    )

    group = relationship("GameGroup", back_populates="members")
    user = relationship("User")
