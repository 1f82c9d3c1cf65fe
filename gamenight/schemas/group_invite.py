# gamenight/schemas/group_invite.py
# -----------------------------------------------------------------------------
# СХЕМЫ Pydantic: инвайты и вступление в группу
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class GroupCreate(BaseModel):
    name: str = Field(..., description="Название группы")


class InviteCredentials(BaseModel):
    join_code: Optional[str] = Field(None, description="Код группы (регистр не важен)")
    token: Optional[str] = Field(None, description="Инвайт-токен из ссылки")


class JoinByCode(BaseModel):
    join_code: Optional[str] = Field(None, description="Код группы (регистр не важен)")


class InviteOut(BaseModel):
    group_id: int
    join_code: str
    invite_token: str
    expires_at: datetime
    is_expired: bool = False
    invite_url: Optional[str] = Field(None, description="Готовая ссылка, если задан PUBLIC_BASE_URL")

    class Config:
        from_attributes = True


class GroupIssuedOut(BaseModel):
    id: int
    name: str
    created_by: int
    invite: InviteOut


class InvitePreviewOut(BaseModel):
    group_id: int
    name: str
    join_code: str
    expires_at: datetime
    member_count: int
    already_member: bool


class JoinOut(BaseModel):
    success: bool = True
    group_id: int
    already_member: bool = False
    role: str
