from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from app.api.usuarios.schemas.schema_group import GroupSummary


class UserResponse(BaseModel):
    id: str
    auth_user_id: str
    email: str
    full_name: str
    avatar_url: Optional[str] = None
    group_id: Optional[str] = None
    status: str
    last_access: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    group: Optional[GroupSummary] = None

    model_config = ConfigDict(from_attributes=True)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: Pagination


class UserUpdate(BaseModel):
    """Campos ausentes não são alterados; `group_id: null` remove o grupo."""

    group_id: Optional[str] = None
    status: Optional[str] = None


class MeResponse(BaseModel):
    user: UserResponse
    group: Optional[GroupSummary] = None
    permissions: Dict[str, Dict[str, bool]]
    is_admin: bool


class UserSyncRequest(BaseModel):
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
