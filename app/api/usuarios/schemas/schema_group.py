from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict


class GroupCreate(BaseModel):
    # Validado no service (INVALID_NAME / INVALID_NAME_LENGTH)
    name: Any = None
    description: Optional[str] = None


class GroupUpdate(BaseModel):
    name: Any = None
    description: Optional[str] = None


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    is_default: bool
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user_count: int = 0

    model_config = ConfigDict(from_attributes=True)


class GroupSummary(BaseModel):
    id: str
    name: str

    model_config = ConfigDict(from_attributes=True)


class PermissionEntry(BaseModel):
    section_key: str
    section_label: str
    can_view: bool
    can_create: bool
    can_edit: bool
    can_delete: bool


class GroupPermissionsResponse(BaseModel):
    group_id: str
    group_name: str
    permissions: List[PermissionEntry]


class GroupPermissionsUpdate(BaseModel):
    # Lista de {section_key, can_view, can_create, can_edit, can_delete}; validada no service
    permissions: Any = None
