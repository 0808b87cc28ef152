from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class DaySchedule(BaseModel):
    enabled: bool
    start: str
    end: str


class InstanceSettingsResponse(BaseModel):
    id: str
    instance_id: str
    reject_calls: bool
    reject_call_message: Optional[str] = None
    ignore_groups: bool
    always_online: bool
    read_messages: bool
    read_status: bool
    auto_reply_enabled: bool
    auto_reply_message: Optional[str] = None
    availability_schedule: Dict[str, DaySchedule]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InstanceSettingsUpdate(BaseModel):
    reject_calls: Optional[bool] = None
    reject_call_message: Optional[str] = None
    ignore_groups: Optional[bool] = None
    always_online: Optional[bool] = None
    read_messages: Optional[bool] = None
    read_status: Optional[bool] = None
    auto_reply_enabled: Optional[bool] = None
    auto_reply_message: Optional[str] = None
    # Validado no service (INVALID_INPUT), aceita dias parciais
    availability_schedule: Any = None
