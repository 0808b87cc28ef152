import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class InviteCreate(BaseModel):
    email: Optional[str] = None
    group_id: Optional[str] = None


class InviteTokenRequest(BaseModel):
    token: Optional[str] = None


class InviteResponse(BaseModel):
    id: str
    email: str
    group_id: str
    group_name: Optional[str] = None
    expires_at: datetime
    status: str
    invited_by: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_model(cls, invite) -> "InviteResponse":
        data = cls.model_validate(invite)
        data.group_name = invite.group.name if invite.group else None
        return data


class InviteCreateResponse(BaseModel):
    invite: InviteResponse
    email_sent: bool


class InviteValidationData(BaseModel):
    email: str
    group_id: str
    group_name: Optional[str] = None
    expires_at: datetime


class InviteValidationResponse(BaseModel):
    valid: bool
    data: Optional[InviteValidationData] = None
