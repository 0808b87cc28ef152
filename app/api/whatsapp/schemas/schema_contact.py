from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContactResponse(BaseModel):
    id: str
    instance_id: str
    remote_jid: str
    phone_number: str
    name: Optional[str] = None
    profile_picture_url: Optional[str] = None
    contact_type: str
    client_id: Optional[str] = None
    last_message_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    client_id: Optional[str] = None
    contact_type: Optional[str] = None


class MatchClientsRequest(BaseModel):
    instance_id: Optional[str] = Field(None, alias="instanceId")
    contact_id: Optional[str] = Field(None, alias="contactId")

    model_config = ConfigDict(populate_by_name=True)


class MatchClientsResult(BaseModel):
    processed: int
    matched: int
    errors: int
