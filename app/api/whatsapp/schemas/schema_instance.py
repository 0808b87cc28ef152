from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class InstanceCreate(BaseModel):
    # Obrigatoriedade validada no service (INVALID_INPUT)
    display_name: Any = Field(None, alias="displayName")

    model_config = ConfigDict(populate_by_name=True)


class InstanceResponse(BaseModel):
    id: str
    instance_name: str
    display_name: str
    phone_number: Optional[str] = None
    status: str
    qr_code: Optional[str] = None
    qr_code_updated_at: Optional[datetime] = None
    webhook_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    connected_at: Optional[datetime] = None
    last_seen_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InstanceConnectResponse(BaseModel):
    instance: InstanceResponse
    qr_code: Optional[str] = None
    status: str
