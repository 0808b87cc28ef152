from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ClienteBase(BaseModel):
    document: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    type: Optional[str] = "company"
    notes: Optional[str] = None

    @field_validator("type")
    @classmethod
    def _validate_type(cls, v: Optional[str]):
        if v is not None and v not in ("company", "individual"):
            raise ValueError('type deve ser "company" ou "individual"')
        return v


class ClienteCreate(ClienteBase):
    # Obrigatoriedade validada no service (INVALID_INPUT)
    name: Optional[str] = None


class ClienteUpdate(ClienteBase):
    name: Optional[str] = None
    type: Optional[str] = None


class ClienteResponse(ClienteBase):
    id: str
    name: str
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
