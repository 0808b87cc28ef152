from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class QuickMessageCreate(BaseModel):
    # Validados no service (MISSING_FIELDS / INVALID_SHORTCUT_FORMAT / EMPTY_MESSAGE)
    shortcut: Any = None
    message_text: Any = None
    description: Optional[str] = None


class QuickMessageUpdate(BaseModel):
    shortcut: Any = None
    message_text: Any = None
    description: Optional[str] = None


class QuickMessageResponse(BaseModel):
    id: str
    shortcut: str
    message_text: str
    description: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
