from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MessageResponse(BaseModel):
    id: str
    instance_id: str
    contact_id: str
    message_id: str
    remote_jid: str
    from_me: bool
    message_type: str
    text_content: Optional[str] = None
    media_url: Optional[str] = None
    media_mime_type: Optional[str] = None
    media_size: Optional[int] = None
    media_filename: Optional[str] = None
    quoted_message_id: Optional[str] = None
    status: str
    timestamp: datetime
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessagePagination(BaseModel):
    hasMore: bool
    nextCursor: Optional[datetime] = None
    totalReturned: int
    requestedLimit: int


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]
    pagination: MessagePagination


class MessageSendRequest(BaseModel):
    # Campos validados no service (MISSING_REQUIRED_FIELDS / INVALID_INPUT)
    instance_id: Any = Field(None, alias="instanceId")
    contact_id: Any = Field(None, alias="contactId")
    message_type: Any = Field(None, alias="messageType")
    text_content: Any = Field(None, alias="textContent")
    audio_url: Any = Field(None, alias="audioUrl")
    quoted_message_id: Optional[str] = Field(None, alias="quotedMessageId")

    model_config = ConfigDict(populate_by_name=True)
