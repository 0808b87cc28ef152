from __future__ import annotations

import enum
import uuid

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class MessageStatus(str, enum.Enum):
    RECEIVED = "received"
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    FAILED = "failed"


class WhatsAppMessageModel(Base):
    __tablename__ = "whatsapp_messages"
    __table_args__ = (
        UniqueConstraint("instance_id", "message_id", name="uq_whatsapp_messages_instance_message"),
        Index("idx_whatsapp_messages_contact_timestamp", "contact_id", "timestamp"),
        Index("idx_whatsapp_messages_message_id", "message_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instance_id = Column(String(36), ForeignKey("whatsapp_instances.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(String(36), ForeignKey("whatsapp_contacts.id", ondelete="CASCADE"), nullable=False)
    message_id = Column(String(255), nullable=False)
    remote_jid = Column(String(120), nullable=False)
    from_me = Column(Boolean, nullable=False, default=False)
    # text | audio | image | video | document | sticker | location | contact | other
    message_type = Column(String(20), nullable=False)
    text_content = Column(Text, nullable=True)
    media_url = Column(Text, nullable=True)
    media_mime_type = Column(String(120), nullable=True)
    media_size = Column(BigInteger, nullable=True)
    media_filename = Column(Text, nullable=True)
    quoted_message_id = Column(String(255), nullable=True)
    status = Column(String(20), nullable=False, default=MessageStatus.PENDING.value)
    timestamp = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
