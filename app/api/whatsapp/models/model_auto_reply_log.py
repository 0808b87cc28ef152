from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class WhatsAppAutoReplyLogModel(Base):
    __tablename__ = "whatsapp_auto_reply_log"
    __table_args__ = (
        Index("idx_whatsapp_auto_reply_log_contact", "instance_id", "contact_id", "sent_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instance_id = Column(String(36), ForeignKey("whatsapp_instances.id", ondelete="CASCADE"), nullable=False)
    contact_id = Column(String(36), ForeignKey("whatsapp_contacts.id", ondelete="CASCADE"), nullable=False)
    message_sent = Column(Text, nullable=False)
    sent_at = Column(DateTime, nullable=False, default=utcnow)
