from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, UniqueConstraint

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class WhatsAppContactModel(Base):
    __tablename__ = "whatsapp_contacts"
    __table_args__ = (
        UniqueConstraint("instance_id", "remote_jid", name="uq_whatsapp_contacts_instance_jid"),
        Index("idx_whatsapp_contacts_phone", "phone_number"),
        Index("idx_whatsapp_contacts_client", "client_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instance_id = Column(String(36), ForeignKey("whatsapp_instances.id", ondelete="CASCADE"), nullable=False)
    remote_jid = Column(String(120), nullable=False)
    phone_number = Column(String(32), nullable=False)
    name = Column(String(255), nullable=True)
    profile_picture_url = Column(Text, nullable=True)
    # cliente | lead | profissional | prestador | unknown
    contact_type = Column(String(20), nullable=False, default="unknown")
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True)
    last_message_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
