from __future__ import annotations

import enum
import uuid

from sqlalchemy import Column, DateTime, Index, String, Text

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class InstanceStatus(str, enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    QR_CODE = "qr_code"


class WhatsAppInstanceModel(Base):
    """Instância WhatsApp registrada na Evolution API."""

    __tablename__ = "whatsapp_instances"
    __table_args__ = (
        Index("idx_whatsapp_instances_status", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instance_name = Column(String(120), nullable=False, unique=True)
    instance_token = Column(Text, nullable=False)
    phone_number = Column(String(32), nullable=True)
    display_name = Column(String(255), nullable=False)
    status = Column(String(20), nullable=False, default=InstanceStatus.DISCONNECTED.value)
    qr_code = Column(Text, nullable=True)
    qr_code_updated_at = Column(DateTime, nullable=True)
    webhook_url = Column(Text, nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    connected_at = Column(DateTime, nullable=True)
    last_seen_at = Column(DateTime, nullable=True)
