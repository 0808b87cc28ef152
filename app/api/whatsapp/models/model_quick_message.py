from __future__ import annotations

import uuid

from sqlalchemy import Column, DateTime, String, Text

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class WhatsAppQuickMessageModel(Base):
    """Mensagem rápida acionada por atalho (ex.: "/ola")."""

    __tablename__ = "whatsapp_quick_messages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    shortcut = Column(String(20), nullable=False, unique=True)
    message_text = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
