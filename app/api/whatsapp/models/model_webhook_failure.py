from __future__ import annotations

import uuid

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


class WebhookFailureModel(Base):
    """
    Dead-letter de eventos do webhook que falharam no processamento.

    O webhook sempre responde 200 para a Evolution API; o evento fica aqui
    para reprocessamento posterior (`WebhookService.retry_failed_events`).
    """

    __tablename__ = "whatsapp_webhook_failures"
    __table_args__ = (
        Index("idx_whatsapp_webhook_failures_status", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(255), nullable=False)
    event = Column(String(64), nullable=False)
    instance_name = Column(String(120), nullable=False)
    payload = Column(JSON, nullable=False)
    last_error = Column(Text, nullable=True)
    attempts = Column(Integer, nullable=False, default=1)
    # pending | resolved | dead
    status = Column(String(20), nullable=False, default="pending")
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
