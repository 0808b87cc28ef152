from __future__ import annotations

import uuid

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text

from app.database.db_connection import Base
from app.utils.database_utils import utcnow


def default_availability_schedule() -> dict:
    weekday = {"enabled": True, "start": "08:00", "end": "18:00"}
    weekend = {"enabled": False, "start": "08:00", "end": "12:00"}
    return {
        "monday": dict(weekday),
        "tuesday": dict(weekday),
        "wednesday": dict(weekday),
        "thursday": dict(weekday),
        "friday": dict(weekday),
        "saturday": dict(weekend),
        "sunday": dict(weekend),
    }


class WhatsAppInstanceSettingsModel(Base):
    __tablename__ = "whatsapp_instance_settings"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    instance_id = Column(
        String(36),
        ForeignKey("whatsapp_instances.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    reject_calls = Column(Boolean, nullable=False, default=False)
    reject_call_message = Column(Text, nullable=True)
    ignore_groups = Column(Boolean, nullable=False, default=True)
    always_online = Column(Boolean, nullable=False, default=False)
    read_messages = Column(Boolean, nullable=False, default=False)
    read_status = Column(Boolean, nullable=False, default=False)
    auto_reply_enabled = Column(Boolean, nullable=False, default=False)
    auto_reply_message = Column(Text, nullable=True)
    availability_schedule = Column(JSON, nullable=False, default=default_availability_schedule)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
