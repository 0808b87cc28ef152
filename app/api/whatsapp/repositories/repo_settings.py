from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_auto_reply_log import WhatsAppAutoReplyLogModel
from app.api.whatsapp.models.model_instance_settings import WhatsAppInstanceSettingsModel


class InstanceSettingsRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_instance(self, instance_id: str) -> Optional[WhatsAppInstanceSettingsModel]:
        return (
            self.db.query(WhatsAppInstanceSettingsModel)
            .filter(WhatsAppInstanceSettingsModel.instance_id == instance_id)
            .first()
        )

    def create(self, settings: WhatsAppInstanceSettingsModel) -> WhatsAppInstanceSettingsModel:
        self.db.add(settings)
        self.db.commit()
        self.db.refresh(settings)
        return settings

    def update(self, settings: WhatsAppInstanceSettingsModel, data: dict) -> WhatsAppInstanceSettingsModel:
        for key, value in data.items():
            setattr(settings, key, value)
        self.db.commit()
        self.db.refresh(settings)
        return settings

    # ───────────── Log de resposta automática ─────────────
    def last_auto_reply_since(
        self, instance_id: str, contact_id: str, since: datetime
    ) -> Optional[WhatsAppAutoReplyLogModel]:
        return (
            self.db.query(WhatsAppAutoReplyLogModel)
            .filter(
                WhatsAppAutoReplyLogModel.instance_id == instance_id,
                WhatsAppAutoReplyLogModel.contact_id == contact_id,
                WhatsAppAutoReplyLogModel.sent_at >= since,
            )
            .order_by(WhatsAppAutoReplyLogModel.sent_at.desc())
            .first()
        )

    def log_auto_reply(self, instance_id: str, contact_id: str, message: str) -> WhatsAppAutoReplyLogModel:
        row = WhatsAppAutoReplyLogModel(instance_id=instance_id, contact_id=contact_id, message_sent=message)
        self.db.add(row)
        self.db.commit()
        return row
