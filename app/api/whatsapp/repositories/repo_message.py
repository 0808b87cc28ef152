from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_message import WhatsAppMessageModel


class MessageRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, message_pk: str) -> Optional[WhatsAppMessageModel]:
        return self.db.query(WhatsAppMessageModel).filter(WhatsAppMessageModel.id == message_pk).first()

    def get_by_message_id(self, instance_id: str, message_id: str) -> Optional[WhatsAppMessageModel]:
        return (
            self.db.query(WhatsAppMessageModel)
            .filter(
                WhatsAppMessageModel.instance_id == instance_id,
                WhatsAppMessageModel.message_id == message_id,
            )
            .first()
        )

    def list_page(self, contact_id: str, limit: int, before: Optional[datetime] = None) -> List[WhatsAppMessageModel]:
        """Mensagens do contato em ordem decrescente de timestamp (até `limit` linhas)."""
        q = self.db.query(WhatsAppMessageModel).filter(WhatsAppMessageModel.contact_id == contact_id)
        if before is not None:
            q = q.filter(WhatsAppMessageModel.timestamp < before)
        return (
            q.order_by(WhatsAppMessageModel.timestamp.desc(), WhatsAppMessageModel.created_at.desc())
            .limit(limit)
            .all()
        )

    def create(self, message: WhatsAppMessageModel) -> WhatsAppMessageModel:
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return message

    def update(self, message: WhatsAppMessageModel, data: dict) -> WhatsAppMessageModel:
        for key, value in data.items():
            setattr(message, key, value)
        self.db.commit()
        self.db.refresh(message)
        return message
