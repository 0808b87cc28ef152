from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_quick_message import WhatsAppQuickMessageModel


class QuickMessageRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, quick_message_id: str) -> Optional[WhatsAppQuickMessageModel]:
        return (
            self.db.query(WhatsAppQuickMessageModel)
            .filter(WhatsAppQuickMessageModel.id == quick_message_id)
            .first()
        )

    def get_by_shortcut(self, shortcut: str, exclude_id: Optional[str] = None) -> Optional[WhatsAppQuickMessageModel]:
        q = self.db.query(WhatsAppQuickMessageModel).filter(WhatsAppQuickMessageModel.shortcut == shortcut)
        if exclude_id:
            q = q.filter(WhatsAppQuickMessageModel.id != exclude_id)
        return q.first()

    def list(self) -> List[WhatsAppQuickMessageModel]:
        return self.db.query(WhatsAppQuickMessageModel).order_by(WhatsAppQuickMessageModel.shortcut.asc()).all()

    def create(self, quick_message: WhatsAppQuickMessageModel) -> WhatsAppQuickMessageModel:
        self.db.add(quick_message)
        self.db.commit()
        self.db.refresh(quick_message)
        return quick_message

    def update(self, quick_message: WhatsAppQuickMessageModel, data: dict) -> WhatsAppQuickMessageModel:
        for key, value in data.items():
            setattr(quick_message, key, value)
        self.db.commit()
        self.db.refresh(quick_message)
        return quick_message

    def delete(self, quick_message: WhatsAppQuickMessageModel) -> None:
        self.db.delete(quick_message)
        self.db.commit()
