from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_contact import WhatsAppContactModel


class ContactRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, contact_id: str) -> Optional[WhatsAppContactModel]:
        return self.db.query(WhatsAppContactModel).filter(WhatsAppContactModel.id == contact_id).first()

    def get_by_jid(self, instance_id: str, remote_jid: str) -> Optional[WhatsAppContactModel]:
        return (
            self.db.query(WhatsAppContactModel)
            .filter(
                WhatsAppContactModel.instance_id == instance_id,
                WhatsAppContactModel.remote_jid == remote_jid,
            )
            .first()
        )

    def list(self, instance_id: Optional[str] = None, search: Optional[str] = None) -> List[WhatsAppContactModel]:
        q = self.db.query(WhatsAppContactModel)
        if instance_id:
            q = q.filter(WhatsAppContactModel.instance_id == instance_id)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(
                WhatsAppContactModel.name.ilike(pattern),
                WhatsAppContactModel.phone_number.ilike(pattern),
            ))
        return (
            q.order_by(
                WhatsAppContactModel.last_message_at.is_(None),
                WhatsAppContactModel.last_message_at.desc(),
                WhatsAppContactModel.created_at.desc(),
            )
            .all()
        )

    def list_unmatched(self, instance_id: Optional[str] = None) -> List[WhatsAppContactModel]:
        q = self.db.query(WhatsAppContactModel).filter(
            WhatsAppContactModel.client_id.is_(None),
            WhatsAppContactModel.phone_number.isnot(None),
            WhatsAppContactModel.phone_number != "",
        )
        if instance_id:
            q = q.filter(WhatsAppContactModel.instance_id == instance_id)
        return q.order_by(WhatsAppContactModel.created_at.asc()).all()

    def create(self, contact: WhatsAppContactModel) -> WhatsAppContactModel:
        self.db.add(contact)
        self.db.commit()
        self.db.refresh(contact)
        return contact

    def update(self, contact: WhatsAppContactModel, data: dict) -> WhatsAppContactModel:
        for key, value in data.items():
            setattr(contact, key, value)
        self.db.commit()
        self.db.refresh(contact)
        return contact
