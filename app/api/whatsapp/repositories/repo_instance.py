from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_instance import WhatsAppInstanceModel


class InstanceRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, instance_id: str) -> Optional[WhatsAppInstanceModel]:
        return self.db.query(WhatsAppInstanceModel).filter(WhatsAppInstanceModel.id == instance_id).first()

    def get_by_name(self, instance_name: str) -> Optional[WhatsAppInstanceModel]:
        return (
            self.db.query(WhatsAppInstanceModel)
            .filter(WhatsAppInstanceModel.instance_name == instance_name)
            .first()
        )

    def list(self) -> List[WhatsAppInstanceModel]:
        return self.db.query(WhatsAppInstanceModel).order_by(WhatsAppInstanceModel.created_at.desc()).all()

    def create(self, instance: WhatsAppInstanceModel) -> WhatsAppInstanceModel:
        self.db.add(instance)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def update(self, instance: WhatsAppInstanceModel, data: dict) -> WhatsAppInstanceModel:
        for key, value in data.items():
            setattr(instance, key, value)
        self.db.commit()
        self.db.refresh(instance)
        return instance

    def delete(self, instance: WhatsAppInstanceModel) -> None:
        self.db.delete(instance)
        self.db.commit()
