from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_webhook_failure import WebhookFailureModel


class WebhookFailureRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_pending_by_event_id(self, event_id: str) -> Optional[WebhookFailureModel]:
        return (
            self.db.query(WebhookFailureModel)
            .filter(WebhookFailureModel.event_id == event_id, WebhookFailureModel.status == "pending")
            .first()
        )

    def list_pending(self, limit: int = 50) -> List[WebhookFailureModel]:
        return (
            self.db.query(WebhookFailureModel)
            .filter(WebhookFailureModel.status == "pending")
            .order_by(WebhookFailureModel.created_at.asc())
            .limit(limit)
            .all()
        )

    def create(self, failure: WebhookFailureModel) -> WebhookFailureModel:
        self.db.add(failure)
        self.db.commit()
        self.db.refresh(failure)
        return failure

    def update(self, failure: WebhookFailureModel, data: dict) -> WebhookFailureModel:
        for key, value in data.items():
            setattr(failure, key, value)
        self.db.commit()
        self.db.refresh(failure)
        return failure
