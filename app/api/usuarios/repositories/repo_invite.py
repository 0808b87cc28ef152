from typing import List, Optional

from sqlalchemy.orm import Session

from app.api.usuarios.models.model_invite import InviteModel, InviteStatus


class InviteRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, invite_id: str) -> Optional[InviteModel]:
        return self.db.query(InviteModel).filter(InviteModel.id == invite_id).first()

    def get_by_token(self, token: str) -> Optional[InviteModel]:
        return self.db.query(InviteModel).filter(InviteModel.token == token).first()

    def get_pending_by_email(self, email: str) -> Optional[InviteModel]:
        return (
            self.db.query(InviteModel)
            .filter(
                InviteModel.email == email.strip(),
                InviteModel.status == InviteStatus.PENDING.value,
            )
            .first()
        )

    def list_pending(self) -> List[InviteModel]:
        return (
            self.db.query(InviteModel)
            .filter(InviteModel.status == InviteStatus.PENDING.value)
            .order_by(InviteModel.created_at.desc())
            .all()
        )

    def create(self, invite: InviteModel) -> InviteModel:
        self.db.add(invite)
        self.db.commit()
        self.db.refresh(invite)
        return invite

    def update(self, invite: InviteModel, data: dict) -> InviteModel:
        for key, value in data.items():
            setattr(invite, key, value)
        self.db.commit()
        self.db.refresh(invite)
        return invite

    def delete(self, invite: InviteModel) -> None:
        self.db.delete(invite)
        self.db.commit()
