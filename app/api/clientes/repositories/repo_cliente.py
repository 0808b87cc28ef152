from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.clientes.models.model_cliente import ClienteModel


class ClienteRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, cliente_id: str) -> Optional[ClienteModel]:
        return self.db.query(ClienteModel).filter(ClienteModel.id == cliente_id).first()

    def list(self, search: Optional[str] = None) -> List[ClienteModel]:
        q = self.db.query(ClienteModel)
        if search:
            pattern = f"%{search.strip()}%"
            q = q.filter(or_(
                ClienteModel.name.ilike(pattern),
                ClienteModel.email.ilike(pattern),
                ClienteModel.phone.ilike(pattern),
            ))
        return q.order_by(ClienteModel.created_at.desc()).all()

    def get_by_document(self, document: str) -> Optional[ClienteModel]:
        return self.db.query(ClienteModel).filter(ClienteModel.document == document).first()

    def list_by_phones(self, phones: List[str]) -> List[ClienteModel]:
        if not phones:
            return []
        return self.db.query(ClienteModel).filter(ClienteModel.phone.in_(phones)).all()

    def list_with_phone(self) -> List[ClienteModel]:
        return self.db.query(ClienteModel).filter(ClienteModel.phone.isnot(None)).all()

    def create(self, cliente: ClienteModel) -> ClienteModel:
        self.db.add(cliente)
        self.db.commit()
        self.db.refresh(cliente)
        return cliente

    def update(self, cliente: ClienteModel, data: dict) -> ClienteModel:
        for key, value in data.items():
            setattr(cliente, key, value)
        self.db.commit()
        self.db.refresh(cliente)
        return cliente

    def delete(self, cliente: ClienteModel) -> None:
        self.db.delete(cliente)
        self.db.commit()
