from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.api.clientes.models.model_cliente import ClienteModel
from app.api.clientes.repositories.repo_cliente import ClienteRepository
from app.core.exceptions import bad_request, conflict, not_found
from app.utils.database_utils import require_uuid
from app.utils.telefone import normalize_phone_number


class ClienteService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ClienteRepository(db)

    def list(self, search: Optional[str] = None) -> List[ClienteModel]:
        return self.repo.list(search)

    def get(self, cliente_id: str) -> ClienteModel:
        require_uuid(cliente_id, "ID de cliente inválido")
        cliente = self.repo.get(cliente_id)
        if not cliente:
            raise not_found("CLIENT_NOT_FOUND", "Cliente não encontrado")
        return cliente

    def _normalize(self, data: Dict[str, Any], cliente_id: Optional[str] = None) -> Dict[str, Any]:
        if data.get("phone"):
            phone = normalize_phone_number(data["phone"])
            if phone is None:
                raise bad_request("INVALID_PHONE", "Telefone inválido")
            data["phone"] = phone
        if "document" in data:
            document = (data["document"] or "").strip() or None
            if document:
                existing = self.repo.get_by_document(document)
                if existing and existing.id != cliente_id:
                    raise conflict("DOCUMENT_EXISTS", "Já existe um cliente com este documento")
            data["document"] = document
        return data

    def create(self, data: Dict[str, Any], created_by: str) -> ClienteModel:
        name = (data.get("name") or "").strip()
        if not name:
            raise bad_request("INVALID_INPUT", "Nome do cliente é obrigatório")
        data = self._normalize({**data, "name": name})
        return self.repo.create(ClienteModel(**data, created_by=created_by))

    def update(self, cliente_id: str, data: Dict[str, Any]) -> ClienteModel:
        cliente = self.get(cliente_id)
        if "name" in data:
            name = (data.get("name") or "").strip()
            if not name:
                raise bad_request("INVALID_INPUT", "Nome do cliente é obrigatório")
            data["name"] = name
        return self.repo.update(cliente, self._normalize(data, cliente.id))

    def delete(self, cliente_id: str) -> None:
        self.repo.delete(self.get(cliente_id))
