from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.api.clientes.schemas.schema_cliente import ClienteCreate, ClienteResponse, ClienteUpdate
from app.api.clientes.services.service_cliente import ClienteService
from app.core.authorization import AuthzContext, require_section
from app.core.sections import SectionKey
from app.database.db_connection import get_db

router = APIRouter(prefix="/api/clients", tags=["Clientes"])

clientes_guard = require_section(SectionKey.CLIENTES)


def get_service(db: Session = Depends(get_db)) -> ClienteService:
    return ClienteService(db)


@router.get("", response_model=List[ClienteResponse])
def listar_clientes(
    search: Optional[str] = Query(None),
    service: ClienteService = Depends(get_service),
    ctx: AuthzContext = Depends(clientes_guard),
):
    return service.list(search)


@router.get("/{cliente_id}", response_model=ClienteResponse)
def obter_cliente(
    cliente_id: str,
    service: ClienteService = Depends(get_service),
    ctx: AuthzContext = Depends(clientes_guard),
):
    return service.get(cliente_id)


@router.post("", response_model=ClienteResponse, status_code=status.HTTP_201_CREATED)
def criar_cliente(
    payload: ClienteCreate,
    service: ClienteService = Depends(get_service),
    ctx: AuthzContext = Depends(clientes_guard),
):
    return service.create(payload.model_dump(), created_by=ctx.user_id)


@router.put("/{cliente_id}", response_model=ClienteResponse)
def atualizar_cliente(
    cliente_id: str,
    payload: ClienteUpdate,
    service: ClienteService = Depends(get_service),
    ctx: AuthzContext = Depends(clientes_guard),
):
    return service.update(cliente_id, payload.model_dump(exclude_unset=True))


@router.delete("/{cliente_id}", status_code=status.HTTP_204_NO_CONTENT)
def excluir_cliente(
    cliente_id: str,
    service: ClienteService = Depends(get_service),
    ctx: AuthzContext = Depends(clientes_guard),
):
    service.delete(cliente_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
