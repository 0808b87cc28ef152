from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from app.api.whatsapp.schemas.schema_contact import (
    ContactResponse,
    ContactUpdate,
    MatchClientsRequest,
    MatchClientsResult,
)
from app.api.whatsapp.services.dependencies import get_whatsapp_service
from app.api.whatsapp.services.service_whatsapp import WhatsAppService
from app.core.authorization import AuthzContext, require_section
from app.core.sections import SectionKey

router = APIRouter(prefix="/api/whatsapp", tags=["WhatsApp - Contatos"])

atendimento_guard = require_section(SectionKey.ATENDIMENTO)


@router.get("/contacts", response_model=List[ContactResponse])
def listar_contatos(
    instance_id: Optional[str] = Query(None, alias="instanceId"),
    search: Optional[str] = Query(None),
    service: WhatsAppService = Depends(get_whatsapp_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.list_contacts(instance_id, search)


@router.put("/contacts/{contact_id}", response_model=ContactResponse)
def atualizar_contato(
    contact_id: str,
    payload: ContactUpdate,
    service: WhatsAppService = Depends(get_whatsapp_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.update_contact(contact_id, payload.model_dump(exclude_unset=True))


@router.post("/match-clients", response_model=MatchClientsResult)
def vincular_clientes(
    payload: Optional[MatchClientsRequest] = None,
    service: WhatsAppService = Depends(get_whatsapp_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    """Vincula contatos a clientes pelo telefone (um contato específico ou todos os pendentes)."""
    payload = payload or MatchClientsRequest()
    if payload.contact_id:
        return service.match_specific_contact(payload.contact_id)
    return service.run_automatic_client_matching(payload.instance_id)
