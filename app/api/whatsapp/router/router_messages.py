from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.api.whatsapp.schemas.schema_message import MessageListResponse, MessageResponse, MessageSendRequest
from app.api.whatsapp.services.dependencies import get_message_service
from app.api.whatsapp.services.service_message import MessageService
from app.core.authorization import AuthzContext, require_section
from app.core.sections import SectionKey

router = APIRouter(prefix="/api/whatsapp/messages", tags=["WhatsApp - Mensagens"])

atendimento_guard = require_section(SectionKey.ATENDIMENTO)


@router.get("", response_model=MessageListResponse)
def listar_mensagens(
    contact_id: Optional[str] = Query(None, alias="contactId"),
    limit: int = Query(50, ge=1, le=100),
    before: Optional[str] = Query(None, description="Cursor ISO-8601 (timestamp da mensagem mais antiga)"),
    service: MessageService = Depends(get_message_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.list_messages(contact_id, limit=limit, before=before)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def enviar_mensagem(
    payload: MessageSendRequest,
    service: MessageService = Depends(get_message_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return await service.send_message(payload.model_dump())
