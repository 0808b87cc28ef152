from typing import List

from fastapi import APIRouter, Depends, Response, status

from app.api.whatsapp.schemas.schema_quick_message import (
    QuickMessageCreate,
    QuickMessageResponse,
    QuickMessageUpdate,
)
from app.api.whatsapp.services.dependencies import get_quick_message_service
from app.api.whatsapp.services.service_quick_message import QuickMessageService
from app.core.authorization import AuthzContext, require_section
from app.core.sections import SectionKey

router = APIRouter(prefix="/api/whatsapp/quick-messages", tags=["WhatsApp - Mensagens rápidas"])

atendimento_guard = require_section(SectionKey.ATENDIMENTO)


@router.get("", response_model=List[QuickMessageResponse])
def listar_mensagens_rapidas(
    service: QuickMessageService = Depends(get_quick_message_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.list()


@router.get("/{quick_message_id}", response_model=QuickMessageResponse)
def obter_mensagem_rapida(
    quick_message_id: str,
    service: QuickMessageService = Depends(get_quick_message_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.get(quick_message_id)


@router.post("", response_model=QuickMessageResponse, status_code=status.HTTP_201_CREATED)
def criar_mensagem_rapida(
    payload: QuickMessageCreate,
    service: QuickMessageService = Depends(get_quick_message_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.create(payload.model_dump(), created_by=ctx.user_id)


@router.put("/{quick_message_id}", response_model=QuickMessageResponse)
def atualizar_mensagem_rapida(
    quick_message_id: str,
    payload: QuickMessageUpdate,
    service: QuickMessageService = Depends(get_quick_message_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.update(quick_message_id, payload.model_dump(exclude_unset=True))


@router.delete("/{quick_message_id}", status_code=status.HTTP_204_NO_CONTENT)
def excluir_mensagem_rapida(
    quick_message_id: str,
    service: QuickMessageService = Depends(get_quick_message_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    service.delete(quick_message_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
