from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from app.api.usuarios.models.model_user import UserModel
from app.api.whatsapp.services.dependencies import get_webhook_service
from app.api.whatsapp.services.service_webhook import (
    WebhookService,
    get_webhook_secret,
    parse_webhook_body,
    verify_signature,
)
from app.core.admin_dependencies import require_admin
from app.core.exceptions import ApiError
from app.utils.logger import logger
from app.utils.security import SECURITY_HEADERS

router = APIRouter(prefix="/api/webhooks/evolution", tags=["Webhooks"])


@router.post("")
async def receber_evento(
    request: Request,
    secret: Optional[str] = Depends(get_webhook_secret),
    service: WebhookService = Depends(get_webhook_service),
):
    """
    Recebe eventos da Evolution API.

    Rejeições (assinatura, JSON, payload) respondem 4xx; eventos aceitos
    respondem sempre 200, mesmo quando o processamento falha e vai para o dead-letter.
    """
    raw_body = await request.body()
    try:
        verify_signature(raw_body, request.headers, secret)
        event = parse_webhook_body(raw_body)
    except ApiError as e:
        logger.warning("[WEBHOOK] Requisição rejeitada: %s %s", e.code, e.error)
        return JSONResponse(status_code=e.status_code, content=e.to_dict(), headers=SECURITY_HEADERS)

    logger.info("[WEBHOOK] Evento recebido: %s instance=%s", event.event, event.instance)
    result = await service.handle(event)
    return JSONResponse(status_code=status.HTTP_200_OK, content=result, headers=SECURITY_HEADERS)


@router.get("")
def health_check():
    return JSONResponse(content={"status": "ok"}, headers=SECURITY_HEADERS)


@router.post("/retry-failed")
async def reprocessar_falhas(
    limit: int = Query(50, ge=1, le=500),
    service: WebhookService = Depends(get_webhook_service),
    admin: UserModel = Depends(require_admin),
):
    """Reprocessa os eventos pendentes do dead-letter (apenas administradores)."""
    return await service.retry_failed_events(limit)
