from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import status
from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_instance import InstanceStatus
from app.api.whatsapp.models.model_message import MessageStatus, WhatsAppMessageModel
from app.api.whatsapp.repositories.repo_contact import ContactRepository
from app.api.whatsapp.repositories.repo_instance import InstanceRepository
from app.api.whatsapp.repositories.repo_message import MessageRepository
from app.api.whatsapp.services.service_whatsapp import WhatsAppService
from app.core.exceptions import ApiError, bad_request, not_found
from app.core.rate_limiter import MessageRateLimiter
from app.integrations.evolution.client import EvolutionApiClient
from app.utils.database_utils import is_valid_uuid, require_uuid, utcnow
from app.utils.logger import logger
from app.utils.security import validate_message_content

MESSAGE_TYPES = ("text", "audio")


def parse_cursor(before: Optional[str]) -> Optional[datetime]:
    """Cursor ISO-8601 → datetime UTC naive (400 INVALID_CURSOR)."""
    if not before:
        return None
    try:
        parsed = datetime.fromisoformat(before.replace("Z", "+00:00"))
    except ValueError:
        raise bad_request("INVALID_CURSOR", "Formato de cursor inválido", {"cursor": before})
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


class MessageService:
    def __init__(
        self,
        db: Session,
        evolution: EvolutionApiClient,
        rate_limiter: MessageRateLimiter,
        whatsapp: WhatsAppService,
    ):
        self.db = db
        self.evolution = evolution
        self.rate_limiter = rate_limiter
        self.whatsapp = whatsapp
        self.repo = MessageRepository(db)
        self.contact_repo = ContactRepository(db)
        self.instance_repo = InstanceRepository(db)

    def list_messages(self, contact_id: Optional[str], limit: int = 50, before: Optional[str] = None) -> Dict[str, Any]:
        """
        Paginação por cursor (timestamp): busca `limit + 1` em ordem decrescente
        para saber se há mais, e devolve a página em ordem cronológica.
        `nextCursor` é o timestamp da mensagem mais antiga retornada.
        """
        if not contact_id:
            raise bad_request("MISSING_REQUIRED_FIELDS", "contactId é obrigatório", {"missingFields": ["contactId"]})
        require_uuid(contact_id, "ID de contato inválido")
        cursor = parse_cursor(before)

        if not self.contact_repo.get(contact_id):
            raise not_found("CONTACT_NOT_FOUND", "Contato não encontrado")

        rows = self.repo.list_page(contact_id, limit + 1, cursor)
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = page[-1].timestamp if has_more and page else None

        return {
            "messages": list(reversed(page)),
            "pagination": {
                "hasMore": has_more,
                "nextCursor": next_cursor,
                "totalReturned": len(page),
                "requestedLimit": limit,
            },
        }

    async def send_message(self, data: Dict[str, Any]) -> WhatsAppMessageModel:
        instance_id = data.get("instance_id")
        contact_id = data.get("contact_id")
        message_type = data.get("message_type")

        missing = [
            name for name, value in (
                ("instanceId", instance_id), ("contactId", contact_id), ("messageType", message_type)
            ) if not value
        ]
        if missing:
            raise bad_request("MISSING_REQUIRED_FIELDS", "Campos obrigatórios ausentes", {"missingFields": missing})
        if message_type not in MESSAGE_TYPES:
            raise bad_request(
                "INVALID_INPUT",
                "messageType deve ser text ou audio",
                {"field": "messageType", "validValues": list(MESSAGE_TYPES)},
            )

        text_content = data.get("text_content")
        audio_url = data.get("audio_url")
        if message_type == "text" and not text_content:
            raise bad_request("MISSING_REQUIRED_FIELDS", "textContent é obrigatório", {"missingFields": ["textContent"]})
        if message_type == "audio" and not audio_url:
            raise bad_request("MISSING_REQUIRED_FIELDS", "audioUrl é obrigatório", {"missingFields": ["audioUrl"]})
        if not is_valid_uuid(instance_id) or not is_valid_uuid(contact_id):
            raise bad_request("INVALID_ID", "ID de instância ou contato inválido")

        if not self.rate_limiter.can_send(str(instance_id)):
            reset_ms = self.rate_limiter.get_reset_time_ms(str(instance_id))
            raise ApiError(
                status.HTTP_429_TOO_MANY_REQUESTS,
                "SERVICE_UNAVAILABLE",
                "Limite de envio excedido. Aguarde antes de enviar outra mensagem.",
                {
                    "resetTimeMs": reset_ms,
                    "resetTimeSeconds": math.ceil(reset_ms / 1000),
                    "limit": "1 mensagem por segundo por instância",
                },
            )

        if message_type == "text":
            validation = validate_message_content(text_content, "text")
            if not validation.is_valid:
                raise bad_request("VALIDATION_ERROR", "Conteúdo da mensagem inválido", {"errors": validation.errors})
            text_content = validation.sanitized_content

        instance = self.instance_repo.get(instance_id)
        if not instance:
            raise not_found("INSTANCE_NOT_FOUND", "Instância não encontrada")
        contact = self.contact_repo.get(contact_id)
        if not contact:
            raise not_found("CONTACT_NOT_FOUND", "Contato não encontrado")
        if contact.instance_id != instance.id:
            raise bad_request("INVALID_CONTACT", "Contato não pertence à instância informada")
        if instance.status != InstanceStatus.CONNECTED.value:
            raise bad_request("INSTANCE_NOT_CONNECTED", "Instância não está conectada", {"status": instance.status})

        if message_type == "text":
            text_content = self.whatsapp.replace_message_variables(text_content, contact)

        now = utcnow()
        # gravada (commit) como pending antes da chamada externa
        message = self.repo.create(WhatsAppMessageModel(
            instance_id=instance.id,
            contact_id=contact.id,
            message_id=f"local_{uuid.uuid4().hex}",
            remote_jid=contact.remote_jid,
            from_me=True,
            message_type=message_type,
            text_content=text_content if message_type == "text" else None,
            media_url=audio_url if message_type == "audio" else None,
            media_mime_type="audio/ogg" if message_type == "audio" else None,
            quoted_message_id=data.get("quoted_message_id"),
            status=MessageStatus.PENDING.value,
            timestamp=now,
        ))

        try:
            if message_type == "text":
                response = await self.evolution.send_text_message(instance.instance_name, contact.remote_jid, text_content)
            else:
                response = await self.evolution.send_audio_message(instance.instance_name, contact.remote_jid, audio_url)
            external_id = ((response or {}).get("key") or {}).get("id")
            if not external_id:
                raise ValueError("Resposta da Evolution API sem key.id")
        except Exception as e:
            self.db.rollback()
            logger.error("[EVOLUTION] Falha ao enviar mensagem %s: %s", message.id, e)
            self.repo.update(message, {"status": MessageStatus.FAILED.value})
            raise ApiError(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "MESSAGE_SEND_FAILED",
                "Falha ao enviar mensagem",
                {"messageId": message.id, "originalError": str(e), "retryable": True},
            )

        message = self.repo.update(message, {"message_id": external_id, "status": MessageStatus.SENT.value})
        self.contact_repo.update(contact, {"last_message_at": now})
        return message
