from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_webhook_failure import WebhookFailureModel
from app.api.whatsapp.repositories.repo_webhook_failure import WebhookFailureRepository
from app.api.whatsapp.services.service_whatsapp import WhatsAppService
from app.config.settings import WEBHOOK_SECRET
from app.core.cache import TTLCache
from app.core.exceptions import ApiError, bad_request
from app.utils.database_utils import utcnow
from app.utils.logger import logger
from app.utils.security import validate_webhook_signature

SLOW_PROCESSING_MS = 4000
MAX_DELIVERY_ATTEMPTS = 5
SIGNATURE_HEADERS = ("x-signature-256", "x-hub-signature-256")


class IdempotencyStore:
    """Ids de eventos já processados, sobre um TTLCache (TTL 5 min, limpeza acima de 1000 entradas)."""

    def __init__(self, cache: TTLCache):
        self.cache = cache

    def seen(self, event_id: str) -> bool:
        return self.cache.contains(event_id)

    def mark(self, event_id: str) -> None:
        self.cache.set(event_id, True)


@dataclass
class WebhookEvent:
    event: str
    instance: str
    data: Any
    date_time: Optional[str] = None

    @property
    def event_id(self) -> str:
        return build_event_id(self.instance, self.event, self.date_time)

    def to_payload(self) -> Dict[str, Any]:
        payload = {"event": self.event, "instance": self.instance, "data": self.data}
        if self.date_time:
            payload["date_time"] = self.date_time
        return payload


def build_event_id(instance: str, event: str, date_time: Optional[str] = None) -> str:
    return f"{instance}-{event}-{date_time or int(time.time() * 1000)}"


def parse_webhook_body(raw_body: bytes) -> WebhookEvent:
    """Corpo bruto → WebhookEvent (400 INVALID_JSON / INVALID_PAYLOAD)."""
    try:
        payload = json.loads(raw_body or b"")
    except (ValueError, UnicodeDecodeError):
        raise bad_request("INVALID_JSON", "JSON inválido no corpo da requisição")

    if not isinstance(payload, dict):
        raise bad_request("INVALID_PAYLOAD", "Payload do webhook deve ser um objeto")

    missing = [field for field in ("event", "instance", "data") if payload.get(field) in (None, "")]
    if missing:
        raise bad_request("INVALID_PAYLOAD", "Payload do webhook incompleto", {"missingFields": missing})

    event = str(payload["event"]).upper().replace(".", "_")
    return WebhookEvent(
        event=event,
        instance=str(payload["instance"]),
        data=payload["data"],
        date_time=payload.get("date_time"),
    )


def verify_signature(raw_body: bytes, headers, secret: Optional[str]) -> None:
    """Sem segredo configurado a verificação é desligada; com segredo, 401 INVALID_SIGNATURE."""
    if not secret:
        return
    signature = None
    for name in SIGNATURE_HEADERS:
        signature = headers.get(name)
        if signature:
            break
    if not signature:
        raise ApiError(401, "INVALID_SIGNATURE", "Assinatura do webhook ausente")
    if not validate_webhook_signature(raw_body, signature, secret):
        raise ApiError(401, "INVALID_SIGNATURE", "Assinatura do webhook inválida")


class WebhookService:
    """
    Ingestão de eventos da Evolution API.

    O contrato externo é sempre 200: falhas de processamento viram dead-letter
    (`whatsapp_webhook_failures`) e o id do evento NÃO é marcado como
    processado, para que uma reentrega possa ter sucesso.
    """

    def __init__(self, db: Session, whatsapp: WhatsAppService, idempotency: IdempotencyStore):
        self.db = db
        self.whatsapp = whatsapp
        self.idempotency = idempotency
        self.failure_repo = WebhookFailureRepository(db)

    async def handle(self, event: WebhookEvent) -> Dict[str, Any]:
        event_id = event.event_id
        if self.idempotency.seen(event_id):
            logger.info("[WEBHOOK] Evento duplicado ignorado: %s", event_id)
            return {"status": "already_processed", "eventId": event_id}

        started = time.monotonic()
        try:
            await self.whatsapp.process_event(event.event, event.instance, event.data)
        except Exception as e:
            self.db.rollback()
            logger.exception("[WEBHOOK] Erro ao processar %s: %s", event_id, e)
            self.record_failure(event, event_id, e)
            return {"status": "error_logged", "eventId": event_id}
        finally:
            elapsed_ms = (time.monotonic() - started) * 1000
            if elapsed_ms > SLOW_PROCESSING_MS:
                logger.warning("[WEBHOOK] Processamento lento: %s levou %.0f ms", event_id, elapsed_ms)

        self.idempotency.mark(event_id)
        self._resolve_pending(event_id)
        return {"status": "processed", "eventId": event_id}

    def record_failure(self, event: WebhookEvent, event_id: str, error: Exception) -> None:
        try:
            existing = self.failure_repo.get_pending_by_event_id(event_id)
            if existing:
                self.failure_repo.update(existing, {
                    "attempts": existing.attempts + 1,
                    "last_error": str(error),
                    "status": "dead" if existing.attempts + 1 >= MAX_DELIVERY_ATTEMPTS else "pending",
                })
                return
            self.failure_repo.create(WebhookFailureModel(
                event_id=event_id,
                event=event.event,
                instance_name=event.instance,
                payload=event.to_payload(),
                last_error=str(error),
                attempts=1,
            ))
        except Exception as e:
            # a resposta continua 200; o evento fica só no log
            self.db.rollback()
            logger.error("[WEBHOOK] Falha ao registrar dead-letter %s: %s", event_id, e)

    def _resolve_pending(self, event_id: str) -> None:
        try:
            existing = self.failure_repo.get_pending_by_event_id(event_id)
            if existing:
                self.failure_repo.update(existing, {"status": "resolved"})
        except Exception as e:
            # evento já processado e marcado; a resposta continua 200
            self.db.rollback()
            logger.error("[WEBHOOK] Falha ao resolver dead-letter %s: %s", event_id, e)

    async def retry_failed_events(self, limit: int = 50) -> Dict[str, int]:
        """Reprocessa os eventos pendentes do dead-letter."""
        result = {"retried": 0, "resolved": 0, "failed": 0}
        for failure in self.failure_repo.list_pending(limit):
            result["retried"] += 1
            payload = failure.payload or {}
            try:
                await self.whatsapp.process_event(failure.event, failure.instance_name, payload.get("data"))
            except Exception as e:
                self.db.rollback()
                attempts = failure.attempts + 1
                self.failure_repo.update(failure, {
                    "attempts": attempts,
                    "last_error": str(e),
                    "status": "dead" if attempts >= MAX_DELIVERY_ATTEMPTS else "pending",
                })
                result["failed"] += 1
                logger.error("[WEBHOOK] Reprocessamento falhou %s (tentativa %s): %s", failure.event_id, attempts, e)
                continue

            self.failure_repo.update(failure, {"status": "resolved", "updated_at": utcnow()})
            self.idempotency.mark(failure.event_id)
            result["resolved"] += 1

        logger.info("[WEBHOOK] Reprocessamento do dead-letter: %s", result)
        return result


def get_webhook_secret() -> Optional[str]:
    """Dependency: segredo HMAC do webhook (None desliga a verificação)."""
    return WEBHOOK_SECRET
