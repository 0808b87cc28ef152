from __future__ import annotations

import secrets
import string
import time
from typing import Any, Dict, List, Optional

from fastapi import status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_instance import InstanceStatus, WhatsAppInstanceModel
from app.api.whatsapp.repositories.repo_instance import InstanceRepository
from app.core.exceptions import ApiError, bad_request, not_found
from app.core.saga import Saga, SagaError, SagaStep
from app.integrations.evolution.client import EvolutionApiClient, EvolutionApiError
from app.utils.database_utils import require_uuid, utcnow
from app.utils.logger import logger

_NAME_ALPHABET = string.ascii_lowercase + string.digits


def generate_instance_name() -> str:
    suffix = "".join(secrets.choice(_NAME_ALPHABET) for _ in range(6))
    return f"instance_{int(time.time() * 1000)}_{suffix}"


def evolution_error_to_api(e: EvolutionApiError, error: str) -> ApiError:
    """4xx da Evolution vira 400; o resto (5xx, rede) vira 500."""
    status_code = 400 if 400 <= e.status_code < 500 else 500
    details = e.response if isinstance(e.response, dict) else {"message": e.message}
    return ApiError(status_code, "EVOLUTION_API_ERROR", error, details)


def service_unavailable() -> ApiError:
    return ApiError(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "SERVICE_UNAVAILABLE",
        "Falha ao conectar ao serviço de WhatsApp",
    )


class InstanceService:
    def __init__(self, db: Session, evolution: EvolutionApiClient):
        self.db = db
        self.evolution = evolution
        self.repo = InstanceRepository(db)

    def list_instances(self) -> List[WhatsAppInstanceModel]:
        return self.repo.list()

    def get_instance(self, instance_id: str) -> WhatsAppInstanceModel:
        require_uuid(instance_id, "Formato de ID de instância inválido")
        instance = self.repo.get(instance_id)
        if not instance:
            raise not_found("NOT_FOUND", "Instância não encontrada")
        return instance

    # ───────────────────────────
    # Criação (saga: Evolution ↔ banco local)
    # ───────────────────────────

    async def create_instance(self, display_name: Any, created_by: str) -> WhatsAppInstanceModel:
        if not isinstance(display_name, str) or not display_name.strip():
            raise bad_request("INVALID_INPUT", "Nome de exibição é obrigatório")

        instance_name = generate_instance_name()
        webhook_url = self.evolution.webhook_url

        async def create_external(ctx: Dict[str, Any]) -> Dict[str, Any]:
            return await self.evolution.create_instance(instance_name, webhook_url=webhook_url)

        async def delete_external(ctx: Dict[str, Any], result: Any) -> None:
            await self.evolution.delete_instance(instance_name)

        def insert_local(ctx: Dict[str, Any]) -> WhatsAppInstanceModel:
            response = ctx.get("evolution_instance") or {}
            token = response.get("hash")
            if isinstance(token, dict):
                token = token.get("apikey")
            try:
                return self.repo.create(WhatsAppInstanceModel(
                    instance_name=instance_name,
                    instance_token=token or "",
                    display_name=display_name.strip(),
                    status=InstanceStatus.DISCONNECTED.value,
                    webhook_url=webhook_url,
                    created_by=created_by,
                ))
            except SQLAlchemyError:
                self.db.rollback()
                raise

        saga = Saga("criar_instancia", [
            SagaStep("evolution_instance", create_external, delete_external),
            SagaStep("local_instance", insert_local),
        ])

        try:
            ctx = await saga.run()
        except SagaError as e:
            if isinstance(e.original, EvolutionApiError):
                raise evolution_error_to_api(e.original, "Falha ao criar instância WhatsApp")
            if e.step == "local_instance":
                details: Optional[Dict[str, Any]] = None
                if e.failed_compensations:
                    details = {"orphanedResources": [f.step for f in e.failed_compensations]}
                raise ApiError(
                    status.HTTP_500_INTERNAL_SERVER_ERROR,
                    "CREATE_ERROR",
                    "Falha ao criar instância",
                    details,
                )
            raise service_unavailable()

        instance = ctx["local_instance"]
        logger.info("[EVOLUTION] Instância criada id=%s name=%s", instance.id, instance.instance_name)
        return instance

    # ───────────────────────────
    # Conexão
    # ───────────────────────────

    async def connect_instance(self, instance_id: str) -> Dict[str, Any]:
        instance = self.get_instance(instance_id)
        if instance.status == InstanceStatus.CONNECTED.value:
            raise bad_request("ALREADY_CONNECTED", "Instância já está conectada")

        try:
            state = await self.evolution.get_connection_state(instance.instance_name)
            current = ((state or {}).get("instance") or {}).get("state") or (state or {}).get("state")
            if current == "open":
                now = utcnow()
                instance = self.repo.update(instance, {
                    "status": InstanceStatus.CONNECTED.value,
                    "connected_at": now,
                    "last_seen_at": now,
                })
                return {"instance": instance, "qr_code": None, "status": instance.status}

            qr = await self.evolution.connect_instance(instance.instance_name)
        except EvolutionApiError as e:
            logger.error("[EVOLUTION] Erro ao conectar instância %s: %s", instance.instance_name, e)
            self.repo.update(instance, {"status": InstanceStatus.DISCONNECTED.value, "last_seen_at": utcnow()})
            raise evolution_error_to_api(e, "Falha ao iniciar conexão do WhatsApp")
        except Exception as e:
            logger.error("[EVOLUTION] Erro inesperado ao conectar instância %s: %s", instance.instance_name, e)
            self.repo.update(instance, {"status": InstanceStatus.DISCONNECTED.value, "last_seen_at": utcnow()})
            raise service_unavailable()

        now = utcnow()
        qr_code = (qr or {}).get("base64")
        instance = self.repo.update(instance, {
            "status": InstanceStatus.QR_CODE.value,
            "qr_code": qr_code,
            "qr_code_updated_at": now,
            "last_seen_at": now,
        })
        return {"instance": instance, "qr_code": qr_code, "status": instance.status}

    async def disconnect_instance(self, instance_id: str) -> WhatsAppInstanceModel:
        instance = self.get_instance(instance_id)
        if instance.status == InstanceStatus.DISCONNECTED.value:
            raise bad_request("ALREADY_DISCONNECTED", "Instância já está desconectada")

        update = {
            "status": InstanceStatus.DISCONNECTED.value,
            "qr_code": None,
            "qr_code_updated_at": None,
            "phone_number": None,
            "connected_at": None,
        }
        try:
            await self.evolution.logout_instance(instance.instance_name)
        except EvolutionApiError as e:
            self.repo.update(instance, {**update, "last_seen_at": utcnow()})
            if e.status_code == 404:
                logger.info("[EVOLUTION] Instância %s já não existia no gateway", instance.instance_name)
                return instance
            logger.error("[EVOLUTION] Erro ao desconectar instância %s: %s", instance.instance_name, e)
            raise evolution_error_to_api(e, "Falha ao desconectar instância WhatsApp")

        return self.repo.update(instance, {**update, "last_seen_at": utcnow()})

    async def delete_instance(self, instance_id: str) -> None:
        instance = self.get_instance(instance_id)
        try:
            await self.evolution.delete_instance(instance.instance_name)
        except EvolutionApiError as e:
            # remoção local acontece de qualquer forma
            logger.warning("[EVOLUTION] Falha ao remover instância %s no gateway: %s", instance.instance_name, e)
        self.repo.delete(instance)
        logger.info("[EVOLUTION] Instância removida id=%s", instance_id)
