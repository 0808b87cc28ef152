from copy import deepcopy
from typing import Any, Dict

from fastapi import status
from sqlalchemy.orm import Session

from app.api.usuarios.models.model_user import UserModel
from app.api.whatsapp.models.model_instance import WhatsAppInstanceModel
from app.api.whatsapp.models.model_instance_settings import (
    WhatsAppInstanceSettingsModel,
    default_availability_schedule,
)
from app.api.whatsapp.repositories.repo_instance import InstanceRepository
from app.api.whatsapp.repositories.repo_settings import InstanceSettingsRepository
from app.core.cache import TTLCache
from app.core.exceptions import ApiError, bad_request, forbidden, not_found
from app.integrations.evolution.client import EvolutionApiClient, EvolutionApiError
from app.utils.database_utils import require_uuid
from app.utils.disponibilidade import validar_schedule
from app.utils.logger import logger

SETTINGS_FIELDS = (
    "id",
    "instance_id",
    "reject_calls",
    "reject_call_message",
    "ignore_groups",
    "always_online",
    "read_messages",
    "read_status",
    "auto_reply_enabled",
    "auto_reply_message",
    "availability_schedule",
    "created_at",
    "updated_at",
)

# campo local → campo da Evolution API (/settings/set)
EVOLUTION_FIELDS = {
    "reject_calls": "rejectCall",
    "reject_call_message": "msgCall",
    "ignore_groups": "groupsIgnore",
    "always_online": "alwaysOnline",
    "read_messages": "readMessages",
    "read_status": "readStatus",
}


def settings_to_dict(settings: WhatsAppInstanceSettingsModel) -> Dict[str, Any]:
    return {field: deepcopy(getattr(settings, field)) for field in SETTINGS_FIELDS}


class InstanceSettingsService:
    """Configurações por instância, com cache em memória (chave = instance_id)."""

    def __init__(self, db: Session, cache: TTLCache, evolution: EvolutionApiClient):
        self.db = db
        self.cache = cache
        self.evolution = evolution
        self.repo = InstanceSettingsRepository(db)
        self.instance_repo = InstanceRepository(db)

    def _get_instance(self, instance_id: str) -> WhatsAppInstanceModel:
        require_uuid(instance_id, "ID de instância inválido")
        instance = self.instance_repo.get(instance_id)
        if not instance:
            raise not_found("INSTANCE_NOT_FOUND", "Instância não encontrada")
        return instance

    @staticmethod
    def _check_access(instance: WhatsAppInstanceModel, user: UserModel, is_admin: bool) -> None:
        if instance.created_by and instance.created_by != user.id and not is_admin:
            raise forbidden("ACCESS_DENIED", "Acesso negado a esta instância")

    def get_cached(self, instance_id: str) -> Dict[str, Any]:
        """Configurações da instância (cache → banco → defaults criados na hora)."""
        cached = self.cache.get(instance_id)
        if cached is not None:
            return deepcopy(cached)

        settings = self.repo.get_by_instance(instance_id)
        if settings is None:
            settings = self.repo.create(WhatsAppInstanceSettingsModel(
                instance_id=instance_id,
                availability_schedule=default_availability_schedule(),
            ))
            logger.info("[SETTINGS] Configurações padrão criadas instance_id=%s", instance_id)

        data = settings_to_dict(settings)
        self.cache.set(instance_id, data)
        return deepcopy(data)

    def get_settings(self, instance_id: str, user: UserModel, is_admin: bool) -> Dict[str, Any]:
        instance = self._get_instance(instance_id)
        self._check_access(instance, user, is_admin)
        return self.get_cached(instance.id)

    async def update_settings(
        self, instance_id: str, data: Dict[str, Any], user: UserModel, is_admin: bool
    ) -> Dict[str, Any]:
        instance = self._get_instance(instance_id)
        self._check_access(instance, user, is_admin)

        schedule = data.get("availability_schedule")
        if schedule is not None:
            error = validar_schedule(schedule)
            if error:
                raise bad_request("INVALID_INPUT", error)

        evolution_settings = {
            EVOLUTION_FIELDS[key]: value
            for key, value in data.items()
            if key in EVOLUTION_FIELDS and value is not None
        }
        if evolution_settings:
            try:
                await self.evolution.set_settings(instance.instance_name, evolution_settings)
            except EvolutionApiError as e:
                logger.error("[SETTINGS] Falha ao sincronizar com a Evolution API instance=%s: %s",
                             instance.instance_name, e)
                raise ApiError(
                    status.HTTP_502_BAD_GATEWAY,
                    "EVOLUTION_API_ERROR",
                    "Falha ao sincronizar configurações com a Evolution API",
                )

        current = self.get_cached(instance.id)
        settings = self.repo.get_by_instance(instance.id)

        update: Dict[str, Any] = {}
        for key, value in data.items():
            if key == "availability_schedule":
                if value is not None:
                    merged = dict(current["availability_schedule"] or default_availability_schedule())
                    merged.update(value)
                    update[key] = merged
            elif key in ("reject_call_message", "auto_reply_message"):
                update[key] = value
            elif value is not None:
                update[key] = value

        settings = self.repo.update(settings, update)
        result = settings_to_dict(settings)
        self.cache.set(instance.id, result)
        logger.info("[SETTINGS] Configurações atualizadas instance_id=%s campos=%s", instance.id, sorted(update))
        return deepcopy(result)
