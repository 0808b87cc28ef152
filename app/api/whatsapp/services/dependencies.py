from fastapi import Depends
from sqlalchemy.orm import Session

from app.api.whatsapp.services.service_instance import InstanceService
from app.api.whatsapp.services.service_message import MessageService
from app.api.whatsapp.services.service_quick_message import QuickMessageService
from app.api.whatsapp.services.service_settings import InstanceSettingsService
from app.api.whatsapp.services.service_webhook import IdempotencyStore, WebhookService
from app.api.whatsapp.services.service_whatsapp import WhatsAppService
from app.core.cache import Caches, get_caches
from app.core.rate_limiter import MessageRateLimiter, get_rate_limiter
from app.database.db_connection import get_db
from app.integrations.evolution.client import EvolutionApiClient, get_evolution_client


def get_settings_service(
    db: Session = Depends(get_db),
    caches: Caches = Depends(get_caches),
    evolution: EvolutionApiClient = Depends(get_evolution_client),
) -> InstanceSettingsService:
    return InstanceSettingsService(db, caches.instance_settings, evolution)


def get_whatsapp_service(
    db: Session = Depends(get_db),
    evolution: EvolutionApiClient = Depends(get_evolution_client),
    settings_service: InstanceSettingsService = Depends(get_settings_service),
) -> WhatsAppService:
    return WhatsAppService(db, evolution, settings_service)


def get_webhook_service(
    db: Session = Depends(get_db),
    caches: Caches = Depends(get_caches),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
) -> WebhookService:
    return WebhookService(db, whatsapp, IdempotencyStore(caches.webhook_events))


def get_instance_service(
    db: Session = Depends(get_db),
    evolution: EvolutionApiClient = Depends(get_evolution_client),
) -> InstanceService:
    return InstanceService(db, evolution)


def get_message_service(
    db: Session = Depends(get_db),
    evolution: EvolutionApiClient = Depends(get_evolution_client),
    rate_limiter: MessageRateLimiter = Depends(get_rate_limiter),
    whatsapp: WhatsAppService = Depends(get_whatsapp_service),
) -> MessageService:
    return MessageService(db, evolution, rate_limiter, whatsapp)


def get_quick_message_service(db: Session = Depends(get_db)) -> QuickMessageService:
    return QuickMessageService(db)
