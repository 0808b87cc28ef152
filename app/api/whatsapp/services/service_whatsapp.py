"""
Processamento dos eventos da Evolution API e regras de contato.

Cada evento do webhook chega em `process_event` e é despachado para o handler
correspondente. Contatos são sincronizados a cada mensagem/atualização e
vinculados a clientes pelo telefone normalizado.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.api.clientes.models.model_cliente import ClienteModel
from app.api.clientes.repositories.repo_cliente import ClienteRepository
from app.api.whatsapp.models.model_contact import WhatsAppContactModel
from app.api.whatsapp.models.model_instance import InstanceStatus, WhatsAppInstanceModel
from app.api.whatsapp.models.model_message import MessageStatus, WhatsAppMessageModel
from app.api.whatsapp.repositories.repo_contact import ContactRepository
from app.api.whatsapp.repositories.repo_instance import InstanceRepository
from app.api.whatsapp.repositories.repo_message import MessageRepository
from app.api.whatsapp.repositories.repo_settings import InstanceSettingsRepository
from app.api.whatsapp.services.service_settings import InstanceSettingsService
from app.core.exceptions import not_found
from app.integrations.evolution.client import EvolutionApiClient, EvolutionApiError
from app.utils.database_utils import require_uuid, utcnow
from app.utils.disponibilidade import esta_dentro_do_horario
from app.utils.logger import logger
from app.utils.security import sanitize_text_content
from app.utils.telefone import normalize_phone_number, phone_from_jid, phone_variants_for_search

AUTO_REPLY_COOLDOWN = timedelta(hours=4)

SUPPORTED_EVENTS = (
    "MESSAGES_UPSERT",
    "MESSAGES_UPDATE",
    "CONNECTION_UPDATE",
    "QRCODE_UPDATED",
    "CONTACTS_UPSERT",
)

_CONNECTION_STATES = {
    "open": InstanceStatus.CONNECTED.value,
    "connecting": InstanceStatus.CONNECTING.value,
    "close": InstanceStatus.DISCONNECTED.value,
}

_MESSAGE_STATUS = {
    1: MessageStatus.SENT.value,
    2: MessageStatus.DELIVERED.value,
    3: MessageStatus.READ.value,
    "SERVER_ACK": MessageStatus.SENT.value,
    "DELIVERY_ACK": MessageStatus.DELIVERED.value,
    "READ": MessageStatus.READ.value,
    "PLAYED": MessageStatus.READ.value,
}

_MESSAGE_TYPES = (
    ("conversation", "text"),
    ("extendedTextMessage", "text"),
    ("audioMessage", "audio"),
    ("imageMessage", "image"),
    ("videoMessage", "video"),
    ("documentMessage", "document"),
    ("stickerMessage", "sticker"),
    ("locationMessage", "location"),
    ("contactMessage", "contact"),
)

_MEDIA_KEYS = ("audioMessage", "imageMessage", "videoMessage", "documentMessage")


# ───────────────────────────
# Extração de campos do payload da Evolution API
# ───────────────────────────

def map_connection_status(state: Optional[str]) -> str:
    return _CONNECTION_STATES.get(state or "", InstanceStatus.DISCONNECTED.value)


def map_message_status(value: Any) -> Optional[str]:
    if not isinstance(value, (int, str)):
        return None
    return _MESSAGE_STATUS.get(value)


def determine_message_type(message_data: Dict[str, Any]) -> str:
    message = message_data.get("message") or {}
    for key, message_type in _MESSAGE_TYPES:
        if message.get(key):
            return message_type
    return "other"


def extract_text_content(message_data: Dict[str, Any]) -> Optional[str]:
    message = message_data.get("message") or {}
    if message.get("conversation"):
        return message["conversation"]
    extended = message.get("extendedTextMessage") or {}
    return extended.get("text") or None


def extract_media_info(message_data: Dict[str, Any]) -> Dict[str, Any]:
    message = message_data.get("message") or {}
    for key in _MEDIA_KEYS:
        media = message.get(key)
        if media:
            size = media.get("fileLength")
            return {
                "media_url": media.get("url"),
                "media_mime_type": media.get("mimetype"),
                "media_size": int(size) if isinstance(size, (int, str)) and str(size).isdigit() else None,
                "media_filename": media.get("fileName"),
            }
    return {"media_url": None, "media_mime_type": None, "media_size": None, "media_filename": None}


def extract_quoted_message_id(message_data: Dict[str, Any]) -> Optional[str]:
    message = message_data.get("message") or {}
    context = (message.get("extendedTextMessage") or {}).get("contextInfo") or {}
    return context.get("stanzaId") or ((context.get("quotedMessage") or {}).get("key") or {}).get("id")


def parse_message_timestamp(value: Any) -> datetime:
    """`messageTimestamp` vem em segundos (int ou string); ausente → agora."""
    try:
        seconds = int(value)
    except (TypeError, ValueError):
        return utcnow()
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(tzinfo=None)


def _as_list(data: Any, key: str) -> List[Dict[str, Any]]:
    """Aceita `{key: [...]}`, uma lista direta ou um único objeto."""
    if isinstance(data, dict) and isinstance(data.get(key), list):
        items: Iterable[Any] = data[key]
    elif isinstance(data, list):
        items = data
    elif isinstance(data, dict) and data:
        items = [data]
    else:
        items = []
    return [item for item in items if isinstance(item, dict)]


def _storage_phone(raw: str) -> str:
    return normalize_phone_number(raw) or re.sub(r"\D", "", raw or "")


class WhatsAppService:
    def __init__(self, db: Session, evolution: EvolutionApiClient, settings_service: InstanceSettingsService):
        self.db = db
        self.evolution = evolution
        self.settings_service = settings_service
        self.instance_repo = InstanceRepository(db)
        self.contact_repo = ContactRepository(db)
        self.message_repo = MessageRepository(db)
        self.settings_repo = InstanceSettingsRepository(db)
        self.cliente_repo = ClienteRepository(db)

    # ───────────────────────────
    # Despacho de eventos
    # ───────────────────────────

    async def process_event(self, event: str, instance_name: str, data: Any) -> None:
        instance = self.instance_repo.get_by_name(instance_name)
        if instance is None:
            logger.warning("[WEBHOOK] Evento %s ignorado: instância desconhecida %s", event, instance_name)
            return

        if event == "MESSAGES_UPSERT":
            await self.handle_messages_upsert(instance, data)
        elif event == "MESSAGES_UPDATE":
            self.handle_messages_update(instance, data)
        elif event == "CONNECTION_UPDATE":
            self.handle_connection_update(instance, data)
        elif event == "QRCODE_UPDATED":
            self.handle_qrcode_updated(instance, data)
        elif event == "CONTACTS_UPSERT":
            self.handle_contacts_upsert(instance, data)
        else:
            logger.info("[WEBHOOK] Evento não tratado: %s (instância %s)", event, instance_name)

    async def handle_messages_upsert(self, instance: WhatsAppInstanceModel, data: Any) -> None:
        for message_data in _as_list(data, "messages"):
            key = message_data.get("key") or {}
            if key.get("fromMe"):
                continue
            remote_jid = key.get("remoteJid")
            if not remote_jid or not key.get("id"):
                logger.warning("[WEBHOOK] Mensagem sem key.remoteJid/key.id ignorada (instância %s)",
                               instance.instance_name)
                continue

            timestamp = parse_message_timestamp(message_data.get("messageTimestamp"))
            contact = self.sync_contact(
                instance.id,
                remote_jid=remote_jid,
                phone_number=phone_from_jid(remote_jid),
                name=message_data.get("pushName"),
                last_message_at=timestamp,
            )
            stored = self.store_message(instance.id, contact, message_data, timestamp)

            if stored and self.should_send_auto_reply(instance.id, contact.id):
                try:
                    await self.send_auto_reply(instance, contact)
                except EvolutionApiError as e:
                    # mensagem já gravada; reprocessar o evento não reenviaria a resposta
                    logger.error("[WEBHOOK] Falha na resposta automática contact_id=%s: %s", contact.id, e)

    def store_message(
        self,
        instance_id: str,
        contact: WhatsAppContactModel,
        message_data: Dict[str, Any],
        timestamp: datetime,
    ) -> Optional[WhatsAppMessageModel]:
        key = message_data.get("key") or {}
        if self.message_repo.get_by_message_id(instance_id, key["id"]):
            logger.info("[WEBHOOK] Mensagem duplicada ignorada message_id=%s", key["id"])
            return None

        return self.message_repo.create(WhatsAppMessageModel(
            instance_id=instance_id,
            contact_id=contact.id,
            message_id=key["id"],
            remote_jid=key.get("remoteJid"),
            from_me=bool(key.get("fromMe")),
            message_type=determine_message_type(message_data),
            text_content=extract_text_content(message_data),
            quoted_message_id=extract_quoted_message_id(message_data),
            status=MessageStatus.RECEIVED.value,
            timestamp=timestamp,
            **extract_media_info(message_data),
        ))

    def handle_messages_update(self, instance: WhatsAppInstanceModel, data: Any) -> None:
        for message_data in _as_list(data, "messages"):
            key = message_data.get("key") or {}
            message_id = key.get("id") or message_data.get("keyId")
            raw_status = (message_data.get("update") or {}).get("status", message_data.get("status"))
            new_status = map_message_status(raw_status)
            if not message_id or not new_status:
                continue
            message = self.message_repo.get_by_message_id(instance.id, message_id)
            if message is None:
                continue
            self.message_repo.update(message, {"status": new_status})

    def handle_connection_update(self, instance: WhatsAppInstanceModel, data: Any) -> None:
        data = data if isinstance(data, dict) else {}
        new_status = map_connection_status(data.get("state"))
        now = utcnow()

        # Não derruba o QR code enquanto o usuário ainda não escaneou
        if new_status == InstanceStatus.DISCONNECTED.value and instance.status == InstanceStatus.QR_CODE.value:
            logger.info("[WEBHOOK] Desconexão ignorada: instância %s aguardando QR code", instance.id)
            self.instance_repo.update(instance, {"last_seen_at": now})
            return

        if new_status == InstanceStatus.CONNECTING.value and instance.status in (
            InstanceStatus.CONNECTED.value,
            InstanceStatus.QR_CODE.value,
        ):
            logger.info("[WEBHOOK] Status connecting ignorado: instância %s já está %s", instance.id, instance.status)
            return

        update: Dict[str, Any] = {"status": new_status, "last_seen_at": now}
        if new_status == InstanceStatus.CONNECTED.value:
            update["connected_at"] = now
            update["qr_code"] = None
            owner = data.get("wuid") or data.get("ownerJid") or (data.get("instance") or {}).get("wid")
            if owner:
                update["phone_number"] = _storage_phone(phone_from_jid(owner))
        else:
            update["connected_at"] = None

        logger.info("[WEBHOOK] Instância %s: %s → %s", instance.id, instance.status, new_status)
        self.instance_repo.update(instance, update)

    def handle_qrcode_updated(self, instance: WhatsAppInstanceModel, data: Any) -> None:
        qrcode = (data or {}).get("qrcode") if isinstance(data, dict) else None
        self.instance_repo.update(instance, {
            "qr_code": (qrcode or {}).get("base64"),
            "qr_code_updated_at": utcnow(),
            "status": InstanceStatus.QR_CODE.value,
        })

    def handle_contacts_upsert(self, instance: WhatsAppInstanceModel, data: Any) -> None:
        for contact_data in _as_list(data, "contacts"):
            remote_jid = contact_data.get("id") or contact_data.get("remoteJid")
            if not remote_jid:
                continue
            self.sync_contact(
                instance.id,
                remote_jid=remote_jid,
                phone_number=phone_from_jid(remote_jid),
                name=contact_data.get("name") or contact_data.get("pushName"),
                profile_picture_url=contact_data.get("profilePictureUrl") or contact_data.get("profilePicUrl"),
            )

    # ───────────────────────────
    # Contatos
    # ───────────────────────────

    def sync_contact(
        self,
        instance_id: str,
        *,
        remote_jid: str,
        phone_number: str,
        name: Optional[str] = None,
        profile_picture_url: Optional[str] = None,
        last_message_at: Optional[datetime] = None,
    ) -> WhatsAppContactModel:
        """Cria ou atualiza o contato e tenta vinculá-lo a um cliente pelo telefone."""
        existing = self.contact_repo.get_by_jid(instance_id, remote_jid)
        phone = _storage_phone(phone_number)
        client = self.match_contact_with_client(phone)

        data: Dict[str, Any] = {
            "phone_number": phone,
            "name": name or (client.name if client else None) or (existing.name if existing else None),
            "profile_picture_url": profile_picture_url or (existing.profile_picture_url if existing else None),
            "client_id": (client.id if client else None) or (existing.client_id if existing else None),
            "contact_type": "cliente" if client else (existing.contact_type if existing else "unknown"),
        }
        if last_message_at is not None:
            data["last_message_at"] = last_message_at

        if existing:
            return self.contact_repo.update(existing, data)
        return self.contact_repo.create(WhatsAppContactModel(instance_id=instance_id, remote_jid=remote_jid, **data))

    def list_contacts(self, instance_id: Optional[str] = None, search: Optional[str] = None):
        if instance_id:
            require_uuid(instance_id, "ID de instância inválido")
        return self.contact_repo.list(instance_id, search)

    def update_contact(self, contact_id: str, data: Dict[str, Any]) -> WhatsAppContactModel:
        require_uuid(contact_id, "ID de contato inválido")
        contact = self.contact_repo.get(contact_id)
        if not contact:
            raise not_found("CONTACT_NOT_FOUND", "Contato não encontrado")

        update: Dict[str, Any] = {}
        if "name" in data:
            update["name"] = sanitize_text_content(data["name"]) or None
        if "contact_type" in data and data["contact_type"]:
            update["contact_type"] = data["contact_type"]
        if "client_id" in data:
            client_id = data["client_id"]
            if client_id:
                require_uuid(client_id, "ID de cliente inválido")
                if not self.cliente_repo.get(client_id):
                    raise not_found("CLIENT_NOT_FOUND", "Cliente não encontrado")
                update["client_id"] = client_id
                update.setdefault("contact_type", "cliente")
            else:
                update["client_id"] = None
        return self.contact_repo.update(contact, update)

    # ───────────────────────────
    # Vínculo contato ↔ cliente
    # ───────────────────────────

    def match_contact_with_client(self, phone_number: Optional[str]) -> Optional[ClienteModel]:
        """Cliente cujo telefone (normalizado) bate com o do contato, aceitando variação do 9."""
        variants = phone_variants_for_search(phone_number)
        if not variants:
            return None
        clients = self.cliente_repo.list_by_phones(variants)
        if not clients:
            return None
        # prioriza o match exato sobre as variantes
        by_phone = {c.phone: c for c in clients}
        for variant in variants:
            if variant in by_phone:
                return by_phone[variant]
        return clients[0]

    def match_specific_contact(self, contact_id: str) -> Dict[str, Any]:
        require_uuid(contact_id, "ID de contato inválido")
        contact = self.contact_repo.get(contact_id)
        if not contact:
            raise not_found("CONTACT_NOT_FOUND", "Contato não encontrado")
        client = self.match_contact_with_client(contact.phone_number)
        if client is None:
            return {"processed": 1, "matched": 0, "errors": 0}
        self._link(contact, client)
        return {"processed": 1, "matched": 1, "errors": 0}

    def _link(self, contact: WhatsAppContactModel, client: ClienteModel) -> None:
        update: Dict[str, Any] = {"client_id": client.id, "contact_type": "cliente"}
        if not contact.name:
            update["name"] = client.name
        self.contact_repo.update(contact, update)

    def run_automatic_client_matching(self, instance_id: Optional[str] = None, batch_size: int = 10) -> Dict[str, int]:
        """
        Percorre os contatos sem cliente (com telefone) em lotes de `batch_size`
        e vincula os que tiverem cliente com o mesmo telefone.

        Erros por contato são registrados e contados; o job continua.
        """
        if instance_id:
            require_uuid(instance_id, "ID de instância inválido")
        contacts = self.contact_repo.list_unmatched(instance_id)
        result = {"processed": 0, "matched": 0, "errors": 0}
        logger.info("[MATCHING] Iniciando vínculo automático: %s contatos sem cliente", len(contacts))

        for start in range(0, len(contacts), max(batch_size, 1)):
            for contact in contacts[start:start + batch_size]:
                result["processed"] += 1
                try:
                    client = self.match_contact_with_client(contact.phone_number)
                    if client is None:
                        continue
                    self._link(contact, client)
                    result["matched"] += 1
                    logger.info("[MATCHING] Contato %s vinculado ao cliente %s", contact.id, client.id)
                except Exception as e:
                    self.db.rollback()
                    result["errors"] += 1
                    logger.error("[MATCHING] Erro ao vincular contato %s: %s", contact.id, e)

        logger.info("[MATCHING] Concluído: %s", result)
        return result

    # ───────────────────────────
    # Variáveis de mensagem e resposta automática
    # ───────────────────────────

    def replace_message_variables(self, message: str, contact: WhatsAppContactModel) -> str:
        """Substitui {nome_cliente}, {nome_contato} e {telefone} no texto (já sanitizado)."""
        if not message:
            return message

        processed = sanitize_text_content(message)
        client_name = None
        if contact.client_id:
            client = self.cliente_repo.get(contact.client_id)
            client_name = client.name if client else None

        processed = processed.replace(
            "{nome_cliente}", sanitize_text_content(client_name or contact.name or "Cliente")
        )
        processed = processed.replace("{nome_contato}", sanitize_text_content(contact.name or "Contato"))
        processed = processed.replace("{telefone}", sanitize_text_content(contact.phone_number or ""))
        return processed

    def should_send_auto_reply(self, instance_id: str, contact_id: str, now: Optional[datetime] = None) -> bool:
        try:
            settings = self.settings_service.get_cached(instance_id)
            if not settings.get("auto_reply_enabled") or not settings.get("auto_reply_message"):
                return False
            now = now or utcnow()
            if esta_dentro_do_horario(settings.get("availability_schedule"), now=now):
                return False
            recent = self.settings_repo.last_auto_reply_since(instance_id, contact_id, now - AUTO_REPLY_COOLDOWN)
            return recent is None
        except Exception as e:
            logger.error("[WEBHOOK] Erro ao avaliar resposta automática instance_id=%s: %s", instance_id, e)
            self.db.rollback()
            return False

    async def send_auto_reply(self, instance: WhatsAppInstanceModel, contact: WhatsAppContactModel) -> None:
        settings = self.settings_service.get_cached(instance.id)
        message = self.replace_message_variables(settings.get("auto_reply_message") or "", contact)
        if not message:
            return
        await self.evolution.send_text_message(instance.instance_name, contact.remote_jid, message)
        self.settings_repo.log_auto_reply(instance.id, contact.id, message)
        logger.info("[WEBHOOK] Resposta automática enviada para %s", contact.phone_number)
