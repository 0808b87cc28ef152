from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.api.whatsapp.models.model_quick_message import WhatsAppQuickMessageModel
from app.api.whatsapp.repositories.repo_quick_message import QuickMessageRepository
from app.core.exceptions import bad_request, conflict, not_found
from app.utils.database_utils import require_uuid
from app.utils.logger import logger
from app.utils.security import MAX_MESSAGE_LENGTH, sanitize_text_content, validate_quick_message_shortcut

DEFAULT_QUICK_MESSAGES = (
    ("/ola", "Olá! Como posso ajudá-lo hoje?", "Saudação padrão"),
    ("/horario", "Nosso horário de atendimento é de segunda a sexta, das 8h às 18h.", "Informação sobre horário"),
    ("/obrigado", "Obrigado pelo contato! Estaremos sempre à disposição.", "Agradecimento padrão"),
    ("/aguarde", "Por favor, aguarde um momento enquanto verifico essas informações para você.", "Pedido de espera"),
    (
        "/indisponivel",
        "No momento estou indisponível, mas retornarei seu contato assim que possível. Obrigado!",
        "Mensagem de indisponibilidade",
    ),
)


class QuickMessageService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = QuickMessageRepository(db)

    @staticmethod
    def _validate_shortcut(shortcut: Any) -> str:
        if not isinstance(shortcut, str) or not shortcut.strip():
            raise bad_request("MISSING_FIELDS", "Atalho é obrigatório")
        shortcut = shortcut.strip().lower()
        if not validate_quick_message_shortcut(shortcut):
            raise bad_request(
                "INVALID_SHORTCUT_FORMAT",
                'Atalho deve começar com "/" e ter 2-20 caracteres (letras, números e _)',
            )
        return shortcut

    @staticmethod
    def _validate_text(message_text: Any) -> str:
        if not isinstance(message_text, str):
            raise bad_request("MISSING_FIELDS", "Texto da mensagem é obrigatório")
        if len(message_text) > MAX_MESSAGE_LENGTH:
            raise bad_request("MESSAGE_TOO_LONG", f"Mensagem não pode passar de {MAX_MESSAGE_LENGTH} caracteres")
        text = sanitize_text_content(message_text)
        if not text:
            raise bad_request("EMPTY_MESSAGE", "Texto da mensagem não pode ser vazio")
        return text

    def _ensure_unique(self, shortcut: str, exclude_id: Optional[str] = None) -> None:
        if self.repo.get_by_shortcut(shortcut, exclude_id=exclude_id):
            raise conflict("SHORTCUT_EXISTS", "Atalho já existe")

    def list(self) -> List[WhatsAppQuickMessageModel]:
        return self.repo.list()

    def get(self, quick_message_id: str) -> WhatsAppQuickMessageModel:
        require_uuid(quick_message_id, "Formato de ID de mensagem rápida inválido", code="INVALID_ID_FORMAT")
        quick_message = self.repo.get(quick_message_id)
        if not quick_message:
            raise not_found("NOT_FOUND", "Mensagem rápida não encontrada")
        return quick_message

    def create(self, data: Dict[str, Any], created_by: Optional[str]) -> WhatsAppQuickMessageModel:
        if data.get("shortcut") in (None, "") or data.get("message_text") in (None, ""):
            raise bad_request("MISSING_FIELDS", "Atalho e texto da mensagem são obrigatórios")
        shortcut = self._validate_shortcut(data.get("shortcut"))
        text = self._validate_text(data.get("message_text"))
        self._ensure_unique(shortcut)

        description = data.get("description")
        return self.repo.create(WhatsAppQuickMessageModel(
            shortcut=shortcut,
            message_text=text,
            description=sanitize_text_content(description) or None if description else None,
            created_by=created_by,
        ))

    def update(self, quick_message_id: str, data: Dict[str, Any]) -> WhatsAppQuickMessageModel:
        quick_message = self.get(quick_message_id)

        update: Dict[str, Any] = {}
        if data.get("shortcut") is not None:
            shortcut = self._validate_shortcut(data["shortcut"])
            self._ensure_unique(shortcut, exclude_id=quick_message.id)
            update["shortcut"] = shortcut
        if data.get("message_text") is not None:
            update["message_text"] = self._validate_text(data["message_text"])
        if "description" in data:
            update["description"] = sanitize_text_content(data["description"]) or None if data["description"] else None

        if not update:
            raise bad_request("NO_UPDATE_FIELDS", "Nenhum campo válido para atualizar")
        return self.repo.update(quick_message, update)

    def delete(self, quick_message_id: str) -> None:
        self.repo.delete(self.get(quick_message_id))

    def seed_defaults(self) -> int:
        """Cria as mensagens rápidas padrão que ainda não existem."""
        created = 0
        for shortcut, text, description in DEFAULT_QUICK_MESSAGES:
            if self.repo.get_by_shortcut(shortcut):
                continue
            self.repo.create(WhatsAppQuickMessageModel(shortcut=shortcut, message_text=text, description=description))
            created += 1
        if created:
            logger.info("[STARTUP] %s mensagens rápidas padrão criadas", created)
        return created
