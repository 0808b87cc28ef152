import uuid
from datetime import datetime, timezone

from app.core.exceptions import bad_request


def utcnow() -> datetime:
    """Retorna datetime atual em UTC, sem tzinfo (padrão das colunas DateTime do projeto)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def is_valid_uuid(value) -> bool:
    try:
        uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return False
    return True


def require_uuid(value: str, error: str = "ID inválido", code: str = "INVALID_ID") -> str:
    """Valida IDs vindos da URL antes de consultar o banco (400 INVALID_ID)."""
    if not is_valid_uuid(value):
        raise bad_request(code, error)
    return str(value)
