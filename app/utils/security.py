import hashlib
import hmac
import re
from typing import List, NamedTuple, Optional

from app.utils.logger import logger

MAX_MESSAGE_LENGTH = 4096

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_DANGEROUS_BLOCKS_RE = [
    re.compile(rf"<{tag}\b[^<]*(?:(?!</{tag}>)<[^<]*)*</{tag}>", re.IGNORECASE)
    for tag in ("script", "iframe", "object", "embed")
]
_DANGEROUS_SCHEMES_RE = re.compile(r"javascript:|data:", re.IGNORECASE)
_SUSPICIOUS_PATTERNS = [
    re.compile(r"(.)\1{50,}"),
    re.compile(r"https?://\S+", re.IGNORECASE),
]
_SHORTCUT_RE = re.compile(r"^/[a-zA-Z0-9_]+$")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def sanitize_text_content(value) -> str:
    """
    Limpa texto livre antes de persistir/enviar:
    remove caracteres de controle (mantém \\n e \\t), blocos <script>/<iframe>/
    <object>/<embed> e os esquemas `javascript:`/`data:`; limita a 4096 caracteres.
    """
    if not isinstance(value, str):
        return ""
    sanitized = _CONTROL_CHARS_RE.sub("", value)[:MAX_MESSAGE_LENGTH]
    for pattern in _DANGEROUS_BLOCKS_RE:
        sanitized = pattern.sub("", sanitized)
    sanitized = _DANGEROUS_SCHEMES_RE.sub("", sanitized)
    return sanitized.strip()


class MessageValidation(NamedTuple):
    is_valid: bool
    sanitized_content: str
    errors: List[str]


def validate_message_content(content, message_type: str = "text") -> MessageValidation:
    """Valida o conteúdo de uma mensagem de texto. Padrões suspeitos só geram log."""
    if message_type != "text":
        return MessageValidation(True, content, [])

    errors: List[str] = []
    if isinstance(content, str) and len(content) > MAX_MESSAGE_LENGTH:
        errors.append(f"Mensagem excede o limite de {MAX_MESSAGE_LENGTH} caracteres")

    sanitized = sanitize_text_content(content)
    if not sanitized:
        errors.append("Mensagem não pode ser vazia")

    for pattern in _SUSPICIOUS_PATTERNS:
        if pattern.search(sanitized):
            logger.warning(
                "[SEGURANCA] Padrão suspeito na mensagem pattern=%s tamanho=%s",
                pattern.pattern,
                len(sanitized),
            )

    return MessageValidation(not errors, sanitized, errors)


def validate_quick_message_shortcut(shortcut) -> bool:
    if not isinstance(shortcut, str):
        return False
    if len(shortcut) < 2 or len(shortcut) > 20:
        return False
    return bool(_SHORTCUT_RE.match(shortcut))


def compute_webhook_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def validate_webhook_signature(payload: bytes, signature: Optional[str], secret: Optional[str]) -> bool:
    """HMAC-SHA256 (hex) do corpo bruto; aceita o prefixo `sha256=` no header."""
    if not signature or not secret:
        return False
    provided = signature.strip()
    if provided.startswith("sha256="):
        provided = provided[len("sha256="):]
    expected = compute_webhook_signature(payload, secret)
    return hmac.compare_digest(expected.encode("ascii"), provided.lower().encode("utf-8"))
