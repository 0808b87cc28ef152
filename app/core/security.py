# app/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt

from app.config.settings import SECRET_KEY, ALGORITHM, JWT_AUDIENCE

# Validação de SECRET_KEY
if not SECRET_KEY or not isinstance(SECRET_KEY, str):
    raise RuntimeError("SECRET_KEY não configurada. Defina SECRET_KEY (ou SUPABASE_JWT_SECRET) no .env.")

DEFAULT_TOKEN_EXPIRE_MINUTES = 60


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decodifica o JWT emitido pelo provedor de autenticação.
    Levanta `jose.JWTError` se a assinatura, expiração ou audience forem inválidas.
    """
    return jwt.decode(
        token,
        SECRET_KEY,
        algorithms=[ALGORITHM],
        audience=JWT_AUDIENCE,
        options={"verify_aud": bool(JWT_AUDIENCE), "verify_sub": False},
    )


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Emite um token no mesmo formato do provedor (uso em scripts e testes)."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=DEFAULT_TOKEN_EXPIRE_MINUTES))
    to_encode.update({
        "exp": expire,
        # garante que sempre é string:
        "sub": str(to_encode.get("sub", "")),
    })
    if JWT_AUDIENCE and "aud" not in to_encode:
        to_encode["aud"] = JWT_AUDIENCE
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
