# app/core/admin_dependencies.py

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request
from jose import JWTError
from sqlalchemy.orm import Session

from app.api.usuarios.models.model_user import UserModel
from app.api.usuarios.repositories.repo_user import UserRepository
from app.api.usuarios.services.dependencies import get_permission_resolver
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.core.exceptions import forbidden, not_found, unauthorized
from app.core.security import decode_access_token
from app.database.db_connection import get_db
from app.utils.logger import logger


@dataclass(frozen=True)
class AuthIdentity:
    """Identidade do provedor de autenticação (claims do JWT)."""

    auth_user_id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None


def get_auth_identity(request: Request) -> AuthIdentity:
    """
    Recupera a identidade autenticada a partir do header Authorization (Bearer <token>).
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        logger.warning("[AUTH] Cabeçalho Authorization ausente ou malformado.")
        raise unauthorized()

    access_token = auth_header[len("Bearer "):].strip()

    try:
        payload = decode_access_token(access_token)
    except JWTError as e:
        logger.warning(f"[AUTH] Erro ao decodificar JWT: {e}")
        raise unauthorized("Sessão inválida ou expirada")

    raw_sub = payload.get("sub")
    if not raw_sub:
        raise unauthorized("Sessão inválida ou expirada")

    metadata = payload.get("user_metadata") or {}
    return AuthIdentity(
        auth_user_id=str(raw_sub),
        email=payload.get("email"),
        full_name=metadata.get("full_name") or metadata.get("name"),
        avatar_url=metadata.get("avatar_url"),
    )


def get_current_user(
    identity: AuthIdentity = Depends(get_auth_identity),
    db: Session = Depends(get_db),
) -> UserModel:
    """
    Usuário interno (tabela `users`) ligado à identidade autenticada.
    """
    user = UserRepository(db).get_by_auth_id(identity.auth_user_id)
    if not user:
        raise not_found("USER_NOT_FOUND", "Usuário não encontrado")

    if not user.is_active:
        logger.warning("[AUTH] Usuário inativo tentou acessar: %s", user.email)
        raise forbidden("USER_INACTIVE", "Conta de usuário inativa")

    return user


def require_admin(
    current_user: UserModel = Depends(get_current_user),
    resolver: PermissionResolver = Depends(get_permission_resolver),
) -> UserModel:
    """
    Atalho para rotas de gestão de grupos/usuários/convites (grupo "Administrador").
    """
    if not resolver.is_admin(current_user.id):
        logger.warning("[AUTH] Acesso negado. user_id=%s tentou acessar rota admin.", current_user.id)
        raise forbidden("ADMIN_REQUIRED", "Acesso restrito a administradores")
    return current_user
