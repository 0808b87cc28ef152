from fastapi import APIRouter, Depends

from app.api.usuarios.schemas.schema_user import UserResponse, UserSyncRequest
from app.api.usuarios.services.dependencies import get_user_service
from app.api.usuarios.services.service_user import UserService
from app.core.admin_dependencies import AuthIdentity, get_auth_identity
from app.core.exceptions import forbidden

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/sync", response_model=UserResponse)
def sincronizar_usuario(
    payload: UserSyncRequest | None = None,
    identity: AuthIdentity = Depends(get_auth_identity),
    service: UserService = Depends(get_user_service),
):
    """
    Chamado após o login: cria o usuário interno no primeiro acesso
    (grupo padrão) ou atualiza nome/avatar e `last_access`.
    """
    payload = payload or UserSyncRequest()
    user = service.sync_user(
        identity.auth_user_id,
        identity.email or "",
        full_name=payload.full_name or identity.full_name,
        avatar_url=payload.avatar_url or identity.avatar_url,
    )
    if not user.is_active:
        raise forbidden("USER_INACTIVE", "Conta de usuário inativa")
    return user
