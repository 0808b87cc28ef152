import math
from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.usuarios.models.model_user import UserModel
from app.api.usuarios.schemas.schema_user import (
    MeResponse,
    Pagination,
    UserListResponse,
    UserResponse,
    UserUpdate,
)
from app.api.usuarios.services.dependencies import get_user_service
from app.api.usuarios.services.service_user import UserService
from app.core.admin_dependencies import get_current_user, require_admin
from app.core.authorization import AuthzContext, require_section
from app.core.sections import SectionKey

router = APIRouter(prefix="/api/users", tags=["Usuários"])

configuracoes_guard = require_section(SectionKey.CONFIGURACOES)


@router.get("", response_model=UserListResponse)
def listar_usuarios(
    search: Optional[str] = Query(None, description="Busca por nome ou email"),
    group_id: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="active | inactive"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    service: UserService = Depends(get_user_service),
    ctx: AuthzContext = Depends(configuracoes_guard),
):
    users, total = service.list_users(search=search, group_id=group_id, status=status, page=page, limit=limit)
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in users],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            totalPages=math.ceil(total / limit) if total else 0,
        ),
    )


@router.get("/me", response_model=MeResponse)
def obter_usuario_atual(
    service: UserService = Depends(get_user_service),
    current_user: UserModel = Depends(get_current_user),
):
    return service.get_me(current_user)


@router.put("/{user_id}", response_model=UserResponse)
def atualizar_usuario(
    user_id: str,
    payload: UserUpdate,
    service: UserService = Depends(get_user_service),
    admin: UserModel = Depends(require_admin),
):
    return service.update_user(user_id, payload.model_dump(exclude_unset=True), actor=admin)
