from typing import List

from fastapi import APIRouter, Depends, Response, status

from app.api.usuarios.models.model_user import UserModel
from app.api.usuarios.schemas.schema_group import (
    GroupCreate,
    GroupPermissionsResponse,
    GroupPermissionsUpdate,
    GroupResponse,
    GroupUpdate,
)
from app.api.usuarios.services.dependencies import get_group_service
from app.api.usuarios.services.service_group import GroupService
from app.core.admin_dependencies import get_current_user, require_admin

router = APIRouter(prefix="/api/groups", tags=["Usuários - Grupos"])


def _to_response(group, user_count: int = 0) -> GroupResponse:
    data = GroupResponse.model_validate(group)
    data.user_count = user_count
    return data


@router.get("", response_model=List[GroupResponse])
def listar_grupos(
    service: GroupService = Depends(get_group_service),
    current_user: UserModel = Depends(get_current_user),
):
    return [_to_response(group, count) for group, count in service.list_groups()]


@router.post("", response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def criar_grupo(
    payload: GroupCreate,
    service: GroupService = Depends(get_group_service),
    admin: UserModel = Depends(require_admin),
):
    group = service.create_group(payload.name, payload.description, created_by=admin.id)
    return _to_response(group)


@router.put("/{group_id}", response_model=GroupResponse)
def atualizar_grupo(
    group_id: str,
    payload: GroupUpdate,
    service: GroupService = Depends(get_group_service),
    admin: UserModel = Depends(require_admin),
):
    group = service.update_group(group_id, payload.model_dump(exclude_unset=True))
    return _to_response(group, service.repo.count_users(group.id))


@router.delete("/{group_id}", status_code=status.HTTP_204_NO_CONTENT)
def excluir_grupo(
    group_id: str,
    service: GroupService = Depends(get_group_service),
    admin: UserModel = Depends(require_admin),
):
    service.delete_group(group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{group_id}/permissions", response_model=GroupPermissionsResponse)
def listar_permissoes_grupo(
    group_id: str,
    service: GroupService = Depends(get_group_service),
    current_user: UserModel = Depends(get_current_user),
):
    group = service.get_group(group_id)
    return GroupPermissionsResponse(
        group_id=group.id,
        group_name=group.name,
        permissions=service.get_group_permissions(group.id),
    )


@router.put("/{group_id}/permissions", response_model=GroupPermissionsResponse)
def definir_permissoes_grupo(
    group_id: str,
    payload: GroupPermissionsUpdate,
    service: GroupService = Depends(get_group_service),
    admin: UserModel = Depends(require_admin),
):
    permissions = service.update_group_permissions(group_id, payload.permissions)
    group = service.get_group(group_id)
    return GroupPermissionsResponse(group_id=group.id, group_name=group.name, permissions=permissions)
