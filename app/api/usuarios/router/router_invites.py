from typing import List

from fastapi import APIRouter, Depends, Response, status

from app.api.usuarios.models.model_user import UserModel
from app.api.usuarios.schemas.schema_invite import (
    EMAIL_REGEX,
    InviteCreate,
    InviteCreateResponse,
    InviteResponse,
    InviteTokenRequest,
    InviteValidationData,
    InviteValidationResponse,
)
from app.api.usuarios.services.dependencies import get_invite_service, get_user_service
from app.api.usuarios.services.service_invite import InviteService
from app.api.usuarios.services.service_user import UserService
from app.core.admin_dependencies import AuthIdentity, get_auth_identity, require_admin
from app.core.exceptions import bad_request, forbidden

router = APIRouter(prefix="/api/invites", tags=["Usuários - Convites"])


@router.get("", response_model=List[InviteResponse])
def listar_convites_pendentes(
    service: InviteService = Depends(get_invite_service),
    admin: UserModel = Depends(require_admin),
):
    return [InviteResponse.from_model(i) for i in service.list_pending()]


@router.post("", response_model=InviteCreateResponse, status_code=status.HTTP_201_CREATED)
def criar_convite(
    payload: InviteCreate,
    service: InviteService = Depends(get_invite_service),
    admin: UserModel = Depends(require_admin),
):
    if not payload.email or not EMAIL_REGEX.match(payload.email.strip()):
        raise bad_request("INVALID_EMAIL", "Email inválido")
    if not payload.group_id:
        raise bad_request("INVALID_GROUP", "Grupo é obrigatório")

    result = service.create_invite(payload.email, payload.group_id, invited_by=admin.id)
    return InviteCreateResponse(
        invite=InviteResponse.from_model(result["invite"]),
        email_sent=result["email_sent"],
    )


@router.delete("/{invite_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancelar_convite(
    invite_id: str,
    service: InviteService = Depends(get_invite_service),
    admin: UserModel = Depends(require_admin),
):
    service.cancel_invite(invite_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{invite_id}/resend", response_model=InviteResponse)
def reenviar_convite(
    invite_id: str,
    service: InviteService = Depends(get_invite_service),
    admin: UserModel = Depends(require_admin),
):
    return InviteResponse.from_model(service.resend_invite(invite_id))


@router.post("/validate", response_model=InviteValidationResponse)
def validar_convite(
    payload: InviteTokenRequest,
    service: InviteService = Depends(get_invite_service),
):
    """Endpoint público usado pela página de aceite antes do login."""
    invite = service.validate_invite_token(payload.token)
    if not invite:
        return InviteValidationResponse(valid=False)
    return InviteValidationResponse(
        valid=True,
        data=InviteValidationData(
            email=invite.email,
            group_id=invite.group_id,
            group_name=invite.group.name if invite.group else None,
            expires_at=invite.expires_at,
        ),
    )


@router.post("/accept", response_model=InviteResponse)
def aceitar_convite(
    payload: InviteTokenRequest,
    identity: AuthIdentity = Depends(get_auth_identity),
    service: InviteService = Depends(get_invite_service),
    user_service: UserService = Depends(get_user_service),
):
    # O convidado pode aceitar antes do primeiro sync; nesse caso o usuário é criado aqui
    user = user_service.repo.get_by_auth_id(identity.auth_user_id)
    if user is None:
        if not identity.email:
            raise bad_request("INVALID_TOKEN", "Token de convite inválido ou expirado")
        user = user_service.sync_user(
            identity.auth_user_id,
            identity.email,
            full_name=identity.full_name,
            avatar_url=identity.avatar_url,
        )
    elif not user.is_active:
        raise forbidden("USER_INACTIVE", "Conta de usuário inativa")

    return InviteResponse.from_model(service.accept_invite(payload.token, user))
