from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from fastapi import Depends, Request, status

from app.api.usuarios.models.model_user import UserModel
from app.api.usuarios.services.dependencies import get_permission_resolver
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.core.admin_dependencies import get_current_user
from app.core.exceptions import ApiError, forbidden
from app.core.sections import PermissionAction, SectionKey, action_for_method
from app.utils.logger import logger


@dataclass(frozen=True)
class AuthzContext:
    user: UserModel
    section: SectionKey
    action: PermissionAction
    permissions: Dict[str, Dict[str, bool]]

    @property
    def user_id(self) -> str:
        return self.user.id


def require_section(section: SectionKey):
    """
    Dependency factory: exige a permissão da seção para a ação derivada do verbo HTTP.

        guard = require_section(SectionKey.CLIENTES)

        @router.delete("/{id}")
        def excluir(id: str, ctx: AuthzContext = Depends(guard)):
            ...
    """
    section = SectionKey(section)

    def dependency(
        request: Request,
        current_user: UserModel = Depends(get_current_user),
        resolver: PermissionResolver = Depends(get_permission_resolver),
    ) -> AuthzContext:
        action = action_for_method(request.method)
        if action is None:
            raise ApiError(status.HTTP_405_METHOD_NOT_ALLOWED, "INVALID_METHOD", "Método HTTP inválido")

        permissions = resolver.get_user_permissions(current_user.id)
        flags = permissions.get(section.value) or {}
        if not flags.get(action.value, False):
            logger.warning(
                "[PERMISSION_DENIED] user_id=%s email=%s section=%s action=%s %s %s",
                current_user.id,
                current_user.email,
                section.value,
                action.value,
                request.method,
                request.url.path,
            )
            raise forbidden(
                "FORBIDDEN",
                "Permissão negada",
                details={
                    "section": section.value,
                    "action": action.value,
                    "message": f"Você não tem permissão para {action.value} em {section.value}",
                },
            )

        return AuthzContext(user=current_user, section=section, action=action, permissions=permissions)

    return dependency
