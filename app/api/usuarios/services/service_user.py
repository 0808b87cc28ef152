from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.api.usuarios.models.model_user import UserModel, UserStatus
from app.api.usuarios.repositories.repo_group import GroupRepository
from app.api.usuarios.repositories.repo_user import UserRepository
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.core.exceptions import bad_request, conflict, forbidden, not_found
from app.core.sections import ADMIN_GROUP_NAME
from app.utils.database_utils import is_valid_uuid, require_uuid, utcnow
from app.utils.logger import logger

_VALID_STATUSES = {s.value for s in UserStatus}


class UserService:
    def __init__(self, db: Session, resolver: PermissionResolver):
        self.db = db
        self.repo = UserRepository(db)
        self.group_repo = GroupRepository(db)
        self.resolver = resolver

    def get_user(self, user_id: str) -> UserModel:
        require_uuid(user_id, "ID de usuário inválido")
        user = self.repo.get(user_id)
        if not user:
            raise not_found("USER_NOT_FOUND", "Usuário não encontrado")
        return user

    def list_users(
        self,
        search: Optional[str] = None,
        group_id: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: int = 50,
    ) -> Tuple[List[UserModel], int]:
        if status and status not in _VALID_STATUSES:
            raise bad_request("INVALID_STATUS", 'Status inválido. Use "active" ou "inactive"')
        return self.repo.search(search=search, group_id=group_id, status=status, page=page, limit=limit)

    def get_me(self, user: UserModel) -> Dict[str, Any]:
        if not user.is_active:
            raise forbidden("USER_INACTIVE", "Usuário inativo")
        return {
            "user": user,
            "group": user.group,
            "permissions": self.resolver.get_user_permissions(user.id),
            "is_admin": bool(user.group and user.group.name == ADMIN_GROUP_NAME),
        }

    def _is_last_active_admin(self, user: UserModel) -> bool:
        if not user.is_active or not user.group or user.group.name != ADMIN_GROUP_NAME:
            return False
        return self.repo.count_active_admins(ADMIN_GROUP_NAME) <= 1

    def update_user(self, user_id: str, data: Dict[str, Any], actor: UserModel) -> UserModel:
        user = self.get_user(user_id)
        changes: Dict[str, Any] = {}
        invalidate = False

        if "group_id" in data:
            new_group_id = data.get("group_id")
            if new_group_id:
                group = self.group_repo.get(str(new_group_id)) if is_valid_uuid(new_group_id) else None
                if not group:
                    raise not_found("GROUP_NOT_FOUND", "Grupo não encontrado")
                new_group_name = group.name
                new_group_id = group.id
            else:
                new_group_id = None
                new_group_name = None

            if new_group_id != user.group_id:
                # Tirar o último admin ativo do grupo Administrador também deixaria o sistema sem admin
                if new_group_name != ADMIN_GROUP_NAME and self._is_last_active_admin(user):
                    raise self._last_admin_error()
                changes["group_id"] = new_group_id
                invalidate = True
                logger.info(
                    "[USUARIOS] Grupo de %s alterado de %s para %s por admin %s",
                    user.email,
                    user.group.name if user.group else "nenhum",
                    new_group_name or "nenhum",
                    actor.id,
                )

        if "status" in data and data.get("status") is not None:
            new_status = data.get("status")
            if new_status not in _VALID_STATUSES:
                raise bad_request("INVALID_STATUS", 'Status inválido. Use "active" ou "inactive"')

            if new_status == UserStatus.INACTIVE.value and self._is_last_active_admin(user):
                raise self._last_admin_error()

            if new_status != user.status:
                changes["status"] = new_status
                logger.info(
                    "[USUARIOS] Status de %s alterado de %s para %s por admin %s",
                    user.email,
                    user.status,
                    new_status,
                    actor.id,
                )
                if new_status == UserStatus.INACTIVE.value:
                    invalidate = True

        if not changes:
            return user

        user = self.repo.update(user, changes)
        if invalidate:
            self.resolver.invalidate(user.id)
        return user

    def sync_user(
        self,
        auth_user_id: str,
        email: str,
        full_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> UserModel:
        """
        Sincroniza a identidade autenticada com a tabela `users`.

        - Existe: atualiza email/nome/avatar e `last_access`.
        - Não existe: cria com o grupo padrão e status ativo.
        """
        if not email:
            raise bad_request("INVALID_EMAIL", "Email é obrigatório para sincronizar o usuário")

        name = (full_name or "").strip() or email.split("@")[0]
        user = self.repo.get_by_auth_id(auth_user_id)
        if user:
            return self.repo.update(user, {
                "email": email,
                "full_name": name,
                "avatar_url": avatar_url if avatar_url is not None else user.avatar_url,
                "last_access": utcnow(),
            })

        default_group = self.group_repo.get_default()
        user = self.repo.create(UserModel(
            auth_user_id=auth_user_id,
            email=email,
            full_name=name,
            avatar_url=avatar_url,
            group_id=default_group.id if default_group else None,
            status=UserStatus.ACTIVE.value,
            last_access=utcnow(),
        ))
        logger.info(
            "[USUARIOS] Usuário criado no primeiro acesso: %s (grupo=%s)",
            email,
            default_group.name if default_group else "nenhum",
        )
        return user

    @staticmethod
    def _last_admin_error():
        return conflict(
            "LAST_ADMIN",
            "Não é possível desativar o último usuário administrador",
            details={"message": "Pelo menos um administrador deve permanecer ativo no sistema."},
        )
