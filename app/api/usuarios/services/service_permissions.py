"""
Resolução de permissões por grupo.

O mapa resolvido tem o formato `{section_key: {view, create, edit, delete}}`
e cobre todas as seções do catálogo. Usuário sem grupo recebe `{}`.
"""
from copy import deepcopy
from typing import Dict, Optional

from sqlalchemy.orm import Session

from app.api.usuarios.repositories.repo_group import GroupRepository
from app.api.usuarios.repositories.repo_user import UserRepository
from app.core.cache import TTLCache
from app.core.sections import ADMIN_GROUP_NAME, PermissionAction, SectionKey, empty_permissions
from app.utils.logger import logger

PermissionMap = Dict[str, Dict[str, bool]]


class PermissionResolver:
    def __init__(self, db: Session, cache: TTLCache):
        self.db = db
        self.cache = cache
        self.user_repo = UserRepository(db)
        self.group_repo = GroupRepository(db)

    def get_user_permissions(self, user_id: str) -> PermissionMap:
        cached = self.cache.get(user_id)
        if cached is not None:
            return deepcopy(cached)

        try:
            user = self.user_repo.get(user_id)
            if user is None:
                return {}
            if not user.group_id:
                self.cache.set(user_id, {})
                return {}

            permissions = empty_permissions()
            for row in self.group_repo.list_permissions(user.group_id):
                if row.section_key in permissions:
                    permissions[row.section_key] = row.as_flags()
        except Exception as e:
            # Falha fechada: sem permissões
            logger.error("[PERMISSOES] Erro ao resolver permissões user_id=%s: %s", user_id, e)
            self.db.rollback()
            return {}

        self.cache.set(user_id, permissions)
        return deepcopy(permissions)

    def has_permission(self, user_id: str, section: SectionKey, action: PermissionAction) -> bool:
        permissions = self.get_user_permissions(user_id)
        flags = permissions.get(SectionKey(section).value)
        if not flags:
            return False
        return bool(flags.get(PermissionAction(action).value, False))

    def is_admin(self, user_id: str) -> bool:
        try:
            user = self.user_repo.get(user_id)
        except Exception as e:
            logger.error("[PERMISSOES] Erro ao verificar admin user_id=%s: %s", user_id, e)
            self.db.rollback()
            return False
        return bool(user and user.group and user.group.name == ADMIN_GROUP_NAME)

    def invalidate(self, user_id: Optional[str] = None) -> None:
        if user_id is None:
            self.cache.clear()
        else:
            self.cache.delete(user_id)
