from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.api.usuarios.models.model_group import GroupModel
from app.api.usuarios.repositories.repo_group import GroupRepository
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.core.exceptions import bad_request, conflict, not_found
from app.core.sections import SECTIONS, get_default_groups, parse_section
from app.utils.database_utils import require_uuid
from app.utils.logger import logger

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 50

_FLAG_FIELDS = ("can_view", "can_create", "can_edit", "can_delete")


class GroupService:
    def __init__(self, db: Session, resolver: PermissionResolver):
        self.db = db
        self.repo = GroupRepository(db)
        self.resolver = resolver

    # ───────────── Helpers ─────────────
    @staticmethod
    def _validate_name(name: Any) -> str:
        if not isinstance(name, str) or not name.strip():
            raise bad_request("INVALID_NAME", "Nome é obrigatório e deve ser texto")
        trimmed = name.strip()
        if not (NAME_MIN_LENGTH <= len(trimmed) <= NAME_MAX_LENGTH):
            raise bad_request(
                "INVALID_NAME_LENGTH",
                f"Nome deve ter entre {NAME_MIN_LENGTH} e {NAME_MAX_LENGTH} caracteres",
            )
        return trimmed

    def _ensure_unique_name(self, name: str, exclude_id: Optional[str] = None) -> None:
        if self.repo.get_by_name(name, exclude_id=exclude_id):
            raise conflict("NAME_EXISTS", "Já existe um grupo com este nome")

    def get_group(self, group_id: str) -> GroupModel:
        require_uuid(group_id, "ID de grupo inválido")
        group = self.repo.get(group_id)
        if not group:
            raise not_found("GROUP_NOT_FOUND", "Grupo não encontrado")
        return group

    # ───────────── CRUD ─────────────
    def list_groups(self) -> List[Tuple[GroupModel, int]]:
        return self.repo.list_with_user_count()

    def create_group(self, name: Any, description: Optional[str], created_by: Optional[str]) -> GroupModel:
        trimmed = self._validate_name(name)
        self._ensure_unique_name(trimmed)

        group = self.repo.create(
            GroupModel(
                name=trimmed,
                description=(description or "").strip() or None,
                is_default=False,
                created_by=created_by,
            )
        )
        logger.info("[GRUPOS] Grupo criado id=%s name=%s por user_id=%s", group.id, group.name, created_by)
        return group

    def update_group(self, group_id: str, data: Dict[str, Any]) -> GroupModel:
        group = self.get_group(group_id)

        changes: Dict[str, Any] = {}
        if "name" in data:
            trimmed = self._validate_name(data.get("name"))
            self._ensure_unique_name(trimmed, exclude_id=group.id)
            changes["name"] = trimmed
        if "description" in data:
            changes["description"] = (data.get("description") or "").strip() or None

        if not changes:
            return group

        group = self.repo.update(group, changes)
        # O nome "Administrador" define acesso admin; renomear afeta todos os membros
        self.resolver.invalidate()
        return group

    def delete_group(self, group_id: str) -> None:
        group = self.get_group(group_id)

        user_count = self.repo.count_users(group.id)
        if user_count > 0:
            raise conflict(
                "GROUP_HAS_USERS",
                f"Não é possível excluir o grupo: {user_count} usuário(s) vinculado(s)",
                details={"userCount": user_count},
            )

        self.repo.delete(group)
        self.resolver.invalidate()
        logger.info("[GRUPOS] Grupo excluído id=%s", group_id)

    # ───────────── Matriz de permissões ─────────────
    def get_group_permissions(self, group_id: str) -> List[Dict[str, Any]]:
        group = self.get_group(group_id)
        stored = {row.section_key: row for row in self.repo.list_permissions(group.id)}

        result = []
        for section in SECTIONS:
            row = stored.get(section.key.value)
            result.append({
                "section_key": section.key.value,
                "section_label": section.label,
                "can_view": bool(row.can_view) if row else False,
                "can_create": bool(row.can_create) if row else False,
                "can_edit": bool(row.can_edit) if row else False,
                "can_delete": bool(row.can_delete) if row else False,
            })
        return result

    @staticmethod
    def normalize_permission_rows(permissions: Any) -> List[Dict[str, Any]]:
        """
        Valida a matriz recebida e aplica a promoção automática de `can_view`.

        Retorna apenas as linhas que serão persistidas (com `can_view`).
        """
        if not isinstance(permissions, list):
            raise bad_request("INVALID_PERMISSIONS", "Permissões devem ser uma lista")

        rows: Dict[str, Dict[str, Any]] = {}
        for item in permissions:
            if not isinstance(item, dict):
                raise bad_request("INVALID_PERMISSIONS", "Formato de permissão inválido")

            section = parse_section(item.get("section_key"))
            if section is None:
                raise bad_request(
                    "INVALID_SECTION",
                    f"Seção inválida: {item.get('section_key')}",
                    details={"section_key": item.get("section_key")},
                )

            flags = {field: bool(item.get(field, False)) for field in _FLAG_FIELDS}
            if flags["can_create"] or flags["can_edit"] or flags["can_delete"]:
                flags["can_view"] = True

            rows[section.value] = {"section_key": section.value, **flags}

        persisted = [row for row in rows.values() if row["can_view"]]
        if not persisted:
            raise bad_request(
                "NO_SECTIONS_SELECTED",
                "Selecione ao menos uma seção com permissão de visualização",
            )
        return persisted

    def update_group_permissions(self, group_id: str, permissions: Any) -> List[Dict[str, Any]]:
        group = self.get_group(group_id)
        rows = self.normalize_permission_rows(permissions)

        self.repo.replace_permissions(group.id, rows)
        self.resolver.invalidate()
        logger.info(
            "[PERMISSOES] Permissões do grupo %s atualizadas: %s",
            group.name,
            sorted(row["section_key"] for row in rows),
        )
        return self.get_group_permissions(group.id)

    # ───────────── Seed ─────────────
    def seed_default_groups(self) -> None:
        """Cria os grupos padrão se ainda não existirem (idempotente)."""
        for definition in get_default_groups():
            if self.repo.get_by_name(definition.name):
                continue

            group = self.repo.create(
                GroupModel(
                    name=definition.name,
                    description=definition.description,
                    is_default=definition.is_default,
                )
            )
            rows = [
                {
                    "section_key": key.value,
                    "can_view": flags["view"],
                    "can_create": flags["create"],
                    "can_edit": flags["edit"],
                    "can_delete": flags["delete"],
                }
                for key, flags in definition.permissions.items()
                if flags["view"]
            ]
            self.repo.replace_permissions(group.id, rows)
            logger.info("[GRUPOS] Grupo padrão criado: %s (%s seções)", definition.name, len(rows))
