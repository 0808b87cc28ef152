from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class SectionKey(str, Enum):
    """Seções da aplicação protegidas por permissão (conjunto fechado)."""

    DASHBOARD = "dashboard"
    CLIENTES = "clientes"
    PROJETOS = "projetos"
    KANBAN = "kanban"
    AGENDA = "agenda"
    ATENDIMENTO = "atendimento"
    ARQUIVOS = "arquivos"
    EMAIL = "email"
    CONFIGURACOES = "configuracoes"


class PermissionAction(str, Enum):
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"


@dataclass(frozen=True)
class SectionDef:
    key: SectionKey
    label: str
    path: str


# Ordem canônica: usada na navegação e nas respostas de matriz de permissões.
SECTIONS: tuple[SectionDef, ...] = (
    SectionDef(SectionKey.DASHBOARD, "Dashboard", "/dashboard"),
    SectionDef(SectionKey.CLIENTES, "Clientes", "/clientes"),
    SectionDef(SectionKey.PROJETOS, "Projetos", "/projetos"),
    SectionDef(SectionKey.KANBAN, "Tarefas", "/kanban"),
    SectionDef(SectionKey.AGENDA, "Agenda", "/agenda"),
    SectionDef(SectionKey.ATENDIMENTO, "Atendimento", "/atendimento"),
    SectionDef(SectionKey.ARQUIVOS, "Arquivos", "/arquivos"),
    SectionDef(SectionKey.EMAIL, "Email", "/email"),
    SectionDef(SectionKey.CONFIGURACOES, "Configurações", "/configuracoes"),
)

ADMIN_GROUP_NAME = "Administrador"

# Verbo HTTP → ação exigida
_METHOD_ACTIONS: Dict[str, PermissionAction] = {
    "GET": PermissionAction.VIEW,
    "HEAD": PermissionAction.VIEW,
    "POST": PermissionAction.CREATE,
    "PUT": PermissionAction.EDIT,
    "PATCH": PermissionAction.EDIT,
    "DELETE": PermissionAction.DELETE,
}


def action_for_method(method: str) -> Optional[PermissionAction]:
    return _METHOD_ACTIONS.get((method or "").upper())


def parse_section(value: str) -> Optional[SectionKey]:
    try:
        return SectionKey(value)
    except ValueError:
        return None


def no_access() -> Dict[str, bool]:
    return {a.value: False for a in PermissionAction}


def full_access() -> Dict[str, bool]:
    return {a.value: True for a in PermissionAction}


def empty_permissions() -> Dict[str, Dict[str, bool]]:
    """Mapa completo com todas as seções negadas."""
    return {s.key.value: no_access() for s in SECTIONS}


def _flags(view=False, create=False, edit=False, delete=False) -> Dict[str, bool]:
    return {"view": view, "create": create, "edit": edit, "delete": delete}


@dataclass(frozen=True)
class DefaultGroupDef:
    name: str
    description: str
    is_default: bool
    permissions: Dict[SectionKey, Dict[str, bool]]


def get_default_groups() -> List[DefaultGroupDef]:
    """
    Grupos criados na inicialização do banco (seed idempotente).

    - Administrador: acesso total.
    - Atendimento: grupo padrão para novos usuários.
    """
    view_only = _flags(view=True)
    return [
        DefaultGroupDef(
            name=ADMIN_GROUP_NAME,
            description="Acesso total ao sistema",
            is_default=False,
            permissions={s.key: full_access() for s in SECTIONS},
        ),
        DefaultGroupDef(
            name="Atendimento",
            description="Equipe de atendimento ao cliente",
            is_default=True,
            permissions={
                SectionKey.DASHBOARD: view_only,
                SectionKey.CLIENTES: view_only,
                SectionKey.PROJETOS: view_only,
                SectionKey.KANBAN: view_only,
                SectionKey.AGENDA: _flags(view=True, create=True, edit=True),
                SectionKey.ATENDIMENTO: _flags(view=True, create=True, edit=True),
                SectionKey.ARQUIVOS: view_only,
                SectionKey.EMAIL: _flags(view=True, create=True),
                SectionKey.CONFIGURACOES: _flags(),
            },
        ),
    ]
