from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

import httpx

from app.core.sections import SECTIONS, PermissionAction, SectionDef, SectionKey, empty_permissions
from app.utils.logger import logger


class ContextState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    READY_EMPTY = "ready_empty"


class PermissionContext:
    """
    Mapa de permissões do usuário logado, carregado uma vez de `GET /api/users/me`.

    Serve apenas para esconder navegação e botões; a autorização de verdade
    acontece nas rotas da API. Qualquer falha (401, usuário inativo, sem grupo,
    erro de rede) leva ao estado `ready_empty`, com todas as permissões negadas.

        ctx = PermissionContext("https://api.exemplo.com", token)
        await ctx.load()
        if ctx.has_permission("clientes", "delete"):
            ...
    """

    def __init__(
        self,
        base_url: str,
        access_token: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.timeout = timeout
        self.transport = transport

        self.state = ContextState.LOADING
        self._user: Optional[Dict[str, Any]] = None
        self._group: Optional[Dict[str, Any]] = None
        self._permissions: Dict[str, Dict[str, bool]] = empty_permissions()
        self._is_admin = False

    # ───────────────────────────
    # Carga
    # ───────────────────────────

    async def load(self) -> ContextState:
        self.state = ContextState.LOADING
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self.transport,
                headers={"Authorization": f"Bearer {self.access_token}"},
            ) as client:
                response = await client.get("/api/users/me")
        except httpx.HTTPError as e:
            logger.error("[PERMISSOES] Erro de rede ao carregar permissões: %s", e)
            return self._set_empty()

        if response.status_code != 200:
            logger.warning("[PERMISSOES] /api/users/me respondeu %s", response.status_code)
            return self._set_empty()

        try:
            body = response.json()
        except ValueError:
            logger.error("[PERMISSOES] Resposta inválida de /api/users/me")
            return self._set_empty()

        self._user = body.get("user")
        self._group = body.get("group")
        self._is_admin = bool(body.get("is_admin"))
        if not self._group:
            logger.info("[PERMISSOES] Usuário sem grupo: permissões vazias")
            self._permissions = empty_permissions()
            self.state = ContextState.READY_EMPTY
            return self.state

        permissions = empty_permissions()
        for section, flags in (body.get("permissions") or {}).items():
            if section in permissions and isinstance(flags, dict):
                permissions[section].update({k: bool(v) for k, v in flags.items() if k in permissions[section]})
        self._permissions = permissions
        self.state = ContextState.READY
        return self.state

    async def refresh(self) -> ContextState:
        """Recarrega após mudanças no próprio grupo do usuário."""
        return await self.load()

    def _set_empty(self) -> ContextState:
        self._user = None
        self._group = None
        self._is_admin = False
        self._permissions = empty_permissions()
        self.state = ContextState.READY_EMPTY
        return self.state

    # ───────────────────────────
    # Consultas
    # ───────────────────────────

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._user

    @property
    def group(self) -> Optional[Dict[str, Any]]:
        return self._group

    @property
    def is_admin(self) -> bool:
        return self._is_admin

    @property
    def permissions(self) -> Dict[str, Dict[str, bool]]:
        return {section: dict(flags) for section, flags in self._permissions.items()}

    def has_permission(
        self,
        section: Union[SectionKey, str],
        action: Union[PermissionAction, str] = PermissionAction.VIEW,
    ) -> bool:
        if self.state != ContextState.READY:
            return False
        section_key = section.value if isinstance(section, SectionKey) else str(section)
        action_key = action.value if isinstance(action, PermissionAction) else str(action)
        return bool(self._permissions.get(section_key, {}).get(action_key, False))

    def navigation_items(self) -> List[SectionDef]:
        return [s for s in SECTIONS if self.has_permission(s.key, PermissionAction.VIEW)]
