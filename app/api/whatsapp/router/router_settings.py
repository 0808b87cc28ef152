from fastapi import APIRouter, Depends

from app.api.usuarios.services.dependencies import get_permission_resolver
from app.api.usuarios.services.service_permissions import PermissionResolver
from app.api.whatsapp.schemas.schema_settings import InstanceSettingsResponse, InstanceSettingsUpdate
from app.api.whatsapp.services.dependencies import get_settings_service
from app.api.whatsapp.services.service_settings import InstanceSettingsService
from app.core.authorization import AuthzContext, require_section
from app.core.sections import SectionKey

router = APIRouter(prefix="/api/whatsapp/settings", tags=["WhatsApp - Configurações"])

atendimento_guard = require_section(SectionKey.ATENDIMENTO)


@router.get("/{instance_id}", response_model=InstanceSettingsResponse)
def obter_configuracoes(
    instance_id: str,
    service: InstanceSettingsService = Depends(get_settings_service),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.get_settings(instance_id, ctx.user, resolver.is_admin(ctx.user_id))


@router.put("/{instance_id}", response_model=InstanceSettingsResponse)
async def atualizar_configuracoes(
    instance_id: str,
    payload: InstanceSettingsUpdate,
    service: InstanceSettingsService = Depends(get_settings_service),
    resolver: PermissionResolver = Depends(get_permission_resolver),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return await service.update_settings(
        instance_id,
        payload.model_dump(exclude_unset=True),
        ctx.user,
        resolver.is_admin(ctx.user_id),
    )
