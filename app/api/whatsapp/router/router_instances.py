from typing import List

from fastapi import APIRouter, Depends, Response, status

from app.api.whatsapp.schemas.schema_instance import InstanceConnectResponse, InstanceCreate, InstanceResponse
from app.api.whatsapp.services.dependencies import get_instance_service
from app.api.whatsapp.services.service_instance import InstanceService
from app.core.authorization import AuthzContext, require_section
from app.core.sections import SectionKey

router = APIRouter(prefix="/api/whatsapp/instances", tags=["WhatsApp - Instâncias"])

atendimento_guard = require_section(SectionKey.ATENDIMENTO)


@router.get("", response_model=List[InstanceResponse])
def listar_instancias(
    service: InstanceService = Depends(get_instance_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.list_instances()


@router.get("/{instance_id}", response_model=InstanceResponse)
def obter_instancia(
    instance_id: str,
    service: InstanceService = Depends(get_instance_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return service.get_instance(instance_id)


@router.post("", response_model=InstanceResponse, status_code=status.HTTP_201_CREATED)
async def criar_instancia(
    payload: InstanceCreate,
    service: InstanceService = Depends(get_instance_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return await service.create_instance(payload.display_name, created_by=ctx.user_id)


@router.post("/{instance_id}/connect", response_model=InstanceConnectResponse)
async def conectar_instancia(
    instance_id: str,
    service: InstanceService = Depends(get_instance_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return await service.connect_instance(instance_id)


@router.post("/{instance_id}/disconnect", response_model=InstanceResponse)
async def desconectar_instancia(
    instance_id: str,
    service: InstanceService = Depends(get_instance_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    return await service.disconnect_instance(instance_id)


@router.delete("/{instance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def excluir_instancia(
    instance_id: str,
    service: InstanceService = Depends(get_instance_service),
    ctx: AuthzContext = Depends(atendimento_guard),
):
    await service.delete_instance(instance_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
