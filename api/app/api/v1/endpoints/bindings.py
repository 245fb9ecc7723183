"""
Endpoints para conectar, listar y desconectar bases de Notion.
"""
from fastapi import APIRouter, Depends, Query, status

from app.api.v1.dependencies.auth_deps import get_current_user_id
from app.api.v1.dependencies.use_case_deps import get_binding_use_cases
from app.application.dto.binding_dto import (
    BindingListResponseDTO,
    BindingResponseDTO,
    ConnectDatabaseRequestDTO,
    ConnectDatabaseResponseDTO,
    DisconnectResponseDTO,
)
from app.application.dto.sync_dto import SyncResponseDTO
from app.application.use_cases.binding_use_cases import BindingUseCases


router = APIRouter(prefix="/bindings", tags=["Bindings"])


@router.post(
    "",
    response_model=ConnectDatabaseResponseDTO,
    status_code=status.HTTP_201_CREATED,
    summary="Conectar una base de Notion"
)
async def connect_database(
    dto: ConnectDatabaseRequestDTO,
    user_id: str = Depends(get_current_user_id),
    use_cases: BindingUseCases = Depends(get_binding_use_cases)
) -> ConnectDatabaseResponseDTO:
    """
    Conecta una base de Notion a un dominio y ejecuta el sync inicial.

    Si no se indica ``domain_type`` se infiere del nombre de la base.
    """
    binding, summary = await use_cases.connect(user_id, dto)
    return ConnectDatabaseResponseDTO(
        binding=BindingResponseDTO.model_validate(binding),
        sync=SyncResponseDTO.from_summary(summary) if summary else None,
    )


@router.get(
    "",
    response_model=BindingListResponseDTO,
    summary="Listar bases conectadas"
)
async def list_bindings(
    user_id: str = Depends(get_current_user_id),
    use_cases: BindingUseCases = Depends(get_binding_use_cases)
) -> BindingListResponseDTO:
    bindings = await use_cases.list_bindings(user_id)
    return BindingListResponseDTO(
        bindings=[BindingResponseDTO.model_validate(b) for b in bindings],
        total=len(bindings),
    )


@router.delete(
    "/{binding_id}",
    response_model=DisconnectResponseDTO,
    summary="Desconectar una base"
)
async def disconnect_database(
    binding_id: int,
    purge: bool = Query(
        default=False,
        description="Si True, también elimina las filas espejadas de la base"
    ),
    user_id: str = Depends(get_current_user_id),
    use_cases: BindingUseCases = Depends(get_binding_use_cases)
) -> DisconnectResponseDTO:
    purged = await use_cases.disconnect(user_id, binding_id, purge=purge)
    return DisconnectResponseDTO(success=True, binding_id=binding_id, purged_records=purged)
