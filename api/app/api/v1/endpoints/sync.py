"""
Endpoints para sincronización completa de bases de Notion.
"""
from fastapi import APIRouter, Depends, status
from loguru import logger

from app.api.v1.dependencies.auth_deps import get_current_user_id
from app.api.v1.dependencies.use_case_deps import get_sync_use_cases
from app.application.dto.sync_dto import FinanceSyncResponseDTO, SyncResponseDTO
from app.application.use_cases.sync_use_cases import SyncUseCases
from app.shared.constants.domain_constants import DomainType, TrackingPeriod


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "/finances",
    response_model=FinanceSyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar bases financieras"
)
async def sync_finances(
    user_id: str = Depends(get_current_user_id),
    use_cases: SyncUseCases = Depends(get_sync_use_cases)
) -> FinanceSyncResponseDTO:
    """
    Sincroniza activos, lugares e inversiones (en ese orden).

    Returns:
        FinanceSyncResponseDTO con el resumen por dominio
    """
    results = await use_cases.sync_finances(user_id)
    dtos = {domain: SyncResponseDTO.from_summary(summary) for domain, summary in results.items()}
    return FinanceSyncResponseDTO(
        success=all(dto.success for dto in dtos.values()),
        results=dtos,
    )


@router.post(
    "/tracking/{period}",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar base de seguimiento"
)
async def sync_tracking(
    period: TrackingPeriod,
    user_id: str = Depends(get_current_user_id),
    use_cases: SyncUseCases = Depends(get_sync_use_cases)
) -> SyncResponseDTO:
    """Sincroniza la base de seguimiento del periodo indicado."""
    logger.info(f"Sync de seguimiento {period.value} solicitado por {user_id}")
    summary = await use_cases.sync_tracking(user_id, period)
    return SyncResponseDTO.from_summary(summary)


@router.post(
    "/{domain_type}",
    response_model=SyncResponseDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincronizar base de un dominio"
)
async def sync_domain(
    domain_type: DomainType,
    user_id: str = Depends(get_current_user_id),
    use_cases: SyncUseCases = Depends(get_sync_use_cases)
) -> SyncResponseDTO:
    """
    Ejecuta la sincronización completa de la base conectada al dominio.

    La sincronización:
    - Refresca el esquema de la base
    - Inserta páginas nuevas y actualiza las modificadas
    - Elimina las filas cuyas páginas ya no existen en Notion
    - Los errores por registro no abortan la corrida; se listan en ``errors``
    """
    logger.info(f"Sync de {domain_type.value} solicitado por {user_id}")
    summary = await use_cases.sync_domain(user_id, domain_type)
    return SyncResponseDTO.from_summary(summary)
