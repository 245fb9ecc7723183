"""
DTOs relacionados con bases de Notion conectadas.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.application.dto.sync_dto import SyncResponseDTO
from app.shared.constants.domain_constants import DomainType, SyncMode, TrackingPeriod


class ConnectDatabaseRequestDTO(BaseModel):
    """DTO para conectar una base de Notion a un dominio."""

    database_id: str = Field(..., min_length=1, description="ID de la base en Notion (con o sin guiones)")
    domain_type: Optional[DomainType] = Field(
        None, description="Dominio destino; si falta se infiere del nombre de la base"
    )
    period: Optional[TrackingPeriod] = Field(None, description="Periodo para bases de seguimiento")
    sync_mode: SyncMode = Field(SyncMode.MANUAL, description="manual o scheduled")
    initial_sync: bool = Field(True, description="Ejecutar la sincronización inicial al conectar")


class BindingResponseDTO(BaseModel):
    """DTO de respuesta para un binding."""

    id: int
    notion_database_id: str
    domain_type: DomainType
    period: str
    database_name: Optional[str]
    schema_properties: Dict[str, Dict[str, Any]]
    sync_mode: SyncMode
    last_sync: Optional[datetime]
    created_at: Optional[datetime] = None

    class Config:
        """Configuración de Pydantic."""
        from_attributes = True


class ConnectDatabaseResponseDTO(BaseModel):
    """Binding creado y, si se pidio, el resultado del sync inicial."""

    binding: BindingResponseDTO
    sync: Optional[SyncResponseDTO] = None


class BindingListResponseDTO(BaseModel):
    """DTO de respuesta para lista de bindings."""

    bindings: List[BindingResponseDTO]
    total: int


class DisconnectResponseDTO(BaseModel):
    """Resultado de desconectar una base."""

    success: bool
    binding_id: int
    purged_records: int = Field(0, description="Filas espejo eliminadas (solo con purge=true)")
