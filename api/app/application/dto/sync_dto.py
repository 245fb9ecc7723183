"""
DTOs relacionados con la sincronización de bases de Notion.
"""
from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from app.domain.entities.sync import SyncSummary


class SyncResponseDTO(BaseModel):
    """Resultado de la sincronización completa de una base."""

    success: bool = Field(..., description="True si no hubo errores por registro")
    domain_type: str = Field(..., description="Dominio sincronizado")
    synced: int = Field(..., description="Registros consistentes con Notion tras la corrida")
    added: int = Field(..., description="Registros nuevos insertados")
    removed: int = Field(..., description="Registros eliminados por no existir ya en Notion")
    modified: int = Field(..., description="Registros existentes actualizados")
    errors: List[str] = Field(default_factory=list, description="Errores por registro (page_id: error)")
    last_sync: Optional[datetime] = Field(None, description="Marca del último sync")

    @classmethod
    def from_summary(cls, summary: SyncSummary) -> "SyncResponseDTO":
        return cls(
            success=summary.success,
            domain_type=summary.domain_type,
            synced=summary.synced,
            added=summary.added,
            removed=summary.removed,
            modified=summary.modified,
            errors=list(summary.errors),
            last_sync=summary.last_sync,
        )


class FinanceSyncResponseDTO(BaseModel):
    """Resultado de sincronizar todas las bases financieras conectadas."""

    success: bool
    results: Dict[str, SyncResponseDTO] = Field(
        default_factory=dict,
        description="Resumen por dominio (activos, lugares, inversiones)"
    )
