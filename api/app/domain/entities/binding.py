"""
Entidad de dominio Binding.

Un binding asocia una base de datos de Notion con un dominio local para un
usuario. Guarda el esquema cacheado y la marca del último sync.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from app.shared.constants.domain_constants import DomainType, SyncMode


@dataclass
class Binding:
    """Entidad que representa una base de Notion conectada a un dominio."""

    user_id: str
    notion_database_id: str
    domain_type: DomainType
    period: str = ""
    database_name: Optional[str] = None
    schema_properties: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    sync_mode: SyncMode = SyncMode.MANUAL
    last_sync: Optional[datetime] = None
    id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __repr__(self) -> str:
        return (
            f"<Binding(id={self.id}, user={self.user_id}, "
            f"db={self.notion_database_id}, domain={self.domain_type.value})>"
        )
