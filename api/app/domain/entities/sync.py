"""
Entidades del ciclo de sincronización.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Set


@dataclass
class ChangeSet:
    """
    Resultado de comparar lo traido de Notion contra el espejo local.

    Los ids son ``notion_page_id`` normalizados (sin guiones).
    """

    added: Set[str] = field(default_factory=set)
    removed: Set[str] = field(default_factory=set)
    modified: Set[str] = field(default_factory=set)
    unchanged: Set[str] = field(default_factory=set)

    @property
    def to_write(self) -> Set[str]:
        """Ids que requieren upsert (nuevos o modificados)."""
        return self.added | self.modified

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


@dataclass
class SyncSummary:
    """Resumen de una corrida de sincronización completa."""

    domain_type: str
    added: int = 0
    removed: int = 0
    modified: int = 0
    synced: int = 0
    errors: List[str] = field(default_factory=list)
    last_sync: Optional[datetime] = None

    @property
    def success(self) -> bool:
        return not self.errors
