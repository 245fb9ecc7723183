"""
Casos de uso de sincronización por dominio.
Resuelven el binding del usuario y delegan en el motor de sync.
"""
from typing import Dict
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.full_sync_engine import FullSyncEngine
from app.application.services.schema_registry import SchemaRegistry
from app.domain.entities.sync import SyncSummary
from app.infrastructure.external.notion.notion_client import NotionClient
from app.shared.constants.domain_constants import FINANCE_SYNC_ORDER, DomainType, TrackingPeriod
from app.shared.exceptions.domain import BindingNotFoundException


class SyncUseCases:
    """
    Casos de uso para disparar la sincronización completa de un dominio.
    """

    def __init__(self, db: AsyncSession, notion: NotionClient):
        self.db = db
        self.registry = SchemaRegistry(db, notion)
        self.engine = FullSyncEngine(db, notion, self.registry)

    async def sync_domain(self, user_id: str, domain_type: DomainType) -> SyncSummary:
        """
        Sincroniza la base conectada de un dominio.

        Args:
            user_id: ID del usuario
            domain_type: Dominio a sincronizar

        Returns:
            SyncSummary: Resumen de la corrida

        Raises:
            BindingNotFoundException: Si la base no está conectada
        """
        binding = await self.registry.resolve_binding(user_id, domain_type)
        return await self.engine.sync(binding)

    async def sync_tracking(self, user_id: str, period: TrackingPeriod) -> SyncSummary:
        """Sincroniza la base de seguimiento de un periodo."""
        domain_type = DomainType.for_tracking(period)
        binding = await self.registry.resolve_binding(user_id, domain_type, TrackingPeriod(period).value)
        return await self.engine.sync(binding)

    async def sync_finances(self, user_id: str) -> Dict[str, SyncSummary]:
        """
        Sincroniza activos, lugares e inversiones, en ese orden, para que
        las relaciones de inversiones apunten a ids locales ya existentes.
        Las bases financieras no conectadas se omiten.

        Raises:
            BindingNotFoundException: Si no hay ninguna base financiera conectada
        """
        results: Dict[str, SyncSummary] = {}
        for domain_type in FINANCE_SYNC_ORDER:
            try:
                binding = await self.registry.resolve_binding(user_id, domain_type)
            except BindingNotFoundException:
                logger.info(f"Finanzas: {domain_type.value} no conectado, se omite")
                continue
            results[domain_type.value] = await self.engine.sync(binding)

        if not results:
            raise BindingNotFoundException("finanzas", "financial")
        return results
