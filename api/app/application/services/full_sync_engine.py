"""
Motor de sincronización Notion -> tablas espejo.

Diseno (resumen):
- Refresca el esquema del binding (fallback al cacheado)
- Trae todas las páginas por cursor, una página de resultados a la vez
- Diff contra el espejo usando la proyección de ChangeDetector
- UPSERT solo de nuevas y modificadas; DELETE de las removidas
- Actualiza last_sync del binding

Estrategia ante fallos:
- Sin transacción que abarque la corrida: cada escritura se confirma sola.
- Un registro que falla se revierte, se anota en ``errors`` y se sigue.
- En el primer sync (espejo vacío) se inserta por lotes; si un lote falla
  se reintenta registro a registro para aislar al culpable.
- Re-ejecutar es seguro: el UPSERT por (user_id, notion_page_id) es idempotente.
"""

from __future__ import annotations

from typing import Any, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services import change_detector
from app.application.services.domain_mappers import build_row
from app.application.services.schema_registry import SchemaRegistry
from app.core.config import settings
from app.domain.entities.binding import Binding
from app.domain.entities.sync import SyncSummary
from app.infrastructure.external.notion.notion_client import NotionClient
from app.infrastructure.external.notion.types import NotionPage
from app.infrastructure.repositories.mirror_repository import MirrorRepository, mirror_model_for
from app.shared.constants.domain_constants import DomainType
from app.shared.utils.datetime_utils import DateTimeUtils


class FullSyncEngine:
    """
    Orquestador de la sincronización de un binding.
    """

    def __init__(
        self,
        db: AsyncSession,
        notion: NotionClient,
        registry: SchemaRegistry,
        *,
        mirror: Optional[MirrorRepository] = None,
        initial_batch_size: Optional[int] = None,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> None:
        self.db = db
        self.notion = notion
        self.registry = registry
        self.mirror = mirror or MirrorRepository(db)
        self._initial_batch_size = initial_batch_size or settings.SYNC_INITIAL_BATCH_SIZE
        self._page_size = page_size or settings.SYNC_PAGE_SIZE
        self._max_pages = max_pages or settings.SYNC_MAX_PAGES

    async def sync(self, binding: Binding) -> SyncSummary:
        """
        Ejecuta una sincronización completa del binding.

        Los errores de Notion al traer páginas abortan la corrida (nada se
        modifica); los errores por registro se acumulan en el resumen.
        """
        domain_type = DomainType(binding.domain_type)
        logger.info(
            f"Sync completo: Notion {binding.notion_database_id} -> "
            f"{domain_type.value} (usuario {binding.user_id})"
        )

        binding = await self.registry.refresh_schema(binding)
        pages = await self._fetch_pages(binding)
        model = mirror_model_for(domain_type)

        mirrored = await self.mirror.load_snapshots(
            model, binding.user_id, binding.notion_database_id
        )
        projections = {
            page.page_id: change_detector.normalize_record(page.properties)
            for page in pages.values()
        }
        change_set = change_detector.compute_change_set(projections, mirrored)
        logger.info(
            f"Diff {domain_type.value}: +{len(change_set.added)} "
            f"~{len(change_set.modified)} -{len(change_set.removed)} "
            f"={len(change_set.unchanged)}"
        )

        summary = SyncSummary(domain_type=domain_type.value)
        synced_at = DateTimeUtils.now_utc()

        rows: list[dict[str, Any]] = []
        for page_id, page in pages.items():
            if page_id not in change_set.to_write:
                continue
            try:
                rows.append(await self._row_for(binding, page, projections[page_id], synced_at))
            except Exception as e:
                await self.db.rollback()
                self._record_error(summary, page_id, e)

        if mirrored:
            written = await self._write_sequential(model, rows, summary)
        else:
            written = await self._write_batched(model, rows, summary)

        summary.added = len(written & change_set.added)
        summary.modified = len(written & change_set.modified)
        summary.removed = await self._delete_removed(binding, model, change_set.removed, summary)
        summary.synced = len(change_set.unchanged) + len(written)

        binding = await self.registry.touch_last_sync(binding, synced_at)
        summary.last_sync = binding.last_sync

        logger.info(
            f"Sync {domain_type.value} completado: synced={summary.synced} "
            f"added={summary.added} modified={summary.modified} "
            f"removed={summary.removed} errors={len(summary.errors)}"
        )
        return summary

    async def sync_single_page(self, binding: Binding, page: NotionPage) -> None:
        """
        Camino incremental (webhooks): refresca esquema y hace UPSERT de una
        sola página. Los errores se propagan al llamador.
        """
        binding = await self.registry.refresh_schema(binding)
        model = mirror_model_for(binding.domain_type)
        projection = change_detector.normalize_record(page.properties)
        row = await self._row_for(binding, page, projection, DateTimeUtils.now_utc())
        try:
            await self.mirror.upsert_rows(model, [row])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        logger.info(
            f"Página {page.page_id} sincronizada en {binding.domain_type.value} "
            f"(usuario {binding.user_id})"
        )

    async def _fetch_pages(self, binding: Binding) -> dict[str, NotionPage]:
        """Páginas de la base en orden de cursor, indexadas por id."""
        pages: dict[str, NotionPage] = {}
        async for page in self.notion.iter_database_pages(
            binding.notion_database_id,
            page_size=self._page_size,
            max_pages=self._max_pages,
        ):
            if page.archived:
                continue
            pages[page.page_id] = page
        return pages

    async def _row_for(
        self,
        binding: Binding,
        page: NotionPage,
        projection: dict[str, Any],
        synced_at,
    ) -> dict[str, Any]:
        async def resolve(target: DomainType, notion_page_id: str) -> Optional[str]:
            return await self.mirror.find_local_id(
                mirror_model_for(target), binding.user_id, notion_page_id
            )

        row = await build_row(
            binding.domain_type,
            page,
            schema=binding.schema_properties,
            user_id=binding.user_id,
            notion_database_id=binding.notion_database_id,
            period=binding.period,
            resolve_relation=resolve,
        )
        row.update({
            "notion_snapshot": projection,
            "notion_last_edited_at": page.last_edited_time,
            "last_synced_at": synced_at,
            "updated_at": synced_at,
        })
        return row

    async def _write_one(self, model, row: dict[str, Any], summary: SyncSummary) -> bool:
        try:
            await self.mirror.upsert_rows(model, [row])
            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            self._record_error(summary, row["notion_page_id"], e)
            return False

    async def _write_sequential(self, model, rows: list[dict[str, Any]], summary: SyncSummary) -> set[str]:
        """UPSERT registro a registro, cada uno confirmado por separado."""
        written: set[str] = set()
        for row in rows:
            if await self._write_one(model, row, summary):
                written.add(row["notion_page_id"])
        return written

    async def _write_batched(self, model, rows: list[dict[str, Any]], summary: SyncSummary) -> set[str]:
        """Inserción inicial por lotes con fallback registro a registro."""
        written: set[str] = set()
        size = self._initial_batch_size
        for start in range(0, len(rows), size):
            batch = rows[start:start + size]
            try:
                await self.mirror.upsert_rows(model, batch)
                await self.db.commit()
                written.update(row["notion_page_id"] for row in batch)
            except Exception as e:
                await self.db.rollback()
                logger.warning(
                    f"Lote {start // size + 1} falló ({e}); reintentando registro a registro"
                )
                written |= await self._write_sequential(model, batch, summary)
        return written

    async def _delete_removed(self, binding: Binding, model, removed: set[str], summary: SyncSummary) -> int:
        if not removed:
            return 0
        try:
            deleted = await self.mirror.delete_pages(
                model, binding.user_id, binding.notion_database_id, removed
            )
            await self.db.commit()
            return deleted
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error borrando {len(removed)} página(s) removidas: {e}")
            summary.errors.append(f"delete: {e}")
            return 0

    @staticmethod
    def _record_error(summary: SyncSummary, page_id: str, error: Exception) -> None:
        logger.error(f"Error sincronizando página {page_id}: {error}")
        summary.errors.append(f"{page_id}: {error}")
