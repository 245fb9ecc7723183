"""
Repositorio de las tablas espejo (una por dominio).

- UPSERT por (user_id, notion_page_id) con guarda de última edición
- carga de snapshots para el diff
- borrado por lote de páginas removidas
- búsqueda inversa de una página en todas las tablas (webhooks de borrado)

El INSERT ... ON CONFLICT se construye con el dialecto activo (PostgreSQL en
producción, SQLite en tests).
"""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence

from sqlalchemy import delete, func, or_, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.database.models import (
    FinanceAssetModel,
    FinanceInvestmentModel,
    FinancePlaceModel,
    MediaModel,
    PersonModel,
    TodoModel,
    TrackingDailyModel,
    TrackingMonthlyModel,
    TrackingQuarterlyModel,
    TrackingWeeklyModel,
    TrackingYearlyModel,
)
from app.shared.constants.domain_constants import DomainType


MIRROR_MODELS = {
    DomainType.CONTACTS: PersonModel,
    DomainType.MEDIA: MediaModel,
    DomainType.FINANCIAL_ASSET: FinanceAssetModel,
    DomainType.FINANCIAL_PLACE: FinancePlaceModel,
    DomainType.FINANCIAL_INVESTMENT: FinanceInvestmentModel,
    DomainType.TRACKING_DAILY: TrackingDailyModel,
    DomainType.TRACKING_WEEKLY: TrackingWeeklyModel,
    DomainType.TRACKING_MONTHLY: TrackingMonthlyModel,
    DomainType.TRACKING_QUARTERLY: TrackingQuarterlyModel,
    DomainType.TRACKING_YEARLY: TrackingYearlyModel,
    DomainType.TASKS: TodoModel,
}

# Columnas que el upsert nunca sobrescribe
_IMMUTABLE_COLUMNS = {"id", "user_id", "notion_page_id", "created_at"}

_CONFLICT_KEYS = ["user_id", "notion_page_id"]


def mirror_model_for(domain_type: DomainType):
    """Modelo ORM de la tabla espejo de un dominio."""
    return MIRROR_MODELS[DomainType(domain_type)]


class MirrorRepository:
    """Acceso a las tablas espejo con SQLAlchemy async."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self, model):
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(model.__table__)
        if dialect == "sqlite":
            return sqlite.insert(model.__table__)
        raise NotImplementedError(f"Upsert no soportado para el dialecto '{dialect}'")

    def build_upsert(self, model, columns: Sequence[str]):
        """
        INSERT ... ON CONFLICT (user_id, notion_page_id) DO UPDATE.

        Solo actualiza si la edición entrante es igual o más nueva que la
        guardada (o si alguna de las dos es desconocida). Esto evita que un
        sync completo lento pise un cambio más reciente aplicado por webhook.
        """
        table = model.__table__
        stmt = self._insert(model)
        update_cols = {
            col: stmt.excluded[col] for col in columns if col not in _IMMUTABLE_COLUMNS
        }
        return stmt.on_conflict_do_update(
            index_elements=_CONFLICT_KEYS,
            set_=update_cols,
            where=or_(
                stmt.excluded.notion_last_edited_at.is_(None),
                table.c.notion_last_edited_at.is_(None),
                stmt.excluded.notion_last_edited_at >= table.c.notion_last_edited_at,
            ),
        )

    async def upsert_rows(self, model, rows: Sequence[dict[str, Any]]) -> int:
        """
        UPSERT de una o varias filas (executemany). Todas las filas deben
        traer el mismo conjunto de columnas.
        """
        rows = list(rows)
        if not rows:
            return 0

        columns = list(rows[0].keys())
        for key in _CONFLICT_KEYS:
            if key not in columns:
                raise ValueError(f"Falta la columna '{key}' en la fila para UPSERT")

        await self.session.execute(self.build_upsert(model, columns), rows)
        return len(rows)

    async def load_snapshots(
        self, model, user_id: str, notion_database_id: str
    ) -> dict[str, Optional[dict[str, Any]]]:
        """{notion_page_id: notion_snapshot} de las filas espejadas de una base."""
        result = await self.session.execute(
            select(model.notion_page_id, model.notion_snapshot).where(
                model.user_id == user_id,
                model.notion_database_id == notion_database_id,
            )
        )
        return {page_id: snapshot for page_id, snapshot in result.all()}

    async def count_rows(self, model, user_id: str, notion_database_id: str) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(model).where(
                model.user_id == user_id,
                model.notion_database_id == notion_database_id,
            )
        )
        return int(result.scalar_one())

    async def delete_pages(
        self,
        model,
        user_id: str,
        notion_database_id: Optional[str],
        page_ids: Iterable[str],
    ) -> int:
        """Borra en una sola sentencia las páginas indicadas."""
        page_ids = list(page_ids)
        if not page_ids:
            return 0

        stmt = delete(model).where(
            model.user_id == user_id,
            model.notion_page_id.in_(page_ids),
        )
        if notion_database_id:
            stmt = stmt.where(model.notion_database_id == notion_database_id)
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_for_database(self, model, user_id: str, notion_database_id: str) -> int:
        """Purga todas las filas espejadas de una base para un usuario."""
        result = await self.session.execute(
            delete(model).where(
                model.user_id == user_id,
                model.notion_database_id == notion_database_id,
            )
        )
        return result.rowcount or 0

    async def find_page_locations(self, notion_page_id: str) -> list[tuple[DomainType, str, str]]:
        """
        Búsqueda inversa: en qué tablas (y para qué usuario/base) está espejada
        una página. Retorna tuplas (dominio, user_id, notion_database_id).
        """
        locations: list[tuple[DomainType, str, str]] = []
        for domain_type, model in MIRROR_MODELS.items():
            result = await self.session.execute(
                select(model.user_id, model.notion_database_id).where(
                    model.notion_page_id == notion_page_id
                )
            )
            for user_id, database_id in result.all():
                locations.append((domain_type, user_id, database_id))
        return locations

    async def find_local_id(self, model, user_id: str, notion_page_id: str) -> Optional[str]:
        """Id local de una página ya espejada (para resolver relaciones)."""
        result = await self.session.execute(
            select(model.id).where(
                model.user_id == user_id,
                model.notion_page_id == notion_page_id,
            )
        )
        return result.scalars().first()
