"""
Implementación del repositorio de bindings usando SQLAlchemy.
"""
from datetime import datetime
from typing import List, Optional
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities.binding import Binding
from app.domain.repositories.binding_repository import IBindingRepository
from app.infrastructure.database.models import BindingModel
from app.infrastructure.external.notion.types import normalize_id
from app.shared.constants.domain_constants import DomainType, SyncMode


class BindingRepositoryImpl(IBindingRepository):
    """Implementación del repositorio de bindings con SQLAlchemy."""

    def __init__(self, session: AsyncSession):
        """
        Inicializa el repositorio con una sesión de base de datos.

        Args:
            session: Sesión de SQLAlchemy
        """
        self.session = session

    async def list_for_user(self, user_id: str) -> List[Binding]:
        result = await self.session.execute(
            select(BindingModel)
            .where(BindingModel.user_id == user_id)
            .order_by(BindingModel.id)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    async def get_by_id(self, binding_id: int) -> Optional[Binding]:
        result = await self.session.execute(
            select(BindingModel).where(BindingModel.id == binding_id)
        )
        row = result.scalar_one_or_none()
        return self._to_entity(row) if row else None

    async def find(
        self,
        user_id: str,
        domain_type: DomainType,
        period: str = ""
    ) -> Optional[Binding]:
        result = await self.session.execute(
            select(BindingModel)
            .where(
                BindingModel.user_id == user_id,
                BindingModel.domain_type == DomainType(domain_type).value,
                BindingModel.period == (period or ""),
            )
            .order_by(BindingModel.id)
        )
        row = result.scalars().first()
        return self._to_entity(row) if row else None

    async def find_by_database_id(self, notion_database_id: str) -> List[Binding]:
        result = await self.session.execute(
            select(BindingModel)
            .where(BindingModel.notion_database_id == normalize_id(notion_database_id))
            .order_by(BindingModel.id)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    async def list_by_sync_mode(self, sync_mode: str) -> List[Binding]:
        result = await self.session.execute(
            select(BindingModel)
            .where(BindingModel.sync_mode == SyncMode(sync_mode).value)
            .order_by(BindingModel.user_id, BindingModel.id)
        )
        return [self._to_entity(row) for row in result.scalars().all()]

    async def upsert(self, binding: Binding) -> Binding:
        """Crea o actualiza por (usuario, base, dominio, periodo)."""
        result = await self.session.execute(
            select(BindingModel).where(
                BindingModel.user_id == binding.user_id,
                BindingModel.notion_database_id == normalize_id(binding.notion_database_id),
                BindingModel.domain_type == binding.domain_type.value,
                BindingModel.period == (binding.period or ""),
            )
        )
        row = result.scalar_one_or_none()

        if row is None:
            row = BindingModel(
                user_id=binding.user_id,
                notion_database_id=normalize_id(binding.notion_database_id),
                domain_type=binding.domain_type.value,
                period=binding.period or "",
            )
            self.session.add(row)

        row.database_name = binding.database_name
        row.schema_properties = binding.schema_properties or {}
        row.sync_mode = SyncMode(binding.sync_mode).value

        await self.session.flush()
        await self.session.refresh(row)
        return self._to_entity(row)

    async def update_schema(
        self,
        binding_id: int,
        schema_properties: dict,
        database_name: Optional[str]
    ) -> None:
        values = {"schema_properties": schema_properties}
        if database_name:
            values["database_name"] = database_name
        await self.session.execute(
            update(BindingModel).where(BindingModel.id == binding_id).values(**values)
        )

    async def touch_last_sync(self, binding_id: int, when: datetime) -> None:
        await self.session.execute(
            update(BindingModel).where(BindingModel.id == binding_id).values(last_sync=when)
        )

    async def delete(self, binding_id: int) -> bool:
        result = await self.session.execute(
            delete(BindingModel).where(BindingModel.id == binding_id)
        )
        return (result.rowcount or 0) > 0

    @staticmethod
    def _to_entity(row: BindingModel) -> Binding:
        """Convierte un modelo de base de datos a entidad."""
        return Binding(
            id=row.id,
            user_id=row.user_id,
            notion_database_id=row.notion_database_id,
            domain_type=DomainType(row.domain_type),
            period=row.period or "",
            database_name=row.database_name,
            schema_properties=dict(row.schema_properties or {}),
            sync_mode=SyncMode(row.sync_mode or SyncMode.MANUAL.value),
            last_sync=row.last_sync,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
