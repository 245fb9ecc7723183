"""
Registro de bindings y esquemas de Notion.

Responsable de:
- resolver que base de Notion corresponde a un dominio de un usuario
- inferir el dominio de una base a partir de su nombre
- refrescar el esquema cacheado (con fallback al cache si Notion falla)
- crear, listar y eliminar bindings
"""
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.domain.entities.binding import Binding
from app.domain.repositories.binding_repository import IBindingRepository
from app.infrastructure.external.notion.notion_client import NotionClient
from app.infrastructure.external.notion.types import database_title, normalize_id, schema_from_database
from app.infrastructure.repositories.binding_repository_impl import BindingRepositoryImpl
from app.shared.constants.domain_constants import (
    DOMAIN_LABELS,
    SOFT_MATCH_KEYWORDS,
    DomainType,
    SyncMode,
    TrackingPeriod,
)
from app.shared.exceptions.domain import BindingNotFoundException, EntityNotFoundException
from app.shared.exceptions.external import NotionApiException
from app.shared.utils.datetime_utils import DateTimeUtils


def classify_database_name(name: Optional[str], period: Optional[str] = None) -> Optional[DomainType]:
    """
    Infiere el dominio de una base por su nombre.

    Orden de evaluación: periodo explícito, contactos, media, tareas,
    seguimiento por periodo, activos, lugares, inversiones.

    Returns:
        Optional[DomainType]: Dominio inferido o None si no hay pista
    """
    if period:
        return DomainType.for_tracking(TrackingPeriod(period))

    lowered = (name or "").lower()
    if not lowered:
        return None

    if any(kw in lowered for kw in SOFT_MATCH_KEYWORDS[DomainType.CONTACTS]):
        return DomainType.CONTACTS
    if "media" in lowered:
        return DomainType.MEDIA
    if any(kw in lowered for kw in SOFT_MATCH_KEYWORDS[DomainType.TASKS]):
        return DomainType.TASKS
    if "tracking" in lowered:
        for tracking_period in TrackingPeriod:
            if tracking_period.value in lowered:
                return DomainType.for_tracking(tracking_period)
    if "asset" in lowered:
        return DomainType.FINANCIAL_ASSET
    if "place" in lowered or "net worth" in lowered:
        return DomainType.FINANCIAL_PLACE
    if "investment" in lowered:
        return DomainType.FINANCIAL_INVESTMENT
    return None


def _soft_matches(binding: Binding, domain_type: DomainType) -> bool:
    keywords = SOFT_MATCH_KEYWORDS.get(domain_type)
    if not keywords:
        return False
    lowered = (binding.database_name or "").lower()
    return any(kw in lowered for kw in keywords)


class SchemaRegistry:
    """
    Registro de bases de Notion conectadas por usuario y dominio.
    """

    def __init__(
        self,
        db: AsyncSession,
        notion: NotionClient,
        repository: Optional[IBindingRepository] = None,
    ):
        self.db = db
        self.notion = notion
        self.repository = repository or BindingRepositoryImpl(db)

    async def resolve_binding(
        self,
        user_id: str,
        domain_type: DomainType,
        period: Optional[str] = None,
    ) -> Binding:
        """
        Obtiene el binding de un usuario para un dominio.

        Primero busca coincidencia exacta de (dominio, periodo). Para tareas
        y contactos, si no hay, acepta una base cuyo nombre contenga alguna
        palabra clave ("Action Items" -> tareas). El binding devuelto se
        reasigna al dominio pedido para que el sync escriba en su tabla.

        Raises:
            BindingNotFoundException: Si el usuario no conectó esa base
        """
        domain_type = DomainType(domain_type)
        period_value = period or (domain_type.period.value if domain_type.period else "")

        binding = await self.repository.find(user_id, domain_type, period_value)
        if binding:
            return binding

        if domain_type in SOFT_MATCH_KEYWORDS:
            for candidate in await self.repository.list_for_user(user_id):
                if _soft_matches(candidate, domain_type):
                    logger.info(
                        f"Binding de {domain_type.value} resuelto por nombre: "
                        f"'{candidate.database_name}' ({candidate.notion_database_id})"
                    )
                    return replace(candidate, domain_type=domain_type, period="")

        raise BindingNotFoundException(
            DOMAIN_LABELS.get(domain_type, domain_type.value),
            domain_type.value,
            period_value or None,
        )

    async def refresh_schema(self, binding: Binding) -> Binding:
        """
        Vuelve a leer las propiedades de la base en Notion y reemplaza el
        esquema cacheado. Si Notion falla se sigue con el cache.
        """
        try:
            database = await self.notion.retrieve_database(binding.notion_database_id)
        except NotionApiException as e:
            logger.warning(
                f"No se pudo refrescar el esquema de {binding.notion_database_id}; "
                f"se usa el cacheado: {e.message}"
            )
            return binding

        schema = schema_from_database(database)
        name = database_title(database) or binding.database_name
        if binding.id is not None and (
            schema != binding.schema_properties or name != binding.database_name
        ):
            await self.repository.update_schema(binding.id, schema, name)
            await self.db.commit()

        binding.schema_properties = schema
        binding.database_name = name
        return binding

    async def upsert_binding(
        self,
        user_id: str,
        notion_database_id: str,
        domain_type: DomainType,
        *,
        period: Optional[str] = None,
        database_name: Optional[str] = None,
        schema_properties: Optional[dict] = None,
        sync_mode: SyncMode = SyncMode.MANUAL,
    ) -> Binding:
        """Crea o actualiza un binding (idempotente por clave compuesta)."""
        domain_type = DomainType(domain_type)
        binding = await self.repository.upsert(Binding(
            user_id=user_id,
            notion_database_id=normalize_id(notion_database_id),
            domain_type=domain_type,
            period=period or (domain_type.period.value if domain_type.period else ""),
            database_name=database_name,
            schema_properties=schema_properties or {},
            sync_mode=SyncMode(sync_mode),
        ))
        await self.db.commit()
        logger.info(f"Binding guardado: {binding!r}")
        return binding

    async def remove_binding(self, user_id: str, binding_id: int) -> Binding:
        """
        Elimina un binding del usuario.

        Raises:
            EntityNotFoundException: Si no existe o pertenece a otro usuario
        """
        binding = await self.repository.get_by_id(binding_id)
        if binding is None or binding.user_id != user_id:
            raise EntityNotFoundException("Binding", binding_id)

        await self.repository.delete(binding_id)
        await self.db.commit()
        logger.info(f"Binding eliminado: {binding!r}")
        return binding

    async def list_bindings(self, user_id: str) -> List[Binding]:
        return await self.repository.list_for_user(user_id)

    async def find_bindings_for_database(self, notion_database_id: str) -> List[Binding]:
        """Todos los bindings (de cualquier usuario/dominio) de una base."""
        return await self.repository.find_by_database_id(notion_database_id)

    async def touch_last_sync(self, binding: Binding, when: Optional[datetime] = None) -> Binding:
        when = when or DateTimeUtils.now_utc()
        if binding.id is not None:
            await self.repository.touch_last_sync(binding.id, when)
            await self.db.commit()
        binding.last_sync = when
        return binding
