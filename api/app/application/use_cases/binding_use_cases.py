"""
Casos de uso para conectar, listar y desconectar bases de Notion.
"""
from typing import List, Optional, Tuple
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dto.binding_dto import ConnectDatabaseRequestDTO
from app.application.services.full_sync_engine import FullSyncEngine
from app.application.services.schema_registry import SchemaRegistry, classify_database_name
from app.domain.entities.binding import Binding
from app.domain.entities.sync import SyncSummary
from app.infrastructure.external.notion.notion_client import NotionClient
from app.infrastructure.external.notion.types import database_title, normalize_id, schema_from_database
from app.infrastructure.repositories.mirror_repository import MirrorRepository, mirror_model_for
from app.shared.constants.domain_constants import DomainType
from app.shared.exceptions.domain import InvalidDomainException, ValidationException


class BindingUseCases:
    """
    Casos de uso para gestión de bases de Notion conectadas.
    """

    def __init__(self, db: AsyncSession, notion: NotionClient):
        self.db = db
        self.notion = notion
        self.registry = SchemaRegistry(db, notion)
        self.mirror = MirrorRepository(db)
        self.engine = FullSyncEngine(db, notion, self.registry, mirror=self.mirror)

    async def connect(
        self,
        user_id: str,
        dto: ConnectDatabaseRequestDTO
    ) -> Tuple[Binding, Optional[SyncSummary]]:
        """
        Conecta una base de Notion a un dominio del usuario.

        Realiza el flujo completo:
        1. Lee la base en Notion (título y esquema)
        2. Determina el dominio (explícito o inferido del nombre)
        3. Guarda el binding
        4. Ejecuta el sync inicial si se pidio

        Raises:
            ValidationException: Si el id no es válido o falta el periodo
            InvalidDomainException: Si no se puede inferir el dominio
            NotionApiException: Si Notion no devuelve la base
        """
        database_id = normalize_id(dto.database_id)
        if not database_id:
            raise ValidationException("ID de base de Notion inválido", field="database_id")

        database = await self.notion.retrieve_database(database_id)
        name = database_title(database)

        domain_type = dto.domain_type or classify_database_name(
            name, dto.period.value if dto.period else None
        )
        if domain_type is None:
            raise InvalidDomainException(
                f"No se pudo inferir el dominio de la base '{name}'. Indica domain_type.",
                valid_values=[d.value for d in DomainType],
            )
        domain_type = DomainType(domain_type)

        period = dto.period.value if dto.period else None
        if domain_type.is_tracking:
            expected = domain_type.period.value
            if period and period != expected:
                raise ValidationException(
                    f"El periodo '{period}' no coincide con el dominio {domain_type.value}",
                    field="period",
                )
            period = expected
        elif period:
            raise ValidationException(
                "El periodo solo aplica a bases de seguimiento", field="period"
            )

        binding = await self.registry.upsert_binding(
            user_id,
            database_id,
            domain_type,
            period=period,
            database_name=name,
            schema_properties=schema_from_database(database),
            sync_mode=dto.sync_mode,
        )
        logger.info(f"Base '{name}' conectada como {domain_type.value} para {user_id}")

        summary = None
        if dto.initial_sync:
            summary = await self.engine.sync(binding)
        return binding, summary

    async def list_bindings(self, user_id: str) -> List[Binding]:
        """Obtiene las bases conectadas del usuario."""
        return await self.registry.list_bindings(user_id)

    async def disconnect(self, user_id: str, binding_id: int, purge: bool = False) -> int:
        """
        Desconecta una base. Con ``purge`` también borra sus filas espejo.

        Returns:
            int: Filas espejo eliminadas
        """
        binding = await self.registry.remove_binding(user_id, binding_id)
        if not purge:
            return 0

        purged = await self.mirror.delete_for_database(
            mirror_model_for(binding.domain_type),
            binding.user_id,
            binding.notion_database_id,
        )
        await self.db.commit()
        logger.info(f"Purga de {binding!r}: {purged} fila(s) eliminadas")
        return purged
