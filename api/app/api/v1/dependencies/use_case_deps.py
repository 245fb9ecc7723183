"""
Dependencias para inyección de casos de uso.
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.webhook_dispatcher import WebhookDispatcher
from app.application.use_cases.binding_use_cases import BindingUseCases
from app.application.use_cases.sync_use_cases import SyncUseCases
from app.infrastructure.database.session import get_db
from app.infrastructure.external.notion.notion_client import NotionClient


def get_notion_client() -> NotionClient:
    """
    Dependencia para obtener el cliente de Notion configurado por entorno.

    Returns:
        NotionClient: Cliente HTTP de Notion
    """
    return NotionClient()


async def get_sync_use_cases(
    db: AsyncSession = Depends(get_db),
    notion: NotionClient = Depends(get_notion_client)
) -> SyncUseCases:
    """
    Dependencia para obtener los casos de uso de sincronización.

    Args:
        db: Sesión de base de datos
        notion: Cliente de Notion

    Returns:
        SyncUseCases: Instancia de casos de uso
    """
    return SyncUseCases(db, notion)


async def get_binding_use_cases(
    db: AsyncSession = Depends(get_db),
    notion: NotionClient = Depends(get_notion_client)
) -> BindingUseCases:
    """
    Dependencia para obtener los casos de uso de bases conectadas.

    Args:
        db: Sesión de base de datos
        notion: Cliente de Notion

    Returns:
        BindingUseCases: Instancia de casos de uso
    """
    return BindingUseCases(db, notion)


async def get_webhook_dispatcher(
    db: AsyncSession = Depends(get_db),
    notion: NotionClient = Depends(get_notion_client)
) -> WebhookDispatcher:
    """Dependencia para obtener el despachador de webhooks de Notion."""
    return WebhookDispatcher(db, notion)
