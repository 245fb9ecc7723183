"""
Manejadores de eventos de inicio y cierre de la aplicación.
"""
from typing import Callable
from fastapi import FastAPI
from loguru import logger

from app.core.config import settings
from app.infrastructure.database.session import init_db, close_db


def startup_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de inicio de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asincrona de inicio
    """
    async def startup() -> None:
        """Inicializa recursos al inicio de la aplicación."""
        try:
            logger.info(f"Iniciando {settings.APP_NAME} v{settings.APP_VERSION}")
            logger.info(f"Entorno: {settings.ENVIRONMENT}")

            _validate_config()

            # Crea las tablas de bindings y espejos si no existen
            await init_db()
            logger.info("Base de datos inicializada")

            logger.add(
                settings.LOG_FILE,
                rotation="500 MB",
                retention="10 days",
                level=settings.LOG_LEVEL
            )

            logger.success("Aplicación iniciada correctamente")

        except Exception as e:
            logger.error(f"Error durante startup: {e}")
            logger.exception("Detalle del error:")
            raise

    return startup


def _validate_config() -> None:
    """Valida que la configuración crítica este presente."""
    warnings = []

    if not settings.NOTION_API_KEY:
        warnings.append("NOTION_API_KEY no configurada - la sincronización con Notion fallará")

    if not settings.NOTION_WEBHOOK_SECRET:
        warnings.append(
            "NOTION_WEBHOOK_SECRET no configurado - los webhooks se aceptan sin verificar firma"
        )

    if not settings.INTERNAL_SYNC_SECRET:
        warnings.append("INTERNAL_SYNC_SECRET no configurado - el disparo interno de sync está deshabilitado")

    for warning in warnings:
        logger.warning(f"CONFIG: {warning}")


def shutdown_handler(app: FastAPI) -> Callable:
    """
    Manejador de eventos de cierre de la aplicación.

    Args:
        app: Instancia de FastAPI

    Returns:
        Callable: Función asincrona de cierre
    """
    async def shutdown() -> None:
        """Libera recursos al cerrar la aplicación."""
        logger.info("Cerrando aplicación...")

        await close_db()
        logger.info("Conexiones de base de datos cerradas")

        logger.success("Aplicación cerrada correctamente")

    return shutdown
