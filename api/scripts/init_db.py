"""
Script para inicializar la base de datos.

Crea la tabla de bindings y todas las tablas espejo. En producción se
prefiere ``alembic upgrade head``; este script es útil en desarrollo.
"""
import asyncio
import sys
from pathlib import Path

from loguru import logger

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

from app.infrastructure.database.session import init_db, close_db


async def main():
    """Función principal para inicializar la base de datos."""
    logger.info("Inicializando base de datos...")

    try:
        await init_db()
        logger.success("Base de datos inicializada correctamente")
    except Exception as e:
        logger.error(f"Error al inicializar base de datos: {e}")
        raise
    finally:
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
