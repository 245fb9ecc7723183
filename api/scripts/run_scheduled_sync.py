"""
CLI: sincronización programada Notion -> tablas espejo.

Uso recomendado:
  - Ejecutar como job (cron/systemd timer) cada
    SCHEDULED_SYNC_INTERVAL_MINUTES minutos.
  - No se integra al request/response del API para no bloquear workers.

Recorre los bindings con ``sync_mode=scheduled`` y ejecuta un sync
completo por cada uno. Un binding que falla no detiene a los demas.

Variables de entorno requeridas:
  - NOTION_API_KEY
  - DATABASE_URL

Ejecución:
  python scripts/run_scheduled_sync.py
  python scripts/run_scheduled_sync.py --user-id <id>
  python scripts/run_scheduled_sync.py --domain tasks
  python scripts/run_scheduled_sync.py --all-modes
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

# Permite ejecutar este script desde cualquier cwd sin configurar PYTHONPATH.
# La carpeta "api" contiene el paquete raíz `app/`.
_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))

_REPO_ROOT = _API_ROOT.parent
load_dotenv(_API_ROOT / ".env", override=False)
load_dotenv(_REPO_ROOT / ".env", override=False)

from app.application.services.full_sync_engine import FullSyncEngine
from app.application.services.schema_registry import SchemaRegistry
from app.infrastructure.database.session import AsyncSessionLocal, close_db
from app.infrastructure.external.notion.notion_client import NotionClient
from app.infrastructure.repositories.binding_repository_impl import BindingRepositoryImpl
from app.shared.constants.domain_constants import DomainType, SyncMode


async def run(user_id: str | None, domain: str | None, all_modes: bool) -> int:
    """
    Ejecuta el sync de los bindings seleccionados.

    Returns:
        int: 0 si todo fue bien, 1 si algún binding falló o tuvo errores
    """
    notion = NotionClient()
    failures = 0

    async with AsyncSessionLocal() as session:
        repository = BindingRepositoryImpl(session)
        if all_modes:
            modes = [mode.value for mode in SyncMode]
        else:
            modes = [SyncMode.SCHEDULED.value]

        bindings = []
        for mode in modes:
            bindings.extend(await repository.list_by_sync_mode(mode))

        if user_id:
            bindings = [b for b in bindings if b.user_id == user_id]
        if domain:
            bindings = [b for b in bindings if b.domain_type == DomainType(domain)]

        logger.info(f"Sync programado: {len(bindings)} binding(s) a procesar")

        registry = SchemaRegistry(session, notion, repository)
        engine = FullSyncEngine(session, notion, registry)

        for binding in bindings:
            try:
                summary = await engine.sync(binding)
            except Exception as e:
                await session.rollback()
                failures += 1
                logger.error(f"Sync programado falló para {binding!r}: {e}")
                continue

            if not summary.success:
                failures += 1
                logger.warning(
                    f"Sync de {binding!r} con {len(summary.errors)} error(es) por registro"
                )

    return 1 if failures else 0


def main() -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--user-id", default=None, help="Solo los bindings de este usuario.")
    parser.add_argument(
        "--domain",
        default=None,
        choices=[d.value for d in DomainType],
        help="Solo los bindings de este dominio.",
    )
    parser.add_argument(
        "--all-modes",
        action="store_true",
        help="Incluye también los bindings en modo manual.",
    )
    args = parser.parse_args()

    async def _main() -> int:
        try:
            return await run(args.user_id, args.domain, args.all_modes)
        finally:
            await close_db()

    return asyncio.run(_main())


if __name__ == "__main__":
    raise SystemExit(main())
