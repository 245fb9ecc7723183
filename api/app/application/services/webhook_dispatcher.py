"""
Despacho de webhooks de Notion.

Flujo:
1. JSON inválido -> 200 ``{ok: false}``
2. Payload de verificación (solo ``verification_token``) -> 200 ``{ok: true}``
3. Si hay secreto configurado, la firma ``X-Notion-Signature`` debe ser
   ``sha256=<hmac hex del cuerpo>``; si no coincide -> 401 sin mutaciones
4. Resuelve la base de datos de la página (parent del evento, o leyendo la
   página; para borrados sin base, búsqueda inversa en las tablas espejo)
5. Fan-out a todos los bindings de esa base (cualquier usuario/dominio)

Salvo el rechazo por firma, siempre se responde 200 para que Notion no
reintente: los errores internos se registran en el log.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.services.full_sync_engine import FullSyncEngine
from app.application.services.schema_registry import SchemaRegistry
from app.core.config import settings
from app.core.security import security_service
from app.infrastructure.external.notion.notion_client import NotionClient
from app.infrastructure.external.notion.types import NotionPage, normalize_id
from app.infrastructure.repositories.mirror_repository import MirrorRepository, mirror_model_for


# Sufijos de evento aceptados; se admiten los prefijos "page." y "record."
EVENT_CREATED = "created"
EVENT_PROPERTIES_UPDATED = "properties_updated"
EVENT_CONTENT_UPDATED = "content_updated"
EVENT_DELETED = "deleted"

_SUPPORTED_ACTIONS = {
    EVENT_CREATED,
    EVENT_PROPERTIES_UPDATED,
    EVENT_CONTENT_UPDATED,
    EVENT_DELETED,
}
_EVENT_PREFIXES = ("page.", "record.")


@dataclass
class WebhookResult:
    """Respuesta HTTP que debe devolver el endpoint."""

    status_code: int
    body: dict[str, Any] = field(default_factory=dict)


def parse_event_action(event_type: Any) -> Optional[str]:
    """``page.properties_updated`` -> ``properties_updated``; otros -> None."""
    if not isinstance(event_type, str):
        return None
    for prefix in _EVENT_PREFIXES:
        if event_type.startswith(prefix):
            action = event_type[len(prefix):]
            return action if action in _SUPPORTED_ACTIONS else None
    return None


def is_verification_payload(payload: dict[str, Any]) -> bool:
    """Notion envía ``{verification_token}`` al crear la suscripción."""
    return "verification_token" in payload and len(payload) <= 2


def database_id_from_event(payload: dict[str, Any]) -> Optional[str]:
    """Id de base del ``data.parent`` del evento, si el parent es una base."""
    data = payload.get("data")
    if not isinstance(data, dict):
        return None
    parent = data.get("parent")
    if not isinstance(parent, dict) or parent.get("type") != "database":
        return None
    return normalize_id(parent.get("id") or parent.get("database_id"))


class WebhookDispatcher:
    """
    Procesa notificaciones de Notion y aplica sync incremental.
    """

    def __init__(
        self,
        db: AsyncSession,
        notion: NotionClient,
        *,
        registry: Optional[SchemaRegistry] = None,
        engine: Optional[FullSyncEngine] = None,
        mirror: Optional[MirrorRepository] = None,
        secret: Optional[str] = None,
    ) -> None:
        self.db = db
        self.notion = notion
        self.registry = registry or SchemaRegistry(db, notion)
        self.mirror = mirror or MirrorRepository(db)
        self.engine = engine or FullSyncEngine(db, notion, self.registry, mirror=self.mirror)
        self.secret = settings.NOTION_WEBHOOK_SECRET if secret is None else secret

    async def handle(self, raw_body: bytes, signature: Optional[str]) -> WebhookResult:
        """
        Punto de entrada del webhook.

        Args:
            raw_body: Cuerpo crudo (la firma se calcula sobre estos bytes)
            signature: Valor de la cabecera X-Notion-Signature
        """
        try:
            payload = json.loads(raw_body or b"")
        except ValueError:
            logger.warning("Webhook de Notion con JSON inválido")
            return WebhookResult(200, {"ok": False, "error": "invalid_json"})

        if not isinstance(payload, dict):
            logger.warning("Webhook de Notion con payload no objeto")
            return WebhookResult(200, {"ok": False, "error": "invalid_payload"})

        if is_verification_payload(payload):
            # El operador copia este token al configurar la suscripción
            logger.info(f"Token de verificación de webhook Notion: {payload.get('verification_token')}")
            return WebhookResult(200, {"ok": True})

        if self.secret and not security_service.verify_webhook_signature(
            self.secret, raw_body, signature
        ):
            logger.warning("Webhook de Notion rechazado: firma inválida o ausente")
            return WebhookResult(401, {"error": "invalid_signature"})

        try:
            return await self._dispatch(payload)
        except Exception as e:
            logger.exception(f"Error procesando webhook de Notion: {e}")
            return WebhookResult(200, {"ok": False})

    async def _dispatch(self, payload: dict[str, Any]) -> WebhookResult:
        event_type = payload.get("type")
        action = parse_event_action(event_type)
        if action is None:
            logger.debug(f"Evento de Notion ignorado: {event_type!r}")
            return WebhookResult(200, {"ok": True, "ignored": True})

        entity = payload.get("entity") if isinstance(payload.get("entity"), dict) else {}
        page_id = normalize_id(entity.get("id"))
        if not page_id or entity.get("type", "page") != "page":
            return WebhookResult(200, {"ok": True, "ignored": True})

        database_id = database_id_from_event(payload)

        if action == EVENT_DELETED:
            removed = await self._handle_delete(page_id, database_id)
            return WebhookResult(200, {"ok": True, "removed": removed})

        page: Optional[NotionPage] = None
        if not database_id:
            page = NotionPage.from_api(await self.notion.retrieve_page(page_id))
            database_id = page.database_id
        if not database_id:
            logger.debug(f"Página {page_id} sin base de datos padre; evento descartado")
            return WebhookResult(200, {"ok": True, "ignored": True})

        bindings = await self.registry.find_bindings_for_database(database_id)
        if not bindings:
            logger.debug(f"Base {database_id} sin bindings; evento descartado")
            return WebhookResult(200, {"ok": True, "ignored": True})

        if page is None:
            page = NotionPage.from_api(await self.notion.retrieve_page(page_id))

        if page.archived:
            removed = await self._handle_delete(page_id, database_id)
            return WebhookResult(200, {"ok": True, "removed": removed})

        processed = 0
        failures = 0
        for binding in bindings:
            try:
                await self.engine.sync_single_page(binding, page)
                processed += 1
            except Exception as e:
                failures += 1
                logger.error(
                    f"Webhook: fallo sync de página {page_id} para {binding!r}: {e}"
                )

        return WebhookResult(200, {"ok": failures == 0, "processed": processed})

    async def _handle_delete(self, page_id: str, database_id: Optional[str]) -> int:
        """Borra la página en cada tabla espejo donde esté registrada."""
        removed = 0
        if database_id:
            for binding in await self.registry.find_bindings_for_database(database_id):
                removed += await self.mirror.delete_pages(
                    mirror_model_for(binding.domain_type),
                    binding.user_id,
                    binding.notion_database_id,
                    [page_id],
                )
        else:
            # Sin base conocida: búsqueda inversa por notion_page_id
            for domain_type, user_id, mirrored_database_id in await self.mirror.find_page_locations(page_id):
                removed += await self.mirror.delete_pages(
                    mirror_model_for(domain_type), user_id, mirrored_database_id, [page_id]
                )
        await self.db.commit()
        logger.info(f"Webhook: página {page_id} eliminada de {removed} fila(s) espejo")
        return removed
