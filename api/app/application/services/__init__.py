"""
Servicios de aplicación.

Contiene el motor de sincronización reutilizable por los casos de uso,
los webhooks y los jobs programados.
"""
from app.application.services.schema_registry import SchemaRegistry, classify_database_name
from app.application.services.full_sync_engine import FullSyncEngine
from app.application.services.webhook_dispatcher import WebhookDispatcher, WebhookResult

__all__ = [
    # Bindings y esquemas
    "SchemaRegistry",
    "classify_database_name",
    # Sincronización
    "FullSyncEngine",
    # Webhooks
    "WebhookDispatcher",
    "WebhookResult",
]
