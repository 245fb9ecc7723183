"""
Constantes de los dominios espejados desde Notion.
"""
from enum import Enum
from typing import Optional


class TrackingPeriod(str, Enum):
    """Periodos de las bases de seguimiento."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class DomainType(str, Enum):
    """Dominios que puede representar una base de Notion conectada."""
    CONTACTS = "contacts"
    MEDIA = "media"
    FINANCIAL_ASSET = "financial-asset"
    FINANCIAL_PLACE = "financial-place"
    FINANCIAL_INVESTMENT = "financial-investment"
    TRACKING_DAILY = "tracking-daily"
    TRACKING_WEEKLY = "tracking-weekly"
    TRACKING_MONTHLY = "tracking-monthly"
    TRACKING_QUARTERLY = "tracking-quarterly"
    TRACKING_YEARLY = "tracking-yearly"
    TASKS = "tasks"

    @classmethod
    def for_tracking(cls, period: TrackingPeriod) -> "DomainType":
        return cls(f"tracking-{TrackingPeriod(period).value}")

    @property
    def is_tracking(self) -> bool:
        return self.value.startswith("tracking-")

    @property
    def period(self) -> Optional[TrackingPeriod]:
        if not self.is_tracking:
            return None
        return TrackingPeriod(self.value.split("-", 1)[1])


class SyncMode(str, Enum):
    """Como se dispara la sincronización completa de un binding."""
    MANUAL = "manual"
    SCHEDULED = "scheduled"


# Dominios financieros en orden de dependencia (las inversiones referencian
# activos y lugares)
FINANCE_SYNC_ORDER = (
    DomainType.FINANCIAL_ASSET,
    DomainType.FINANCIAL_PLACE,
    DomainType.FINANCIAL_INVESTMENT,
)

# Nombres legibles para mensajes de error
DOMAIN_LABELS = {
    DomainType.CONTACTS: "contactos",
    DomainType.MEDIA: "media",
    DomainType.FINANCIAL_ASSET: "activos",
    DomainType.FINANCIAL_PLACE: "lugares (net worth)",
    DomainType.FINANCIAL_INVESTMENT: "inversiones",
    DomainType.TRACKING_DAILY: "seguimiento diario",
    DomainType.TRACKING_WEEKLY: "seguimiento semanal",
    DomainType.TRACKING_MONTHLY: "seguimiento mensual",
    DomainType.TRACKING_QUARTERLY: "seguimiento trimestral",
    DomainType.TRACKING_YEARLY: "seguimiento anual",
    DomainType.TASKS: "tareas (To-Do List)",
}

# Palabras clave (minúsculas) para resolver bindings por nombre cuando no
# hay coincidencia exacta de dominio
SOFT_MATCH_KEYWORDS = {
    DomainType.TASKS: ("to-do", "todo", "action", "task"),
    DomainType.CONTACTS: ("people", "contact"),
}

# Título por defecto cuando la página no tiene propiedad title
UNTITLED = "Untitled"
