"""
Utilidades para manejo de fechas y horas.
"""
from datetime import date, datetime, timezone
from typing import Any, Optional


class DateTimeUtils:
    """Clase de utilidades para operaciones con fechas y horas."""

    @staticmethod
    def now_utc() -> datetime:
        """
        Obtiene la fecha y hora actual en UTC.

        Returns:
            datetime: Fecha y hora actual en UTC
        """
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """Normaliza un datetime a UTC (aware); los naive se asumen UTC."""
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def parse_datetime(value: Any) -> Optional[datetime]:
        """
        Convierte un string ISO 8601 (con ``Z`` o con offset) a datetime UTC.

        Las fechas sin hora (``YYYY-MM-DD``) se interpretan a medianoche UTC.

        Returns:
            Optional[datetime]: Objeto datetime o None si no se puede parsear
        """
        if isinstance(value, datetime):
            return DateTimeUtils.ensure_utc(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        if not isinstance(value, str) or not value:
            return None
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return DateTimeUtils.ensure_utc(parsed)

    @staticmethod
    def parse_date(value: Any) -> Optional[date]:
        """Extrae solo la fecha (sin hora) de un string ISO 8601."""
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str) or len(value) < 10:
            return None
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            return None

    @staticmethod
    def to_iso_string(dt: Optional[datetime]) -> Optional[str]:
        """Convierte un datetime a string ISO 8601 (None pasa como None)."""
        return dt.isoformat() if dt else None
