"""
Tipos y utilidades puras para las respuestas de Notion.

Se mantienen libres de I/O para poder testearlos facilmente.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from app.shared.utils.datetime_utils import DateTimeUtils


def normalize_id(raw_id: Any) -> Optional[str]:
    """
    Normaliza un id de Notion quitando guiones.

    Notion acepta ambos formatos; guardamos siempre la forma compacta para
    que las comparaciones no dependan de cómo llegó el id.
    """
    if not raw_id or not isinstance(raw_id, str):
        return None
    return raw_id.replace("-", "").strip().lower() or None


def parent_database_id(parent: Any) -> Optional[str]:
    """Extrae el id de base de datos del objeto ``parent`` de una página."""
    if not isinstance(parent, dict):
        return None
    return normalize_id(parent.get("database_id"))


def schema_from_database(database: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """
    Construye el esquema cacheado {clave: {type, name}} desde la respuesta
    de ``databases.retrieve``.
    """
    properties = database.get("properties") or {}
    return {
        key: {"type": prop.get("type"), "name": prop.get("name") or key}
        for key, prop in properties.items()
        if isinstance(prop, dict)
    }


def database_title(database: dict[str, Any]) -> str:
    """Texto plano del título de una base de Notion."""
    segments = database.get("title") or []
    return "".join(seg.get("plain_text", "") for seg in segments if isinstance(seg, dict))


@dataclass(frozen=True)
class NotionPage:
    """Página (fila) de una base de Notion, minima para sync."""

    page_id: str
    properties: dict[str, Any]
    database_id: Optional[str] = None
    last_edited_time: Optional[datetime] = None
    icon: Optional[dict[str, Any]] = None
    archived: bool = False
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "NotionPage":
        page_id = normalize_id(payload.get("id"))
        if not page_id:
            # Caso raro; preferimos fallar temprano y visible.
            raise ValueError("Notion devolvió una página sin 'id'")

        return cls(
            page_id=page_id,
            properties=payload.get("properties") or {},
            database_id=parent_database_id(payload.get("parent")),
            last_edited_time=DateTimeUtils.parse_datetime(payload.get("last_edited_time")),
            icon=payload.get("icon"),
            archived=bool(payload.get("archived") or payload.get("in_trash")),
            raw=payload,
        )
