"""
Detección de cambios entre una página de Notion y su fila espejada.

Se compara una proyección estable de las propiedades (no los valores ya
decodificados, que pierden información como el ``end`` de una fecha o el
color de una opción). La proyección es JSON puro y se persiste en
``notion_snapshot`` para el siguiente diff.

Reglas de la proyección:
- texto: segmentos ``{text, href}``
- select/status: ``{id, name, color}``; multi_select en el orden de origen
- fecha: ``{start, end, time_zone}``
- archivos: sin URLs firmadas de archivos alojados (expiran en cada lectura)
- relation/people: listas de ids
- timestamps y autores quedan excluidos
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from app.domain.entities.sync import ChangeSet


EXCLUDED_TYPES = frozenset({
    "created_time",
    "last_edited_time",
    "created_by",
    "last_edited_by",
})


def _option(value: Any) -> Optional[dict]:
    if not isinstance(value, dict):
        return None
    return {"id": value.get("id"), "name": value.get("name"), "color": value.get("color")}


def _text(segments: Any) -> list:
    if not isinstance(segments, list):
        return []
    projected = []
    for seg in segments:
        if not isinstance(seg, dict):
            continue
        projected.append({"text": seg.get("plain_text"), "href": seg.get("href")})
    return projected


def _date(value: Any) -> Optional[dict]:
    if not isinstance(value, dict):
        return None
    return {
        "start": value.get("start"),
        "end": value.get("end"),
        "time_zone": value.get("time_zone"),
    }


def _files(items: Any) -> list:
    if not isinstance(items, list):
        return []
    projected = []
    for item in items:
        if not isinstance(item, dict):
            continue
        external = item.get("external") if isinstance(item.get("external"), dict) else {}
        projected.append({
            "name": item.get("name"),
            "type": item.get("type"),
            # Solo los enlaces externos son estables
            "url": external.get("url"),
        })
    return projected


def _ids(items: Any) -> list:
    if not isinstance(items, list):
        return []
    return [item.get("id") for item in items if isinstance(item, dict)]


def _embedded(value: Any) -> Any:
    if not isinstance(value, dict):
        return None
    kind = value.get("type")
    inner = value.get(kind) if kind else None
    if kind == "date":
        inner = _date(inner)
    elif kind == "array":
        inner = [normalize(item) for item in inner or [] if isinstance(item, dict)]
    return {"type": kind, "value": inner}


def normalize(raw_property: Any) -> Any:
    """
    Proyección comparable de una propiedad cruda de Notion.

    Returns:
        Estructura JSON; None para propiedades excluidas o inválidas
    """
    if not isinstance(raw_property, dict):
        return None

    kind = raw_property.get("type")
    if kind in EXCLUDED_TYPES:
        return None
    payload = raw_property.get(kind) if kind else None

    if kind in ("title", "rich_text"):
        return _text(payload)
    if kind in ("select", "status"):
        return _option(payload)
    if kind == "multi_select":
        return [_option(opt) for opt in payload or [] if isinstance(opt, dict)]
    if kind == "date":
        return _date(payload)
    if kind == "files":
        return _files(payload)
    if kind in ("relation", "people"):
        return _ids(payload)
    if kind in ("formula", "rollup"):
        return _embedded(payload)
    # number, checkbox, url, email, phone_number y variantes desconocidas
    return payload


def normalize_record(properties: Mapping[str, Any]) -> dict[str, Any]:
    """Proyección de todas las propiedades de una página."""
    projection = {}
    for key, raw in (properties or {}).items():
        if isinstance(raw, dict) and raw.get("type") in EXCLUDED_TYPES:
            continue
        projection[key] = normalize(raw)
    return projection


def has_changed(old: Optional[Mapping[str, Any]], new: Mapping[str, Any]) -> bool:
    """
    Igualdad estructural profunda. Una fila sin snapshot previo siempre
    cuenta como cambiada.
    """
    if old is None:
        return True
    return dict(old) != dict(new)


def compute_change_set(
    fetched: Mapping[str, Mapping[str, Any]],
    mirrored: Mapping[str, Optional[Mapping[str, Any]]],
) -> ChangeSet:
    """
    Diff entre lo traido de Notion y lo espejado.

    Args:
        fetched: {page_id: proyección actual}
        mirrored: {page_id: snapshot guardado}
    """
    fetched_ids = set(fetched)
    mirrored_ids = set(mirrored)

    change_set = ChangeSet(
        added=fetched_ids - mirrored_ids,
        removed=mirrored_ids - fetched_ids,
    )
    for page_id in fetched_ids & mirrored_ids:
        if has_changed(mirrored[page_id], fetched[page_id]):
            change_set.modified.add(page_id)
        else:
            change_set.unchanged.add(page_id)
    return change_set
