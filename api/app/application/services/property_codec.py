"""
Decodificador de propiedades de Notion.

Cada propiedad de una página de Notion es una unión etiquetada: un objeto
``{"type": <tipo>, <tipo>: <payload>}``. Este modulo convierte el payload de
cada variante en un valor plano apto para una columna o para el JSON de
``properties``.

Contrato:
- ``decode`` es puro y total: nunca lanza excepciones.
- Propiedad ausente, tipo desconocido o forma inesperada -> ``None``
  (se registra en el log y el llamador continua).
- Las fechas conservan ``start`` y ``end``; nunca se colapsan a ``start``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger


class PropertyType(str, Enum):
    """Variantes de propiedad soportadas."""
    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    STATUS = "status"
    DATE = "date"
    PEOPLE = "people"
    FILES = "files"
    CHECKBOX = "checkbox"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    FORMULA = "formula"
    RELATION = "relation"
    ROLLUP = "rollup"
    CREATED_TIME = "created_time"
    CREATED_BY = "created_by"
    LAST_EDITED_TIME = "last_edited_time"
    LAST_EDITED_BY = "last_edited_by"


class MalformedPropertyError(ValueError):
    """La forma del payload no coincide con la variante declarada."""


def _expect(payload: Any, kind: type) -> Any:
    if not isinstance(payload, kind):
        raise MalformedPropertyError(
            f"se esperaba {kind.__name__}, llegó {type(payload).__name__}"
        )
    return payload


def _coerce_number(value: Any) -> Optional[float | int]:
    if value is None:
        return None
    if isinstance(value, bool):
        raise MalformedPropertyError("booleano en propiedad numérica")
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip().replace(",", "")
        if not text:
            return None
        number = float(text)
        return int(number) if number.is_integer() and "." not in text else number
    raise MalformedPropertyError(f"número inválido: {value!r}")


def _decode_text(payload: Any, keep_styling: bool) -> str:
    if payload is None:
        return ""
    segments = _expect(payload, list)
    if not segments:
        return ""
    return _expect(segments[0], dict).get("plain_text") or ""


def _decode_option(payload: Any, keep_styling: bool) -> Any:
    if payload is None:
        return None
    option = _expect(payload, dict)
    if keep_styling:
        return {"name": option.get("name"), "color": option.get("color")}
    return option.get("name")


def _decode_multi_select(payload: Any, keep_styling: bool) -> list:
    if payload is None:
        return []
    options = _expect(payload, list)
    if keep_styling:
        return [
            {"name": opt.get("name"), "color": opt.get("color")}
            for opt in options
            if isinstance(opt, dict)
        ]
    return [opt.get("name") for opt in options if isinstance(opt, dict)]


def _decode_date(payload: Any, keep_styling: bool) -> Optional[dict]:
    if payload is None:
        return None
    value = _expect(payload, dict)
    return {"start": value.get("start"), "end": value.get("end")}


def _decode_number(payload: Any, keep_styling: bool) -> Optional[float | int]:
    return _coerce_number(payload)


def _decode_checkbox(payload: Any, keep_styling: bool) -> bool:
    return bool(payload)


def _decode_string(payload: Any, keep_styling: bool) -> Optional[str]:
    if payload is None:
        return None
    return _expect(payload, str)


def _decode_files(payload: Any, keep_styling: bool) -> list:
    if payload is None:
        return []
    files = _expect(payload, list)
    return [
        {
            "name": item.get("name"),
            "type": item.get("type"),
            "url": _file_url(item),
        }
        for item in files
        if isinstance(item, dict)
    ]


def _decode_relation(payload: Any, keep_styling: bool) -> list:
    if payload is None:
        return []
    return [rel.get("id") for rel in _expect(payload, list) if isinstance(rel, dict)]


def _decode_people(payload: Any, keep_styling: bool) -> list:
    if payload is None:
        return []
    return [
        {"id": person.get("id"), "name": person.get("name")}
        for person in _expect(payload, list)
        if isinstance(person, dict)
    ]


def _decode_user(payload: Any, keep_styling: bool) -> Optional[str]:
    if payload is None:
        return None
    return _expect(payload, dict).get("id")


def _decode_embedded(payload: Any) -> Any:
    """Valor de formula/rollup: ``{"type": t, t: valor}``."""
    if payload is None:
        return None
    value = _expect(payload, dict)
    kind = value.get("type")
    inner = value.get(kind) if kind else None

    if kind in ("string", "boolean"):
        return inner
    if kind == "number":
        return _coerce_number(inner)
    if kind == "date":
        return _decode_date(inner, False)
    if kind == "array":
        return [decode(item) for item in _expect(inner or [], list)]
    if kind in ("incomplete", "unsupported"):
        return None
    raise MalformedPropertyError(f"tipo embebido desconocido: {kind!r}")


def _decode_formula(payload: Any, keep_styling: bool) -> Any:
    return _decode_embedded(payload)


def _decode_rollup(payload: Any, keep_styling: bool) -> Any:
    return _decode_embedded(payload)


_DECODERS: dict[PropertyType, Callable[[Any, bool], Any]] = {
    PropertyType.TITLE: _decode_text,
    PropertyType.RICH_TEXT: _decode_text,
    PropertyType.NUMBER: _decode_number,
    PropertyType.SELECT: _decode_option,
    PropertyType.STATUS: _decode_option,
    PropertyType.MULTI_SELECT: _decode_multi_select,
    PropertyType.DATE: _decode_date,
    PropertyType.PEOPLE: _decode_people,
    PropertyType.FILES: _decode_files,
    PropertyType.CHECKBOX: _decode_checkbox,
    PropertyType.URL: _decode_string,
    PropertyType.EMAIL: _decode_string,
    PropertyType.PHONE_NUMBER: _decode_string,
    PropertyType.FORMULA: _decode_formula,
    PropertyType.RELATION: _decode_relation,
    PropertyType.ROLLUP: _decode_rollup,
    PropertyType.CREATED_TIME: _decode_string,
    PropertyType.LAST_EDITED_TIME: _decode_string,
    PropertyType.CREATED_BY: _decode_user,
    PropertyType.LAST_EDITED_BY: _decode_user,
}


def decode(
    prop: Any,
    declared_type: Optional[str] = None,
    keep_styling: bool = False,
) -> Any:
    """
    Decodifica una propiedad de Notion a un valor plano.

    Args:
        prop: Objeto de propiedad tal como llega en ``page.properties``
        declared_type: Tipo según el esquema cacheado; si falta se usa
            el ``type`` del propio objeto
        keep_styling: Para select/multi_select conserva ``{name, color}``
            (p. ej. Tier en contactos)

    Returns:
        Valor decodificado o None
    """
    if not isinstance(prop, dict):
        return None

    raw_type = declared_type or prop.get("type")
    try:
        prop_type = PropertyType(raw_type)
    except ValueError:
        logger.debug(f"Tipo de propiedad no soportado: {raw_type!r}")
        return None

    try:
        return _DECODERS[prop_type](prop.get(prop_type.value), keep_styling)
    except (MalformedPropertyError, TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Propiedad {prop_type.value} con forma inesperada: {e}")
        return None


def envelope(prop: Any, declared_type: Optional[str] = None) -> dict[str, Any]:
    """Forma ``{type, value}`` usada en la columna JSON ``properties``."""
    prop_type = declared_type or (prop.get("type") if isinstance(prop, dict) else None)
    return {"type": prop_type, "value": decode(prop, prop_type)}


def _file_url(item: dict[str, Any]) -> Optional[str]:
    for kind in ("external", "file"):
        nested = item.get(kind)
        if isinstance(nested, dict) and nested.get("url"):
            return nested["url"]
    return None


def extract_file_url(files: Any) -> Optional[str]:
    """
    Primera URL utilizable de una lista de archivos de Notion (enlace
    externo o archivo alojado en Notion).

    Acepta la propiedad completa (``{"type": "files", "files": [...]}``)
    o directamente la lista.
    """
    if isinstance(files, dict):
        files = files.get("files")
    if not isinstance(files, list):
        return None
    for item in files:
        if isinstance(item, dict):
            url = _file_url(item) or item.get("url")
            if url:
                return url
    return None


def extract_icon_url(icon: Any) -> Optional[str]:
    """URL del icono de una página; los iconos emoji no tienen URL."""
    if not isinstance(icon, dict):
        return None
    return _file_url(icon)
