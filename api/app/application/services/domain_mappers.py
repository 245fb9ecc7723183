"""
Mapeo de páginas de Notion a filas de las tablas espejo.

Cada dominio declara sus ``ColumnRule``. Para cada propiedad de la página:

1. Coincidencia exacta por nombre (sensible a mayúsculas) o por tipo
   reclamado (p. ej. cualquier propiedad ``status`` en tareas).
2. Si no hay exacta, coincidencia por palabra clave (subcadena, sin
   distinguir mayúsculas). Gana la palabra clave más larga; las
   exclusiones impiden que "do" capture "Due Date".
3. Sin coincidencia: la propiedad se guarda tal cual en ``properties`` como
   ``{type, value}``.

La propiedad ``title`` siempre va a la columna de título del dominio
("Untitled" si la página no la tiene).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional

from app.application.services import property_codec
from app.infrastructure.external.notion.types import NotionPage, normalize_id
from app.shared.constants.domain_constants import UNTITLED, DomainType
from app.shared.utils.datetime_utils import DateTimeUtils


# (dominio destino, notion_page_id) -> id local o None
RelationResolver = Callable[[DomainType, str], Awaitable[Optional[str]]]

Converter = Callable[[Any], Any]


# ---------------------------------------------------------------------------
# Conversores de valor decodificado -> tipo de columna
# ---------------------------------------------------------------------------

def to_text(value: Any) -> Optional[str]:
    """Texto plano: fechas por su inicio, listas unidas por coma."""
    if value is None or value == "":
        return None
    if isinstance(value, dict):
        if "start" in value:
            return value.get("start")
        return value.get("name")
    if isinstance(value, list):
        parts = [to_text(item) for item in value]
        joined = ", ".join(part for part in parts if part)
        return joined or None
    return str(value)


def to_float(value: Any) -> Optional[float]:
    if isinstance(value, list):
        value = value[0] if value else None
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _date_start(value: Any) -> Any:
    if isinstance(value, dict):
        return value.get("start")
    return value


def to_datetime(value: Any) -> Optional[datetime]:
    return DateTimeUtils.parse_datetime(_date_start(value))


def to_date(value: Any):
    return DateTimeUtils.parse_date(_date_start(value))


def first_item(value: Any) -> Any:
    if isinstance(value, list):
        return to_text(value[0]) if value else None
    return to_text(value)


def as_list(value: Any) -> Optional[list]:
    if value is None:
        return None
    return value if isinstance(value, list) else [value]


# ---------------------------------------------------------------------------
# Reglas
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnRule:
    """
    Define el mapeo de una propiedad de Notion a una columna.

    - names: nombres exactos (sensibles a mayúsculas)
    - keywords: subcadenas en minúsculas
    - exclude: subcadenas que descartan la coincidencia por palabra clave
    - types: tipos de propiedad aceptados (vacío = cualquiera)
    - claims_types: tipos que se asignan a esta columna sin importar el nombre
    - convert: conversión del valor decodificado al tipo de la columna
    - keep_styling: decodifica select/multi_select con color
    - relation_target: resuelve el primer id relacionado a un id local
    - file_url_column: columna extra con la primera URL de un ``files``
    """

    column: str
    names: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    claims_types: tuple[str, ...] = ()
    convert: Optional[Converter] = None
    keep_styling: bool = False
    relation_target: Optional[DomainType] = None
    file_url_column: Optional[str] = None

    def accepts_type(self, prop_type: Optional[str]) -> bool:
        return not self.types or prop_type in self.types

    def exact_match(self, name: str, prop_type: Optional[str]) -> bool:
        if name in self.names and self.accepts_type(prop_type):
            return True
        return prop_type in self.claims_types

    def keyword_length(self, name: str, prop_type: Optional[str]) -> int:
        """Largo de la palabra clave más larga que coincide (0 = ninguna)."""
        if not self.keywords or not self.accepts_type(prop_type):
            return 0
        lowered = name.lower()
        if any(ex in lowered for ex in self.exclude):
            return 0
        return max((len(kw) for kw in self.keywords if kw in lowered), default=0)


@dataclass(frozen=True)
class DomainMapping:
    """Reglas de columnas de un dominio."""

    title_column: str
    rules: tuple[ColumnRule, ...] = ()
    icon_column: bool = False
    icon_url_column: bool = False
    period_column: bool = False

    def match(self, name: str, prop_type: Optional[str]) -> Optional[ColumnRule]:
        for rule in self.rules:
            if rule.exact_match(name, prop_type):
                return rule

        best: Optional[ColumnRule] = None
        best_length = 0
        for rule in self.rules:
            length = rule.keyword_length(name, prop_type)
            if length > best_length:
                best, best_length = rule, length
        return best

    @property
    def columns(self) -> list[str]:
        cols = [self.title_column]
        for rule in self.rules:
            cols.append(rule.column)
            if rule.file_url_column:
                cols.append(rule.file_url_column)
        if self.icon_column:
            cols.append("icon")
        if self.icon_url_column:
            cols.append("icon_url")
        if self.period_column:
            cols.append("period")
        return cols


CONTACTS_MAPPING = DomainMapping(
    title_column="name",
    rules=(
        ColumnRule("origin_of_connection", names=("Origin of connection",), convert=to_text),
        ColumnRule("star_sign", names=("Star sign",), convert=to_text),
        ColumnRule("image", names=("Image",), types=("files",), file_url_column="image_url"),
        ColumnRule("currently_at", names=("Currently at",), convert=to_text),
        ColumnRule("age", names=("Age",), convert=to_float),
        ColumnRule("tier", names=("Tier",), keep_styling=True, convert=as_list),
        ColumnRule("occupation", names=("Occupation",), convert=to_text),
        ColumnRule("birthday", names=("Birthday",), convert=to_text),
        ColumnRule("contact_freq", names=("Contact Freq.", "Contact Freq"), convert=to_text),
        ColumnRule("from_location", names=("From",), convert=to_text),
        ColumnRule("birth_date", names=("Birth Date",), convert=to_date),
        ColumnRule("nicknames", names=("Nicknames", "Nickname"), convert=to_text),
    ),
)

MEDIA_MAPPING = DomainMapping(
    title_column="name",
    rules=(
        ColumnRule("category", names=("Category",), convert=to_text),
        ColumnRule("status", names=("Status",), convert=to_text),
        ColumnRule("url", names=("URL",), convert=to_text),
        ColumnRule("by", names=("By",), convert=as_list),
        ColumnRule("topic", names=("Topic",), convert=as_list),
        ColumnRule("thumbnail", names=("Thumbnail",), types=("files",), file_url_column="thumbnail_url"),
        ColumnRule("ai_synopsis", names=("Synopsys", "AI synopsis", "AI Synopsis"), convert=to_text),
        ColumnRule("created", names=("Created",), convert=to_datetime),
        ColumnRule("related_notion_page_ids", names=("Related",), types=("relation",)),
        ColumnRule(
            "monthly_tracking_id",
            keywords=("monthly tracking", "month", "tracking"),
            types=("relation",),
            relation_target=DomainType.TRACKING_MONTHLY,
        ),
    ),
)

FINANCE_ASSET_MAPPING = DomainMapping(
    title_column="name",
    icon_column=True,
    icon_url_column=True,
    rules=(
        ColumnRule("symbol", names=("Ticker",), keywords=("ticker", "symbol"), convert=to_text),
        ColumnRule("current_price", names=("Current Price",), keywords=("current price",), convert=to_float),
        ColumnRule("summary", names=("Summary",), keywords=("summary",), convert=to_text),
        ColumnRule("currency", keywords=("currency",), convert=first_item),
    ),
)

FINANCE_PLACE_MAPPING = DomainMapping(
    title_column="name",
    icon_url_column=True,
    rules=(
        ColumnRule("place_type", names=("Tags",), keywords=("tags", "type"), convert=first_item),
        ColumnRule("balance", keywords=("value [bank]", "balance"), convert=to_float),
        ColumnRule("total_value", keywords=("value [usd]", "total value"), convert=to_float),
        ColumnRule("currency", keywords=("currency",), convert=first_item),
    ),
)

FINANCE_INVESTMENT_MAPPING = DomainMapping(
    title_column="name",
    rules=(
        ColumnRule(
            "asset_id",
            names=("Asset",),
            keywords=("asset",),
            types=("relation",),
            relation_target=DomainType.FINANCIAL_ASSET,
        ),
        ColumnRule(
            "place_id",
            names=("Facet in NW",),
            keywords=("facet in nw", "place"),
            types=("relation",),
            relation_target=DomainType.FINANCIAL_PLACE,
        ),
        ColumnRule("quantity", keywords=("units", "quantity", "qty"), convert=to_float),
        ColumnRule(
            "purchase_price",
            keywords=("price at buy", "purchase price", "buy price"),
            convert=to_float,
        ),
        ColumnRule(
            "purchase_date",
            keywords=("purchase date", "buy date", "date"),
            types=("date", "formula", "rollup", "created_time"),
            convert=to_date,
        ),
        ColumnRule("current_price", keywords=("current price", "price"), convert=to_float),
        ColumnRule("current_value", keywords=("current value", "result", "value"), convert=to_float),
        ColumnRule("currency", keywords=("currency",), convert=first_item),
    ),
)

TRACKING_MAPPING = DomainMapping(title_column="title", period_column=True)

TASKS_MAPPING = DomainMapping(
    title_column="title",
    rules=(
        ColumnRule("status", keywords=("status",), claims_types=("status",), convert=to_text),
        ColumnRule("priority", keywords=("priority",), types=("select",), convert=to_text),
        ColumnRule("do_date", keywords=("do",), exclude=("due",), types=("date",), convert=to_datetime),
        ColumnRule("due_date", keywords=("due",), types=("date",), convert=to_date),
        ColumnRule("mega_tags", keywords=("tag",), types=("multi_select",), convert=as_list),
        ColumnRule("assignee", keywords=("assign",), types=("people",)),
        ColumnRule("gcal_id", keywords=("gcal",), convert=to_text),
        ColumnRule("duration_hours", keywords=("duration", "hour"), types=("formula",), convert=to_float),
        ColumnRule("start_date", keywords=("start",), exclude=("end",), types=("formula",), convert=to_datetime),
        ColumnRule("end_date", keywords=("end",), types=("formula",), convert=to_datetime),
        ColumnRule("projects", keywords=("project",), types=("relation",)),
    ),
)

DOMAIN_MAPPINGS: dict[DomainType, DomainMapping] = {
    DomainType.CONTACTS: CONTACTS_MAPPING,
    DomainType.MEDIA: MEDIA_MAPPING,
    DomainType.FINANCIAL_ASSET: FINANCE_ASSET_MAPPING,
    DomainType.FINANCIAL_PLACE: FINANCE_PLACE_MAPPING,
    DomainType.FINANCIAL_INVESTMENT: FINANCE_INVESTMENT_MAPPING,
    DomainType.TRACKING_DAILY: TRACKING_MAPPING,
    DomainType.TRACKING_WEEKLY: TRACKING_MAPPING,
    DomainType.TRACKING_MONTHLY: TRACKING_MAPPING,
    DomainType.TRACKING_QUARTERLY: TRACKING_MAPPING,
    DomainType.TRACKING_YEARLY: TRACKING_MAPPING,
    DomainType.TASKS: TASKS_MAPPING,
}


def mapping_for(domain_type: DomainType) -> DomainMapping:
    return DOMAIN_MAPPINGS[DomainType(domain_type)]


async def build_row(
    domain_type: DomainType,
    page: NotionPage,
    *,
    schema: dict[str, dict[str, Any]],
    user_id: str,
    notion_database_id: str,
    period: str = "",
    resolve_relation: Optional[RelationResolver] = None,
) -> dict[str, Any]:
    """
    Convierte una página en una fila para la tabla espejo del dominio.

    Todas las columnas de dominio se incluyen (None si no hubo valor) para
    que un upsert limpie valores que desaparecieron en Notion.
    """
    domain_type = DomainType(domain_type)
    mapping = mapping_for(domain_type)
    row: dict[str, Any] = {col: None for col in mapping.columns}
    row.update({
        "user_id": user_id,
        "notion_page_id": page.page_id,
        "notion_database_id": normalize_id(notion_database_id),
        mapping.title_column: UNTITLED,
    })
    extra: dict[str, Any] = {}
    assigned_exact: set[str] = set()

    for key, raw in page.properties.items():
        definition = schema.get(key) or {}
        prop_type = definition.get("type") or (raw.get("type") if isinstance(raw, dict) else None)
        name = definition.get("name") or key

        if prop_type == "title":
            row[mapping.title_column] = property_codec.decode(raw, prop_type) or UNTITLED
            continue

        rule = mapping.match(name, prop_type)
        if rule is None:
            extra[key] = property_codec.envelope(raw, prop_type)
            continue

        is_exact = rule.exact_match(name, prop_type)
        if rule.column in assigned_exact and not is_exact:
            # Una coincidencia exacta previa tiene prioridad
            extra[key] = property_codec.envelope(raw, prop_type)
            continue
        if is_exact:
            assigned_exact.add(rule.column)

        value = property_codec.decode(raw, prop_type, keep_styling=rule.keep_styling)

        if rule.file_url_column:
            row[rule.file_url_column] = property_codec.extract_file_url(raw)

        if rule.relation_target is not None:
            related = value if isinstance(value, list) else []
            target_page = normalize_id(related[0]) if related else None
            if target_page and resolve_relation is not None:
                value = await resolve_relation(rule.relation_target, target_page)
            else:
                value = None
        elif rule.convert is not None:
            value = rule.convert(value)

        row[rule.column] = value

    if mapping.icon_column:
        row["icon"] = page.icon
    if mapping.icon_url_column:
        row["icon_url"] = property_codec.extract_icon_url(page.icon)
    if mapping.period_column:
        row["period"] = period or domain_type.period.value

    row["properties"] = extra
    return row
