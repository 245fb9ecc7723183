"""
Modelos de base de datos (ORM).

Hay una tabla de bindings y una tabla espejo por dominio. Todas las tablas
espejo comparten las columnas técnicas de ``NotionMirrorMixin`` y la
restricción única (user_id, notion_page_id) que usa el upsert.
"""
import uuid

from sqlalchemy import Column, String, Integer, DateTime, Date, Float, Text, JSON, UniqueConstraint
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func

from app.infrastructure.database.session import Base


def _new_uuid() -> str:
    return str(uuid.uuid4())


class BindingModel(Base):
    """Base de Notion conectada por un usuario a un dominio."""

    __tablename__ = "notion_bindings"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "notion_database_id", "domain_type", "period",
            name="uq_notion_bindings_user_db_domain_period",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(255), nullable=False, index=True)
    notion_database_id = Column(String(64), nullable=False, index=True)
    domain_type = Column(String(64), nullable=False)
    period = Column(String(32), nullable=False, default="")
    database_name = Column(String(255), nullable=True)
    schema_properties = Column(JSON, nullable=False, default=dict)
    sync_mode = Column(String(32), nullable=False, default="manual")
    last_sync = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Binding(id={self.id}, user={self.user_id}, domain={self.domain_type})>"


class NotionMirrorMixin:
    """Columnas técnicas comunes a toda fila espejada desde Notion."""

    id = Column(String(36), primary_key=True, default=_new_uuid)
    user_id = Column(String(255), nullable=False, index=True)
    notion_page_id = Column(String(64), nullable=False, index=True)
    notion_database_id = Column(String(64), nullable=False, index=True)
    properties = Column(JSON, nullable=False, default=dict)
    notion_snapshot = Column(JSON, nullable=True)
    notion_last_edited_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    last_synced_at = Column(DateTime(timezone=True), nullable=True)

    @declared_attr
    def __table_args__(cls):
        return (
            UniqueConstraint("user_id", "notion_page_id", name=f"uq_{cls.__tablename__}_user_page"),
        )

    def __repr__(self):
        return f"<{type(self).__name__}(id={self.id}, page={self.notion_page_id})>"


class PersonModel(NotionMirrorMixin, Base):
    """Contactos (base People)."""

    __tablename__ = "people"

    name = Column(String(255), nullable=False)
    origin_of_connection = Column(Text, nullable=True)
    star_sign = Column(String(64), nullable=True)
    image = Column(JSON, nullable=True)
    image_url = Column(Text, nullable=True)
    currently_at = Column(Text, nullable=True)
    age = Column(Float, nullable=True)
    tier = Column(JSON, nullable=True)  # [{name, color}]
    occupation = Column(Text, nullable=True)
    birthday = Column(String(64), nullable=True)
    contact_freq = Column(String(64), nullable=True)
    from_location = Column(Text, nullable=True)
    birth_date = Column(Date, nullable=True)
    nicknames = Column(Text, nullable=True)


class MediaModel(NotionMirrorMixin, Base):
    """Biblioteca de media (libros, peliculas, podcasts...)."""

    __tablename__ = "media"

    name = Column(String(512), nullable=False)
    category = Column(String(255), nullable=True)
    status = Column(String(255), nullable=True)
    url = Column(Text, nullable=True)
    by = Column(JSON, nullable=True)
    topic = Column(JSON, nullable=True)
    thumbnail = Column(JSON, nullable=True)
    thumbnail_url = Column(Text, nullable=True)
    ai_synopsis = Column(Text, nullable=True)
    created = Column(DateTime(timezone=True), nullable=True)
    related_notion_page_ids = Column(JSON, nullable=True)
    monthly_tracking_id = Column(String(36), nullable=True)


class FinanceAssetModel(NotionMirrorMixin, Base):
    """Activos financieros (acciones, cripto, fondos)."""

    __tablename__ = "finances_assets"

    name = Column(String(255), nullable=False)
    symbol = Column(String(64), nullable=True)
    current_price = Column(Float, nullable=True)
    summary = Column(Text, nullable=True)
    currency = Column(String(16), nullable=True)
    icon = Column(JSON, nullable=True)
    icon_url = Column(Text, nullable=True)


class FinancePlaceModel(NotionMirrorMixin, Base):
    """Lugares donde se guarda el patrimonio (bancos, brokers, wallets)."""

    __tablename__ = "finances_places"

    name = Column(String(255), nullable=False)
    place_type = Column(String(255), nullable=True)
    balance = Column(Float, nullable=True)
    total_value = Column(Float, nullable=True)
    currency = Column(String(16), nullable=True)
    icon_url = Column(Text, nullable=True)


class FinanceInvestmentModel(NotionMirrorMixin, Base):
    """Inversiones individuales; referencian un activo y un lugar."""

    __tablename__ = "finances_individual_investments"

    name = Column(String(255), nullable=False)
    asset_id = Column(String(36), nullable=True, index=True)
    place_id = Column(String(36), nullable=True, index=True)
    quantity = Column(Float, nullable=True)
    purchase_price = Column(Float, nullable=True)
    purchase_date = Column(Date, nullable=True)
    current_price = Column(Float, nullable=True)
    current_value = Column(Float, nullable=True)
    currency = Column(String(16), nullable=True)


class TrackingMixin:
    """Columnas de las bases de seguimiento; el resto vive en ``properties``."""

    title = Column(String(512), nullable=False)
    period = Column(String(32), nullable=False)


class TrackingDailyModel(TrackingMixin, NotionMirrorMixin, Base):
    __tablename__ = "tracking_daily"


class TrackingWeeklyModel(TrackingMixin, NotionMirrorMixin, Base):
    __tablename__ = "tracking_weekly"


class TrackingMonthlyModel(TrackingMixin, NotionMirrorMixin, Base):
    __tablename__ = "tracking_monthly"


class TrackingQuarterlyModel(TrackingMixin, NotionMirrorMixin, Base):
    __tablename__ = "tracking_quarterly"


class TrackingYearlyModel(TrackingMixin, NotionMirrorMixin, Base):
    __tablename__ = "tracking_yearly"


class TodoModel(NotionMirrorMixin, Base):
    """Tareas (To-Do List / Action Items)."""

    __tablename__ = "todos"

    title = Column(String(512), nullable=False)
    status = Column(String(255), nullable=True)
    priority = Column(String(255), nullable=True)
    do_date = Column(DateTime(timezone=True), nullable=True)
    due_date = Column(Date, nullable=True)
    mega_tags = Column(JSON, nullable=True)
    assignee = Column(JSON, nullable=True)
    gcal_id = Column(String(255), nullable=True)
    duration_hours = Column(Float, nullable=True)
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    projects = Column(JSON, nullable=True)
