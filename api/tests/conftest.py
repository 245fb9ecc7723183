"""
Configuración de fixtures para pytest.

- ``db_session``: SQLite en memoria con todas las tablas creadas
- ``fake_notion``: cliente de Notion en memoria (sin HTTP)
- ``payloads``: constructores de respuestas del API de Notion
"""
from __future__ import annotations

from typing import Any, AsyncGenerator, AsyncIterator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.infrastructure.database.session import Base
from app.infrastructure.external.notion.types import NotionPage, normalize_id
from app.shared.exceptions.external import NotionApiException


# URL de base de datos de prueba
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Fixture que proporciona una sesión de base de datos para tests.
    Crea una base de datos en memoria para cada test.
    """
    # Registra los modelos en Base.metadata
    import app.infrastructure.database  # noqa: F401

    # StaticPool: todas las conexiones comparten la misma base en memoria
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


class NotionPayloads:
    """Constructores de objetos tal como los devuelve el API de Notion."""

    DEFAULT_EDITED = "2026-10-01T10:00:00.000Z"

    @staticmethod
    def _segments(text: str) -> list[dict[str, Any]]:
        if not text:
            return []
        return [{
            "type": "text",
            "text": {"content": text, "link": None},
            "plain_text": text,
            "href": None,
        }]

    @classmethod
    def title(cls, text: str) -> dict[str, Any]:
        return {"id": "title", "type": "title", "title": cls._segments(text)}

    @classmethod
    def rich_text(cls, text: str) -> dict[str, Any]:
        return {"id": "rt", "type": "rich_text", "rich_text": cls._segments(text)}

    @staticmethod
    def select(name: Optional[str], color: str = "default") -> dict[str, Any]:
        option = {"id": f"opt-{name}", "name": name, "color": color} if name else None
        return {"id": "sel", "type": "select", "select": option}

    @staticmethod
    def status(name: str, color: str = "default") -> dict[str, Any]:
        return {"id": "st", "type": "status", "status": {"id": f"st-{name}", "name": name, "color": color}}

    @staticmethod
    def multi_select(*names: str, color: str = "default") -> dict[str, Any]:
        return {
            "id": "ms",
            "type": "multi_select",
            "multi_select": [{"id": f"opt-{n}", "name": n, "color": color} for n in names],
        }

    @staticmethod
    def date(start: Optional[str], end: Optional[str] = None) -> dict[str, Any]:
        value = {"start": start, "end": end, "time_zone": None} if start else None
        return {"id": "dt", "type": "date", "date": value}

    @staticmethod
    def number(value: Any) -> dict[str, Any]:
        return {"id": "num", "type": "number", "number": value}

    @staticmethod
    def checkbox(value: bool) -> dict[str, Any]:
        return {"id": "cb", "type": "checkbox", "checkbox": value}

    @staticmethod
    def url(value: Optional[str]) -> dict[str, Any]:
        return {"id": "url", "type": "url", "url": value}

    @staticmethod
    def relation(*page_ids: str) -> dict[str, Any]:
        return {
            "id": "rel",
            "type": "relation",
            "relation": [{"id": pid} for pid in page_ids],
            "has_more": False,
        }

    @staticmethod
    def people(*people: tuple[str, str]) -> dict[str, Any]:
        return {
            "id": "ppl",
            "type": "people",
            "people": [{"object": "user", "id": pid, "name": name} for pid, name in people],
        }

    @staticmethod
    def external_files(*urls: str) -> dict[str, Any]:
        return {
            "id": "files",
            "type": "files",
            "files": [
                {"name": f"file-{i}", "type": "external", "external": {"url": url}}
                for i, url in enumerate(urls)
            ],
        }

    @staticmethod
    def hosted_files(*urls: str) -> dict[str, Any]:
        return {
            "id": "files",
            "type": "files",
            "files": [
                {"name": f"file-{i}", "type": "file", "file": {"url": url, "expiry_time": None}}
                for i, url in enumerate(urls)
            ],
        }

    @staticmethod
    def formula(kind: str, value: Any) -> dict[str, Any]:
        return {"id": "fx", "type": "formula", "formula": {"type": kind, kind: value}}

    @classmethod
    def page(
        cls,
        page_id: str,
        database_id: Optional[str],
        properties: dict[str, Any],
        *,
        last_edited: Optional[str] = None,
        archived: bool = False,
        icon: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        parent = (
            {"type": "database_id", "database_id": database_id}
            if database_id
            else {"type": "workspace", "workspace": True}
        )
        return {
            "object": "page",
            "id": page_id,
            "parent": parent,
            "last_edited_time": last_edited or cls.DEFAULT_EDITED,
            "archived": archived,
            "icon": icon,
            "properties": properties,
        }

    @staticmethod
    def database(database_id: str, title: str, schema: dict[str, str]) -> dict[str, Any]:
        """``schema`` es {nombre de propiedad: tipo}."""
        return {
            "object": "database",
            "id": database_id,
            "title": [{"type": "text", "plain_text": title}],
            "properties": {
                name: {"id": f"p-{i}", "name": name, "type": kind}
                for i, (name, kind) in enumerate(schema.items())
            },
        }


@pytest.fixture
def payloads() -> type[NotionPayloads]:
    return NotionPayloads


class FakeNotionClient:
    """
    Cliente de Notion en memoria con la misma interfaz que NotionClient.

    Las páginas se guardan como payloads crudos para pasar por
    ``NotionPage.from_api`` igual que en producción.
    """

    def __init__(self) -> None:
        self.databases: dict[str, dict[str, Any]] = {}
        self.database_pages: dict[str, list[dict[str, Any]]] = {}
        self.pages: dict[str, dict[str, Any]] = {}
        self.fail_retrieve_database = False
        self.fail_query = False

    def add_database(self, database: dict[str, Any]) -> None:
        database_id = normalize_id(database["id"])
        self.databases[database_id] = database
        self.database_pages.setdefault(database_id, [])

    def set_pages(self, database_id: str, pages: list[dict[str, Any]]) -> None:
        self.database_pages[normalize_id(database_id)] = list(pages)
        for page in pages:
            self.pages[normalize_id(page["id"])] = page

    def add_page(self, page: dict[str, Any]) -> None:
        self.pages[normalize_id(page["id"])] = page

    async def retrieve_database(self, database_id: str) -> dict[str, Any]:
        if self.fail_retrieve_database:
            raise NotionApiException("Notion caido", notion_status=503, notion_code="service_unavailable")
        database = self.databases.get(normalize_id(database_id))
        if database is None:
            raise NotionApiException("no existe", notion_status=404, notion_code="object_not_found")
        return database

    async def retrieve_page(self, page_id: str) -> dict[str, Any]:
        page = self.pages.get(normalize_id(page_id))
        if page is None:
            raise NotionApiException("no existe", notion_status=404, notion_code="object_not_found")
        return page

    async def iter_database_pages(
        self,
        database_id: str,
        *,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> AsyncIterator[NotionPage]:
        if self.fail_query:
            raise NotionApiException("rate limited", notion_status=429, notion_code="rate_limited")
        for payload in self.database_pages.get(normalize_id(database_id), []):
            yield NotionPage.from_api(payload)


@pytest.fixture
def fake_notion() -> FakeNotionClient:
    return FakeNotionClient()
