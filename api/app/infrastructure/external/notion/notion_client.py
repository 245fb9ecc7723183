"""
Cliente mínimo del API REST de Notion (httpx, async).

Requisitos cubiertos:
- recuperar el esquema de una base
- paginación por cursor (has_more / next_cursor), un request a la vez
- guardas contra paginación infinita
- recuperar una página individual (webhooks)

No reintenta dentro de una corrida: un error se propaga y la siguiente
sincronización vuelve a intentarlo.
"""

from __future__ import annotations

from typing import Any, AsyncIterator, Optional

import httpx
from loguru import logger

from app.core.config import settings
from app.shared.exceptions.external import NotionApiException, NotionPaginationException

from .types import NotionPage, normalize_id


class NotionClient:
    """
    Cliente HTTP de Notion. Expone un generator async que produce NotionPage.

    Importante:
    - No interpreta propiedades: eso lo decide el codec de la capa de aplicación.
    - ``transport`` permite inyectar un transporte httpx en tests.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.NOTION_API_KEY
        self._base_url = (base_url or settings.NOTION_BASE_URL).rstrip("/")
        self._api_version = api_version or settings.NOTION_API_VERSION
        self._timeout_s = timeout_s or settings.NOTION_TIMEOUT_SECONDS
        self._transport = transport

    async def retrieve_database(self, database_id: str) -> dict[str, Any]:
        """Recupera título y propiedades (esquema) de una base."""
        return await self._request_json("GET", f"/databases/{normalize_id(database_id)}")

    async def retrieve_page(self, page_id: str) -> dict[str, Any]:
        """Recupera una página con sus propiedades y su parent."""
        return await self._request_json("GET", f"/pages/{normalize_id(page_id)}")

    async def query_database(
        self,
        database_id: str,
        *,
        start_cursor: Optional[str] = None,
        page_size: int = 100,
    ) -> dict[str, Any]:
        """Ejecuta una página de ``databases.query``."""
        body: dict[str, Any] = {"page_size": page_size}
        if start_cursor:
            body["start_cursor"] = start_cursor
        return await self._request_json(
            "POST", f"/databases/{normalize_id(database_id)}/query", json=body
        )

    async def iter_database_pages(
        self,
        database_id: str,
        *,
        page_size: Optional[int] = None,
        max_pages: Optional[int] = None,
    ) -> AsyncIterator[NotionPage]:
        """
        Itera todas las páginas de una base en orden de cursor.

        Aborta con NotionPaginationException si se supera ``max_pages``
        requests o si el cursor devuelto no avanza.
        """
        page_size = page_size or settings.SYNC_PAGE_SIZE
        max_pages = max_pages or settings.SYNC_MAX_PAGES

        cursor: Optional[str] = None
        seen_cursors: set[str] = set()
        request_count = 0

        while True:
            if request_count >= max_pages:
                raise NotionPaginationException(
                    f"La paginación superó el máximo de {max_pages} páginas "
                    f"para la base {database_id}"
                )

            payload = await self.query_database(
                database_id, start_cursor=cursor, page_size=page_size
            )
            request_count += 1

            for result in payload.get("results") or []:
                if result.get("object", "page") != "page":
                    continue
                yield NotionPage.from_api(result)

            next_cursor = payload.get("next_cursor")
            if not payload.get("has_more") or not next_cursor:
                break

            if next_cursor == cursor or next_cursor in seen_cursors:
                raise NotionPaginationException(
                    f"El cursor de paginación no avanzó para la base {database_id}"
                )
            seen_cursors.add(next_cursor)
            cursor = next_cursor

        logger.debug(f"Base {database_id}: {request_count} request(s) de query")

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        Request HTTP contra Notion.

        - 2xx: retorna el JSON
        - resto: NotionApiException con el status y el ``code`` de Notion
        - errores de red/timeout: NotionApiException sin status
        """
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Notion-Version": self._api_version,
            "Content-Type": "application/json",
        }
        url = f"{self._base_url}{path}"

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as client:
                resp = await client.request(method, url, headers=headers, json=json)
        except httpx.HTTPError as e:
            raise NotionApiException(f"No se pudo contactar a Notion ({method} {path}): {e}") from e

        if 200 <= resp.status_code < 300:
            return resp.json()

        code: Optional[str] = None
        message = resp.text
        try:
            error_body = resp.json()
            code = error_body.get("code")
            message = error_body.get("message") or message
        except ValueError:
            pass

        raise NotionApiException(
            f"Notion request falló {resp.status_code} ({method} {path}): {message}",
            notion_status=resp.status_code,
            notion_code=code,
        )
