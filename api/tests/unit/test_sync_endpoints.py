"""
Tests del contrato HTTP de sync, bindings y webhooks.

Los casos de uso se reemplazan vía dependency_overrides; aquí solo se
verifica el ruteo, la autenticación y el formato de las respuestas.
"""
from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.v1.dependencies.auth_deps import get_current_user_id
from app.api.v1.dependencies.use_case_deps import (
    get_binding_use_cases,
    get_sync_use_cases,
    get_webhook_dispatcher,
)
from app.application.services.webhook_dispatcher import WebhookResult
from app.core.config import settings
from app.core.security import security_service
from app.domain.entities.binding import Binding
from app.domain.entities.sync import SyncSummary
from app.shared.constants.domain_constants import DomainType, TrackingPeriod
from app.shared.exceptions.domain import BindingNotFoundException


def _summary(domain: str = "tasks", **kwargs) -> SyncSummary:
    return SyncSummary(
        domain_type=domain,
        added=kwargs.get("added", 1),
        modified=kwargs.get("modified", 0),
        removed=kwargs.get("removed", 0),
        synced=kwargs.get("synced", 3),
        errors=kwargs.get("errors", []),
        last_sync=datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def sync_use_cases() -> AsyncMock:
    uc = AsyncMock()
    uc.sync_domain = AsyncMock(return_value=_summary())
    uc.sync_tracking = AsyncMock(return_value=_summary("tracking-weekly"))
    uc.sync_finances = AsyncMock(return_value={
        "financial-asset": _summary("financial-asset"),
        "financial-place": _summary("financial-place", errors=["p1: boom"]),
    })
    return uc


@pytest.fixture
def binding_use_cases() -> AsyncMock:
    binding = Binding(
        id=7,
        user_id="user-1",
        notion_database_id="abc123",
        domain_type=DomainType.TASKS,
        database_name="To-Do List",
        schema_properties={"Name": {"type": "title", "name": "Name"}},
    )
    uc = AsyncMock()
    uc.connect = AsyncMock(return_value=(binding, _summary()))
    uc.list_bindings = AsyncMock(return_value=[binding])
    uc.disconnect = AsyncMock(return_value=5)
    return uc


@pytest.fixture
def dispatcher() -> MagicMock:
    mock = MagicMock()
    mock.handle = AsyncMock(return_value=WebhookResult(200, {"ok": True, "processed": 1}))
    return mock


@pytest.fixture
def app_with_mocks(sync_use_cases, binding_use_cases, dispatcher):
    """Crea la app FastAPI con los casos de uso mockeados."""
    from main import create_application
    app = create_application()
    app.dependency_overrides[get_sync_use_cases] = lambda: sync_use_cases
    app.dependency_overrides[get_binding_use_cases] = lambda: binding_use_cases
    app.dependency_overrides[get_webhook_dispatcher] = lambda: dispatcher
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def authed_app(app_with_mocks):
    app_with_mocks.dependency_overrides[get_current_user_id] = lambda: "user-1"
    return app_with_mocks


async def _post(app, url: str, **kwargs):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.post(url, **kwargs)


@pytest.mark.asyncio
async def test_sync_domain_returns_summary(authed_app, sync_use_cases: AsyncMock) -> None:
    response = await _post(authed_app, "/api/v1/sync/tasks")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["domain_type"] == "tasks"
    assert (data["synced"], data["added"], data["removed"], data["modified"]) == (3, 1, 0, 0)
    assert data["errors"] == []
    sync_use_cases.sync_domain.assert_awaited_once_with("user-1", DomainType.TASKS)


@pytest.mark.asyncio
async def test_sync_unknown_domain_is_422(authed_app) -> None:
    response = await _post(authed_app, "/api/v1/sync/recetas")
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_sync_tracking_period(authed_app, sync_use_cases: AsyncMock) -> None:
    response = await _post(authed_app, "/api/v1/sync/tracking/weekly")

    assert response.status_code == 200
    sync_use_cases.sync_tracking.assert_awaited_once_with("user-1", TrackingPeriod.WEEKLY)


@pytest.mark.asyncio
async def test_sync_finances_aggregates_results(authed_app) -> None:
    response = await _post(authed_app, "/api/v1/sync/finances")

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is False
    assert set(data["results"]) == {"financial-asset", "financial-place"}
    assert data["results"]["financial-place"]["errors"] == ["p1: boom"]


@pytest.mark.asyncio
async def test_binding_not_found_is_404(authed_app, sync_use_cases: AsyncMock) -> None:
    sync_use_cases.sync_domain.side_effect = BindingNotFoundException("media", "media")

    response = await _post(authed_app, "/api/v1/sync/media")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "BINDING_NOT_FOUND"
    assert body["details"] == {"domain_type": "media"}


@pytest.mark.asyncio
async def test_sync_without_credentials_is_401(app_with_mocks) -> None:
    response = await _post(app_with_mocks, "/api/v1/sync/tasks")

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"


@pytest.mark.asyncio
async def test_sync_with_bearer_token(app_with_mocks, sync_use_cases: AsyncMock) -> None:
    token = security_service.create_access_token({"sub": "user-42"})

    response = await _post(
        app_with_mocks, "/api/v1/sync/tasks", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 200
    sync_use_cases.sync_domain.assert_awaited_once_with("user-42", DomainType.TASKS)


@pytest.mark.asyncio
async def test_internal_sync_headers(app_with_mocks, sync_use_cases: AsyncMock, monkeypatch) -> None:
    monkeypatch.setattr(settings, "INTERNAL_SYNC_SECRET", "interno")

    ok = await _post(
        app_with_mocks,
        "/api/v1/sync/tasks",
        headers={"X-Internal-Sync": "interno", "X-User-Id": "user-9"},
    )
    wrong = await _post(
        app_with_mocks,
        "/api/v1/sync/tasks",
        headers={"X-Internal-Sync": "otro", "X-User-Id": "user-9"},
    )

    assert ok.status_code == 200
    assert wrong.status_code == 401
    sync_use_cases.sync_domain.assert_awaited_once_with("user-9", DomainType.TASKS)


@pytest.mark.asyncio
async def test_connect_binding_returns_201(authed_app, binding_use_cases: AsyncMock) -> None:
    response = await _post(authed_app, "/api/v1/bindings", json={"database_id": "abc-123"})

    assert response.status_code == 201
    data = response.json()
    assert data["binding"]["id"] == 7
    assert data["binding"]["domain_type"] == "tasks"
    assert data["sync"]["added"] == 1
    dto = binding_use_cases.connect.call_args[0][1]
    assert dto.database_id == "abc-123"
    assert dto.initial_sync is True


@pytest.mark.asyncio
async def test_list_and_disconnect_bindings(authed_app, binding_use_cases: AsyncMock) -> None:
    transport = ASGITransport(app=authed_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        listed = await client.get("/api/v1/bindings")
        removed = await client.delete("/api/v1/bindings/7", params={"purge": "true"})

    assert listed.status_code == 200
    assert listed.json()["total"] == 1
    assert removed.status_code == 200
    assert removed.json() == {"success": True, "binding_id": 7, "purged_records": 5}
    binding_use_cases.disconnect.assert_awaited_once_with("user-1", 7, purge=True)


@pytest.mark.asyncio
async def test_webhook_passes_raw_body_and_signature(app_with_mocks, dispatcher: MagicMock) -> None:
    raw = b'{"type":"page.created"}'

    response = await _post(
        app_with_mocks,
        "/api/v1/webhooks/notion",
        content=raw,
        headers={"X-Notion-Signature": "sha256=abc", "Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert response.json() == {"ok": True, "processed": 1}
    dispatcher.handle.assert_awaited_once_with(raw, "sha256=abc")


@pytest.mark.asyncio
async def test_webhook_propagates_401(app_with_mocks, dispatcher: MagicMock) -> None:
    dispatcher.handle.return_value = WebhookResult(401, {"error": "invalid_signature"})

    response = await _post(app_with_mocks, "/api/v1/webhooks/notion", content=b"{}")

    assert response.status_code == 401
    assert response.json() == {"error": "invalid_signature"}


@pytest.mark.asyncio
async def test_health_check(app_with_mocks) -> None:
    transport = ASGITransport(app=app_with_mocks)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_non_ascii_internal_header_is_401(app_with_mocks, sync_use_cases: AsyncMock, monkeypatch) -> None:
    monkeypatch.setattr(settings, "INTERNAL_SYNC_SECRET", "interno")

    response = await _post(
        app_with_mocks,
        "/api/v1/sync/tasks",
        headers={"X-Internal-Sync": "intérno".encode("latin-1"), "X-User-Id": "user-9"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "UNAUTHORIZED"
    sync_use_cases.sync_domain.assert_not_awaited()


@pytest.mark.asyncio
async def test_webhook_non_ascii_signature_reaches_dispatcher(app_with_mocks, dispatcher: MagicMock) -> None:
    dispatcher.handle.return_value = WebhookResult(401, {"error": "invalid_signature"})

    response = await _post(
        app_with_mocks,
        "/api/v1/webhooks/notion",
        content=b"{}",
        headers={"X-Notion-Signature": "sha256=éé".encode("latin-1")},
    )

    assert response.status_code == 401
    dispatcher.handle.assert_awaited_once_with(b"{}", "sha256=éé")
