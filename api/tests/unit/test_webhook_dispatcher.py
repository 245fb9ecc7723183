"""
Tests del despacho de webhooks de Notion (sync incremental).
"""
from __future__ import annotations

import json

import pytest
from sqlalchemy import func, select

from app.application.services.full_sync_engine import FullSyncEngine
from app.application.services.schema_registry import SchemaRegistry
from app.application.services.webhook_dispatcher import (
    WebhookDispatcher,
    database_id_from_event,
    parse_event_action,
)
from app.core.security import security_service
from app.infrastructure.database.models import TodoModel
from app.shared.constants.domain_constants import DomainType


DB_ID = "shared-db"
SECRET = "whsec-test"


def _event(event_type: str, page_id: str, database_id: str | None = DB_ID) -> dict:
    payload = {
        "id": "evt-1",
        "type": event_type,
        "entity": {"id": page_id, "type": "page"},
        "data": {},
    }
    if database_id:
        payload["data"]["parent"] = {"id": database_id, "type": "database"}
    return payload


def _body(payload: dict) -> bytes:
    return json.dumps(payload).encode("utf-8")


def _sign(raw: bytes) -> str:
    return security_service.compute_webhook_signature(SECRET, raw)


async def _count(db_session) -> int:
    return (await db_session.execute(select(func.count()).select_from(TodoModel))).scalar_one()


@pytest.fixture
def shared_database(fake_notion, payloads):
    fake_notion.add_database(payloads.database(DB_ID, "To-Do List", {"Name": "title", "Status": "status"}))
    fake_notion.add_page(payloads.page("page-1", DB_ID, {
        "Name": payloads.title("Llamar al banco"),
        "Status": payloads.status("Todo"),
    }))
    return fake_notion


async def _dispatcher(db_session, notion, secret: str = SECRET) -> WebhookDispatcher:
    registry = SchemaRegistry(db_session, notion)
    await registry.upsert_binding("u1", DB_ID, DomainType.TASKS, database_name="To-Do List")
    await registry.upsert_binding("u2", DB_ID, DomainType.TASKS, database_name="To-Do List")
    engine = FullSyncEngine(db_session, notion, registry)
    return WebhookDispatcher(db_session, notion, registry=registry, engine=engine, secret=secret)


def test_parse_event_action_accepts_page_and_record_prefixes() -> None:
    assert parse_event_action("page.properties_updated") == "properties_updated"
    assert parse_event_action("record.deleted") == "deleted"
    assert parse_event_action("database.created") is None
    assert parse_event_action("page.moved") is None
    assert parse_event_action(None) is None


def test_database_id_from_event_only_for_database_parent() -> None:
    assert database_id_from_event(_event("page.created", "p", "ab-cd")) == "abcd"
    assert database_id_from_event({"data": {"parent": {"id": "x", "type": "page"}}}) is None
    assert database_id_from_event({}) is None


@pytest.mark.asyncio
async def test_update_fans_out_to_every_binding(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    raw = _body(_event("page.properties_updated", "page-1"))

    result = await dispatcher.handle(raw, _sign(raw))

    assert result.status_code == 200
    assert result.body == {"ok": True, "processed": 2}
    users = await db_session.execute(select(TodoModel.user_id).order_by(TodoModel.user_id))
    assert users.scalars().all() == ["u1", "u2"]


@pytest.mark.asyncio
async def test_invalid_signature_is_rejected_without_changes(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    raw = _body(_event("page.created", "page-1"))

    bad = await dispatcher.handle(raw, "sha256=deadbeef")
    missing = await dispatcher.handle(raw, None)

    assert bad.status_code == 401
    assert bad.body == {"error": "invalid_signature"}
    assert missing.status_code == 401
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_no_secret_skips_signature_check(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database, secret="")
    raw = _body(_event("page.created", "page-1"))

    result = await dispatcher.handle(raw, None)

    assert result.status_code == 200
    assert await _count(db_session) == 2


@pytest.mark.asyncio
async def test_verification_payload_is_acknowledged(db_session, fake_notion) -> None:
    dispatcher = WebhookDispatcher(db_session, fake_notion, secret=SECRET)

    result = await dispatcher.handle(_body({"verification_token": "tok-123"}), None)

    assert result.status_code == 200
    assert result.body == {"ok": True}


@pytest.mark.asyncio
async def test_invalid_json_still_returns_200(db_session, fake_notion) -> None:
    dispatcher = WebhookDispatcher(db_session, fake_notion, secret=SECRET)

    result = await dispatcher.handle(b"{no es json", None)

    assert result.status_code == 200
    assert result.body == {"ok": False, "error": "invalid_json"}


@pytest.mark.asyncio
async def test_unsupported_event_is_ignored(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    raw = _body(_event("database.schema_updated", "page-1"))

    result = await dispatcher.handle(raw, _sign(raw))

    assert result.body == {"ok": True, "ignored": True}
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_event_without_parent_reads_page_to_find_database(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    raw = _body(_event("page.content_updated", "page-1", database_id=None))

    result = await dispatcher.handle(raw, _sign(raw))

    assert result.body == {"ok": True, "processed": 2}


@pytest.mark.asyncio
async def test_unbound_database_is_ignored(db_session, shared_database, payloads) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    shared_database.add_page(payloads.page("page-9", "otra-db", {"Name": payloads.title("x")}))
    raw = _body(_event("page.created", "page-9", database_id="otra-db"))

    result = await dispatcher.handle(raw, _sign(raw))

    assert result.body == {"ok": True, "ignored": True}


@pytest.mark.asyncio
async def test_delete_without_parent_uses_reverse_lookup(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    created = _body(_event("page.created", "page-1"))
    await dispatcher.handle(created, _sign(created))
    assert await _count(db_session) == 2

    deleted = _body(_event("page.deleted", "page-1", database_id=None))
    result = await dispatcher.handle(deleted, _sign(deleted))

    assert result.body == {"ok": True, "removed": 2}
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_archived_page_on_update_is_deleted(db_session, shared_database, payloads) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    created = _body(_event("page.created", "page-1"))
    await dispatcher.handle(created, _sign(created))

    shared_database.add_page(payloads.page("page-1", DB_ID, {"Name": payloads.title("x")}, archived=True))
    updated = _body(_event("page.properties_updated", "page-1"))
    result = await dispatcher.handle(updated, _sign(updated))

    assert result.body == {"ok": True, "removed": 2}
    assert await _count(db_session) == 0


@pytest.mark.asyncio
async def test_notion_failure_still_returns_200(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    raw = _body(_event("page.created", "page-desconocida"))

    result = await dispatcher.handle(raw, _sign(raw))

    assert result.status_code == 200
    assert result.body == {"ok": False}


@pytest.mark.asyncio
async def test_non_ascii_signature_is_rejected_with_401(db_session, shared_database) -> None:
    dispatcher = await _dispatcher(db_session, shared_database)
    raw = _body(_event("page.created", "page-1"))

    result = await dispatcher.handle(raw, "sha256=éé")

    assert result.status_code == 401
    assert result.body == {"error": "invalid_signature"}
    assert await _count(db_session) == 0
