"""
Tests del registro de bindings: clasificación por nombre, resolución y
refresco de esquema.
"""
from __future__ import annotations

import pytest

from app.application.services.schema_registry import SchemaRegistry, classify_database_name
from app.shared.constants.domain_constants import DomainType, SyncMode
from app.shared.exceptions.domain import BindingNotFoundException, EntityNotFoundException


@pytest.mark.parametrize(
    "name,period,expected",
    [
        ("To-Do List", None, DomainType.TASKS),
        ("Action Items", None, DomainType.TASKS),
        ("People", None, DomainType.CONTACTS),
        ("Media Library", None, DomainType.MEDIA),
        ("Monthly Tracking", None, DomainType.TRACKING_MONTHLY),
        ("Assets", None, DomainType.FINANCIAL_ASSET),
        ("Net Worth", None, DomainType.FINANCIAL_PLACE),
        ("Individual Investments", None, DomainType.FINANCIAL_INVESTMENT),
        ("Cualquier cosa", "weekly", DomainType.TRACKING_WEEKLY),
        ("Recetas", None, None),
        ("", None, None),
    ],
)
def test_classify_database_name(name, period, expected) -> None:
    assert classify_database_name(name, period) == expected


@pytest.mark.asyncio
async def test_upsert_binding_is_idempotent(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)

    first = await registry.upsert_binding("u1", "db-1", DomainType.TASKS, database_name="To-Do List")
    second = await registry.upsert_binding(
        "u1", "db1", DomainType.TASKS, database_name="To-Do", sync_mode=SyncMode.SCHEDULED
    )

    assert first.id == second.id
    assert second.database_name == "To-Do"
    assert second.sync_mode == SyncMode.SCHEDULED
    assert len(await registry.list_bindings("u1")) == 1


@pytest.mark.asyncio
async def test_resolve_binding_exact_match(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    created = await registry.upsert_binding("u1", "db-media", DomainType.MEDIA, database_name="Media")

    resolved = await registry.resolve_binding("u1", DomainType.MEDIA)

    assert resolved.id == created.id
    assert resolved.notion_database_id == "dbmedia"


@pytest.mark.asyncio
async def test_resolve_binding_tracking_uses_period(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    await registry.upsert_binding("u1", "db-w", DomainType.TRACKING_WEEKLY)

    resolved = await registry.resolve_binding("u1", DomainType.TRACKING_WEEKLY, "weekly")

    assert resolved.period == "weekly"
    with pytest.raises(BindingNotFoundException):
        await registry.resolve_binding("u1", DomainType.TRACKING_MONTHLY)


@pytest.mark.asyncio
async def test_resolve_binding_soft_match_by_name(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    stored = await registry.upsert_binding("u1", "db-ai", DomainType.MEDIA, database_name="Action Items")

    resolved = await registry.resolve_binding("u1", DomainType.TASKS)

    assert resolved.id == stored.id
    assert resolved.domain_type == DomainType.TASKS


@pytest.mark.asyncio
async def test_resolve_binding_missing_raises_not_found(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    await registry.upsert_binding("otro", "db-1", DomainType.CONTACTS, database_name="People")

    with pytest.raises(BindingNotFoundException) as exc_info:
        await registry.resolve_binding("u1", DomainType.CONTACTS)

    assert exc_info.value.status_code == 404
    assert exc_info.value.error_code == "BINDING_NOT_FOUND"
    assert exc_info.value.details == {"domain_type": "contacts"}


@pytest.mark.asyncio
async def test_refresh_schema_updates_cache(db_session, fake_notion, payloads) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    binding = await registry.upsert_binding(
        "u1", "db-1", DomainType.TASKS, schema_properties={"Name": {"type": "title", "name": "Name"}}
    )
    fake_notion.add_database(payloads.database("db-1", "To-Do List", {
        "Name": "title",
        "Status": "status",
    }))

    refreshed = await registry.refresh_schema(binding)

    assert set(refreshed.schema_properties) == {"Name", "Status"}
    stored = await registry.resolve_binding("u1", DomainType.TASKS)
    assert stored.schema_properties["Status"] == {"type": "status", "name": "Status"}
    assert stored.database_name == "To-Do List"


@pytest.mark.asyncio
async def test_refresh_schema_falls_back_to_cache_on_error(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    cached = {"Name": {"type": "title", "name": "Name"}}
    binding = await registry.upsert_binding("u1", "db-1", DomainType.TASKS, schema_properties=cached)
    fake_notion.fail_retrieve_database = True

    refreshed = await registry.refresh_schema(binding)

    assert refreshed.schema_properties == cached


@pytest.mark.asyncio
async def test_remove_binding_of_other_user_is_not_found(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    binding = await registry.upsert_binding("u1", "db-1", DomainType.TASKS)

    with pytest.raises(EntityNotFoundException):
        await registry.remove_binding("intruso", binding.id)

    await registry.remove_binding("u1", binding.id)
    assert await registry.list_bindings("u1") == []


@pytest.mark.asyncio
async def test_find_bindings_for_database_spans_users(db_session, fake_notion) -> None:
    registry = SchemaRegistry(db_session, fake_notion)
    await registry.upsert_binding("u1", "db-shared", DomainType.TASKS)
    await registry.upsert_binding("u2", "db-shared", DomainType.TASKS)
    await registry.upsert_binding("u2", "db-other", DomainType.MEDIA)

    bindings = await registry.find_bindings_for_database("db-shared")

    assert sorted(b.user_id for b in bindings) == ["u1", "u2"]
