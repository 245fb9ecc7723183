from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from app.infrastructure.database.models import MediaModel, PersonModel
from app.infrastructure.repositories.mirror_repository import MirrorRepository, mirror_model_for
from app.shared.constants.domain_constants import DomainType


T1 = datetime(2026, 10, 1, 10, 0, tzinfo=timezone.utc)
T2 = datetime(2026, 10, 2, 10, 0, tzinfo=timezone.utc)


def _row(page_id: str, name: str, edited, user_id: str = "u1") -> dict:
    return {
        "user_id": user_id,
        "notion_page_id": page_id,
        "notion_database_id": "db1",
        "name": name,
        "properties": {},
        "notion_snapshot": {"Name": name},
        "notion_last_edited_at": edited,
    }


async def _name(db_session, page_id: str) -> str:
    result = await db_session.execute(select(PersonModel.name).where(PersonModel.notion_page_id == page_id))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_upsert_updates_with_newer_edit(db_session) -> None:
    repo = MirrorRepository(db_session)
    await repo.upsert_rows(PersonModel, [_row("p1", "Ana", T1)])
    await repo.upsert_rows(PersonModel, [_row("p1", "Ana Maria", T2)])
    await db_session.commit()

    assert await _name(db_session, "p1") == "Ana Maria"
    assert await repo.count_rows(PersonModel, "u1", "db1") == 1


@pytest.mark.asyncio
async def test_upsert_skips_stale_edit(db_session) -> None:
    repo = MirrorRepository(db_session)
    await repo.upsert_rows(PersonModel, [_row("p1", "Nuevo", T2)])
    await repo.upsert_rows(PersonModel, [_row("p1", "Viejo", T1)])
    await db_session.commit()

    assert await _name(db_session, "p1") == "Nuevo"


@pytest.mark.asyncio
async def test_upsert_applies_when_timestamp_unknown(db_session) -> None:
    repo = MirrorRepository(db_session)
    await repo.upsert_rows(PersonModel, [_row("p1", "Nuevo", T2)])
    await repo.upsert_rows(PersonModel, [_row("p1", "Sin fecha", None)])
    await db_session.commit()

    assert await _name(db_session, "p1") == "Sin fecha"


@pytest.mark.asyncio
async def test_upsert_requires_conflict_keys(db_session) -> None:
    repo = MirrorRepository(db_session)
    with pytest.raises(ValueError):
        await repo.upsert_rows(PersonModel, [{"name": "x", "user_id": "u1"}])


@pytest.mark.asyncio
async def test_snapshots_delete_and_reverse_lookup(db_session) -> None:
    repo = MirrorRepository(db_session)
    await repo.upsert_rows(PersonModel, [_row("p1", "Ana", T1), _row("p2", "Beto", T1)])
    await repo.upsert_rows(PersonModel, [_row("p1", "Ana", T1, user_id="u2")])
    await db_session.commit()

    snapshots = await repo.load_snapshots(PersonModel, "u1", "db1")
    assert snapshots == {"p1": {"Name": "Ana"}, "p2": {"Name": "Beto"}}

    locations = await repo.find_page_locations("p1")
    assert sorted(locations) == [(DomainType.CONTACTS, "u1", "db1"), (DomainType.CONTACTS, "u2", "db1")]

    local_id = await repo.find_local_id(PersonModel, "u1", "p2")
    assert local_id is not None

    assert await repo.delete_pages(PersonModel, "u1", "db1", ["p1", "p2"]) == 2
    assert await repo.delete_for_database(PersonModel, "u2", "db1") == 1
    assert await repo.count_rows(PersonModel, "u1", "db1") == 0


def test_mirror_model_for_accepts_values() -> None:
    assert mirror_model_for("media") is MediaModel
    assert mirror_model_for(DomainType.CONTACTS) is PersonModel
