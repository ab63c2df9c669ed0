"""Integration tests for the SQLite-backed local store."""

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from sqlalchemy import select

from cockpit.domain.entities import CarpenterProfile, ChatEntry, ProjectRecord, WorkshopStats
from cockpit.domain.exceptions import InsufficientCreditsError, LocalStoreUnavailableError
from cockpit.infrastructure.database import SCHEMA_VERSION, StorageContext
from cockpit.infrastructure.database.models import StoreMetaModel
from cockpit.infrastructure.database.repositories import SQLAlchemyProfileStore, SQLAlchemyProjectStore

EMAIL = "mestre@oficina.digital"


@pytest_asyncio.fixture
async def storage(tmp_path):
    context = StorageContext(f"sqlite:///{tmp_path / 'nested' / 'local.db'}")
    await context.open()
    yield context
    await context.close()


@pytest.mark.asyncio
async def test_open_records_schema_version(storage):
    async with storage.session() as session:
        version = (
            await session.execute(select(StoreMetaModel.value).where(StoreMetaModel.key == "schema_version"))
        ).scalar_one()

    assert int(version) == SCHEMA_VERSION


@pytest.mark.asyncio
async def test_closed_store_raises():
    context = StorageContext("sqlite:///:memory:")
    store = SQLAlchemyProjectStore(context)

    with pytest.raises(LocalStoreUnavailableError):
        await store.get_all()


@pytest.mark.asyncio
async def test_add_assigns_local_id_and_returns_full_list(storage):
    store = SQLAlchemyProjectStore(storage)

    first = ProjectRecord.new_lead("Ana")
    await store.add(first)
    second = ProjectRecord.new_lead("Bruno")
    records = await store.add(second)

    assert first.id.startswith("local_")
    assert first.id != second.id
    assert [r.name for r in records] == ["Bruno", "Ana"]
    assert records[1].messages[0].id == "init"
    assert records[0].created_at is not None
    assert records[0].updated_at.tzinfo is not None


@pytest.mark.asyncio
async def test_update_merges_fields_and_keeps_unknown_keys(storage):
    store = SQLAlchemyProjectStore(storage)
    record = ProjectRecord.new_lead("Ana")
    await store.add(record)
    before = (await store.get_by_id(record.id)).updated_at

    entry = ChatEntry.from_user("Roupeiro")
    updated = await store.update(
        record.id,
        {"status": "Orçamento", "messages": record.messages + [entry], "vendedor": "Carlos", "id": "x"},
    )

    assert updated.id == record.id
    reloaded = await store.get_by_id(record.id)
    assert reloaded.status == "Orçamento"
    assert [m.id for m in reloaded.messages] == ["init", entry.id]
    assert reloaded.extra == {"vendedor": "Carlos"}
    assert reloaded.updated_at >= before


@pytest.mark.asyncio
async def test_update_unknown_record_returns_none(storage):
    assert await SQLAlchemyProjectStore(storage).update("local_0_nope", {"status": "Lead"}) is None


@pytest.mark.asyncio
async def test_list_is_ordered_by_updated_at(storage):
    store = SQLAlchemyProjectStore(storage)
    older = ProjectRecord.new_lead("Antigo")
    newer = ProjectRecord.new_lead("Recente")
    await store.add(newer)
    await store.add(older)

    # Touching a record moves it to the top
    await store.update(newer.id, {"phone": "123"})
    records = await store.get_all()

    assert [r.name for r in records] == ["Recente", "Antigo"]


@pytest.mark.asyncio
async def test_remove_deletes_record(storage):
    store = SQLAlchemyProjectStore(storage)
    record = ProjectRecord.new_lead("Ana")
    await store.add(record)

    remaining = await store.remove(record.id)

    assert remaining == []
    assert await store.get_by_id(record.id) is None


@pytest.mark.asyncio
async def test_removing_a_record_lowers_revenue_by_its_value(storage):
    store = SQLAlchemyProjectStore(storage)
    records = [ProjectRecord.new_lead(name) for name in ("Ana", "Bruno", "Carla")]
    for record, value in zip(records, (1200.0, 349.9, 75.0)):
        await store.add(record)
        await store.update(record.id, {"valor_estimado": value})
    before = WorkshopStats.from_records(await store.get_all())

    await store.remove(records[1].id)
    after = WorkshopStats.from_records(await store.get_all())

    assert before.total_revenue - after.total_revenue == pytest.approx(349.9)
    assert after.total_revenue == pytest.approx(1275.0)


@pytest.mark.asyncio
async def test_records_survive_reopen(tmp_path):
    url = f"sqlite:///{tmp_path / 'local.db'}"
    first = StorageContext(url)
    await first.open()
    record = ProjectRecord.new_lead("Ana")
    await SQLAlchemyProjectStore(first).add(record)
    await first.close()

    second = StorageContext(url)
    await second.open()
    records = await SQLAlchemyProjectStore(second).get_all()
    await second.close()

    assert [r.id for r in records] == [record.id]
    assert records[0].created_at <= datetime.now(timezone.utc)


# ── Profile ──


@pytest.mark.asyncio
async def test_add_credits_creates_profile_and_accumulates(storage):
    store = SQLAlchemyProfileStore(storage, EMAIL)

    assert await store.get_profile() is None
    assert await store.add_credits(10) == 10
    assert await store.add_credits(50) == 60
    assert (await store.get_profile()).credits == 60


@pytest.mark.asyncio
async def test_save_profile_round_trips(storage):
    store = SQLAlchemyProfileStore(storage, EMAIL)
    assert await store.add_credits(5) == 5

    current = await store.get_profile()
    current.name = "Bento"
    current.integrations = {"whatsapp_number": "+5511999990000"}
    await store.save_profile(current)

    reloaded = await store.get_profile()
    assert reloaded.name == "Bento"
    assert reloaded.credits == 5
    assert reloaded.integrations == {"whatsapp_number": "+5511999990000"}


@pytest.mark.asyncio
async def test_consume_credits_deducts_and_refuses_overdraft(storage):
    store = SQLAlchemyProfileStore(storage, EMAIL)

    with pytest.raises(InsufficientCreditsError):
        await store.consume_credits(1)

    await store.add_credits(3)
    assert await store.consume_credits(2) == 1
    with pytest.raises(InsufficientCreditsError):
        await store.consume_credits(2)
    assert (await store.get_profile()).credits == 1


@pytest.mark.asyncio
async def test_admin_profile_spends_nothing(storage):
    store = SQLAlchemyProfileStore(storage, EMAIL)
    await store.save_profile(CarpenterProfile(email=EMAIL, credits=0, is_admin=True))

    assert await store.consume_credits(10) == 0
    assert (await store.get_profile()).is_admin is True
