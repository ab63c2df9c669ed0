"""Unit tests for ProjectSyncService — routing, merge order and degradation."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from cockpit.application.interfaces import ProjectStore, RemoteClientStore, Subscription
from cockpit.application.services.project_sync_service import (
    NOTICE_CLOUD_FALLBACK,
    NOTICE_CONNECTED,
    NOTICE_LOCAL_MODE,
    NOTICE_UPDATE_NOT_SYNCED,
    ProjectSyncService,
    SyncMode,
)
from cockpit.domain.entities import ChatEntry, ProjectRecord, WorkshopStats, new_local_id
from cockpit.domain.exceptions import EntityNotFoundError, RemoteAuthError, RemoteStoreError

T0 = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


# ── Fakes ────────────────────────────────────────────────────────────


class InMemoryProjectStore(ProjectStore):
    def __init__(self, records: list[ProjectRecord] | None = None):
        self.records = {r.id: r for r in records or []}
        self.updates: list[tuple[str, dict[str, Any]]] = []

    async def get_all(self) -> list[ProjectRecord]:
        return sorted(self.records.values(), key=lambda r: r.updated_at, reverse=True)

    async def get_by_id(self, record_id: str) -> ProjectRecord | None:
        return self.records.get(record_id)

    async def add(self, record: ProjectRecord) -> list[ProjectRecord]:
        record.id = new_local_id()
        record.created_at = record.updated_at
        self.records[record.id] = record
        return await self.get_all()

    async def update(self, record_id: str, fields: dict[str, Any]) -> ProjectRecord | None:
        self.updates.append((record_id, dict(fields)))
        return self.records.get(record_id)

    async def remove(self, record_id: str) -> list[ProjectRecord]:
        self.records.pop(record_id, None)
        return await self.get_all()


class FakeSubscription(Subscription):
    def __init__(self, target: str = "clients"):
        self.target = target
        self.closed = False

    async def close(self) -> None:
        self.closed = True


class FakeRemoteStore(RemoteClientStore):
    def __init__(
        self,
        records: list[ProjectRecord] | None = None,
        *,
        fail_sign_in: bool = False,
        fail_add: bool = False,
        fail_update: bool = False,
    ):
        self.records = {r.id: r for r in records or []}
        self.fail_sign_in = fail_sign_in
        self.fail_add = fail_add
        self.fail_update = fail_update
        self.sign_in_calls = 0
        self.added: list[str] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.collection_callback = None
        self.document_subscriptions: list[FakeSubscription] = []

    async def sign_in_anonymously(self) -> str:
        self.sign_in_calls += 1
        if self.fail_sign_in:
            raise RemoteAuthError(400, "ADMIN_ONLY_OPERATION")
        return "anon-uid"

    async def add(self, record: ProjectRecord) -> str:
        if self.fail_add:
            raise RemoteStoreError(503, "The service is currently unavailable.")
        record_id = f"remoteDoc{len(self.added):011d}"
        self.added.append(record_id)
        return record_id

    async def update(self, record_id: str, fields: dict[str, Any]) -> None:
        if self.fail_update:
            raise RemoteStoreError(503, "unavailable")
        self.updates.append((record_id, dict(fields)))

    async def get(self, record_id: str) -> ProjectRecord | None:
        return self.records.get(record_id)

    async def list_all(self) -> list[ProjectRecord]:
        return list(self.records.values())

    async def subscribe_collection(self, callback) -> Subscription:
        self.collection_callback = callback
        await callback(list(self.records.values()))
        return FakeSubscription()

    async def subscribe_document(self, record_id: str, callback) -> Subscription:
        subscription = FakeSubscription(record_id)
        self.document_subscriptions.append(subscription)
        await callback(self.records.get(record_id))
        return subscription


def _remote(record_id: str, name: str, updated_at: datetime, **kwargs) -> ProjectRecord:
    return ProjectRecord(id=record_id, name=name, updated_at=updated_at, created_at=updated_at, **kwargs)


def _local(name: str, updated_at: datetime, **kwargs) -> ProjectRecord:
    return ProjectRecord(id=new_local_id(), name=name, updated_at=updated_at, created_at=updated_at, **kwargs)


# ── Session start ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_start_without_remote_is_offline_with_notice():
    service = ProjectSyncService(InMemoryProjectStore())

    notices = await service.start()

    assert service.mode is SyncMode.OFFLINE
    assert notices == [NOTICE_LOCAL_MODE]


@pytest.mark.asyncio
async def test_failed_sign_in_falls_back_to_offline_without_retry():
    remote = FakeRemoteStore(fail_sign_in=True)
    service = ProjectSyncService(InMemoryProjectStore(), remote)

    notices = await service.start()
    result = await service.add_client("Bruno")

    assert service.mode is SyncMode.OFFLINE
    assert notices == [NOTICE_LOCAL_MODE]
    assert remote.sign_in_calls == 1
    assert remote.added == []
    assert result.record.is_local


@pytest.mark.asyncio
async def test_online_merges_local_only_and_remote_sorted_by_updated_at():
    local = _local("Oficina Local", T0 + timedelta(hours=1))
    remote = FakeRemoteStore([
        _remote("remoteA", "Cliente A", T0 + timedelta(hours=2)),
        _remote("remoteB", "Cliente B", T0),
    ])
    service = ProjectSyncService(InMemoryProjectStore([local]), remote)

    await service.start()

    assert service.mode is SyncMode.ONLINE
    assert [r.id for r in service.clients()] == ["remoteA", local.id, "remoteB"]


# ── Add client ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_offline_add_creates_single_local_lead():
    store = InMemoryProjectStore()
    service = ProjectSyncService(store)
    await service.start()

    result = await service.add_client("Ana", "11 9999-0000")

    clients = service.clients()
    assert len(clients) == 1
    record = clients[0]
    assert record.id.startswith("local_")
    assert record.status == "Lead"
    assert record.valor_estimado == 0
    assert [m.id for m in record.messages] == ["init"]
    assert record.messages[0].text == "Canal master estabelecido para Ana."
    assert result.notices == [NOTICE_CONNECTED]
    assert service.active_id == record.id
    assert record.id in store.records


@pytest.mark.asyncio
async def test_add_when_remote_write_fails_saves_locally():
    store = InMemoryProjectStore()
    remote = FakeRemoteStore([_remote("remoteA", "Cliente A", T0)], fail_add=True)
    service = ProjectSyncService(store, remote)
    await service.start()

    result = await service.add_client("Carla")

    assert result.notices == [NOTICE_CLOUD_FALLBACK, NOTICE_CONNECTED]
    new_records = [r for r in service.clients() if r.name == "Carla"]
    assert len(new_records) == 1
    assert new_records[0].id.startswith("local_")
    assert new_records[0].id in store.records
    assert service.active_id == new_records[0].id


@pytest.mark.asyncio
async def test_online_add_uses_remote_id_and_follows_the_document():
    store = InMemoryProjectStore()
    remote = FakeRemoteStore()
    service = ProjectSyncService(store, remote)
    await service.start()

    result = await service.add_client("Diego")

    assert result.notices == [NOTICE_CONNECTED]
    assert result.record.id == remote.added[0]
    assert not result.record.is_local
    assert store.records == {}
    assert [s.target for s in remote.document_subscriptions] == [result.record.id]


# ── Chat appends ─────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_append_to_local_record_persists_and_keeps_order():
    store = InMemoryProjectStore()
    service = ProjectSyncService(store)
    await service.start()
    record = (await service.add_client("Ana")).record

    first = ChatEntry.from_user("Preciso de um roupeiro")
    second = ChatEntry.from_assistant("Medidas, por favor.")
    await service.append_messages(record.id, [first])
    await service.append_messages(record.id, [second])

    assert [m.id for m in service.get(record.id).messages] == ["init", first.id, second.id]
    record_id, fields = store.updates[-1]
    assert record_id == record.id
    assert [m.id for m in fields["messages"]] == ["init", first.id, second.id]


@pytest.mark.asyncio
async def test_pending_entries_survive_snapshot_until_confirmed():
    remote = FakeRemoteStore([_remote("remoteA", "Cliente A", T0)])
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    await service.start()

    entry = ChatEntry.from_user("Olá")
    await service.append_messages("remoteA", [entry])
    assert remote.updates[-1][0] == "remoteA"

    # Snapshot taken before the write landed
    await remote.collection_callback([_remote("remoteA", "Cliente A", T0)])
    assert [m.id for m in service.get("remoteA").messages] == [entry.id]

    # Snapshot that contains the entry: no duplicate
    confirmed = _remote("remoteA", "Cliente A", T0 + timedelta(minutes=1), messages=[entry])
    await remote.collection_callback([confirmed])
    assert [m.id for m in service.get("remoteA").messages] == [entry.id]


@pytest.mark.asyncio
async def test_remote_append_failure_is_swallowed():
    remote = FakeRemoteStore([_remote("remoteA", "Cliente A", T0)], fail_update=True)
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    await service.start()

    entry = ChatEntry.from_user("Olá")
    record = await service.append_messages("remoteA", [entry])

    assert record.messages[-1].id == entry.id


# ── Updates and selection ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_failed_remote_update_is_kept_for_the_session():
    remote = FakeRemoteStore([_remote("remoteA", "Cliente A", T0)], fail_update=True)
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    await service.start()

    result = await service.update_client("remoteA", {"status": "Produção", "messages": []})

    assert result.notices == [NOTICE_UPDATE_NOT_SYNCED]
    await remote.collection_callback([_remote("remoteA", "Cliente A", T0)])
    assert service.get("remoteA").status == "Produção"


@pytest.mark.asyncio
async def test_local_update_goes_to_store_with_editable_fields_only():
    store = InMemoryProjectStore()
    service = ProjectSyncService(store)
    await service.start()
    record = (await service.add_client("Ana")).record

    await service.update_client(record.id, {"valor_estimado": 1500.0, "id": "hijack"})

    assert store.updates[-1] == (record.id, {"valor_estimado": 1500.0})
    assert service.get(record.id).valor_estimado == 1500.0
    assert service.get(record.id).id == record.id


@pytest.mark.asyncio
async def test_switching_active_record_closes_previous_subscription():
    remote = FakeRemoteStore([
        _remote("remoteA", "Cliente A", T0),
        _remote("remoteB", "Cliente B", T0),
    ])
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    await service.start()

    await service.select("remoteA")
    await service.select("remoteB")

    first, second = remote.document_subscriptions
    assert first.closed is True
    assert second.closed is False
    assert service.active_id == "remoteB"


@pytest.mark.asyncio
async def test_get_unknown_record_raises():
    service = ProjectSyncService(InMemoryProjectStore())
    await service.start()

    with pytest.raises(EntityNotFoundError):
        service.get("local_0_missing")


@pytest.mark.asyncio
async def test_listeners_receive_sorted_list_and_stats_follow():
    remote = FakeRemoteStore([
        _remote("remoteA", "Cliente A", T0, valor_estimado=1000.0, status="Produção"),
    ])
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    received: list[list[str]] = []

    async def listener(records: list[ProjectRecord]) -> None:
        received.append([r.id for r in records])

    service.add_listener(listener)
    await service.start()
    await remote.collection_callback([
        _remote("remoteA", "Cliente A", T0, valor_estimado=1000.0, status="Produção"),
        _remote("remoteB", "Cliente B", T0 + timedelta(hours=1), valor_estimado=250.0, status="Instalação"),
    ])

    assert received[-1] == ["remoteB", "remoteA"]
    stats = service.stats()
    assert stats.total_revenue == 1250.0
    assert stats.active_projects == 2


@pytest.mark.asyncio
async def test_stats_drop_by_exactly_the_removed_record_value():
    remote = FakeRemoteStore()
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    await service.start()
    records = [
        _remote("remoteA", "Cliente A", T0, valor_estimado=1000.0, status="Produção"),
        _remote("remoteB", "Cliente B", T0, valor_estimado=250.5, status="Lead"),
        _remote("remoteC", "Cliente C", T0, valor_estimado=80.25, status="Instalação"),
    ]
    await remote.collection_callback(records)
    before = WorkshopStats.from_records(service.clients())

    # remoteB deleted elsewhere
    await remote.collection_callback([records[0], records[2]])
    after = WorkshopStats.from_records(service.clients())

    assert before.total_revenue - after.total_revenue == 250.5
    assert after == service.stats()


@pytest.mark.asyncio
async def test_removed_listener_is_no_longer_notified():
    service = ProjectSyncService(InMemoryProjectStore())
    calls: list[int] = []

    async def listener(records: list[ProjectRecord]) -> None:
        calls.append(len(records))

    service.add_listener(listener)
    await service.start()
    service.remove_listener(listener)
    await service.add_client("Ana")

    assert calls == [0]


# ── Snapshot races ───────────────────────────────────────────────────


class StaleSnapshotRemoteStore(FakeRemoteStore):
    """Delivers a collection poll fetched before the last insert while the document listener opens."""

    async def subscribe_document(self, record_id: str, callback) -> Subscription:
        await self.collection_callback(list(self.records.values()))
        return await super().subscribe_document(record_id, callback)


@pytest.mark.asyncio
async def test_online_add_survives_a_snapshot_that_predates_the_insert():
    remote = StaleSnapshotRemoteStore([_remote("remoteA", "Cliente A", T0)])
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    await service.start()

    result = await service.add_client("Ana")

    assert result.record.id == remote.added[0]
    assert service.get(result.record.id).name == "Ana"
    assert service.active() is not None
    assert [r.id for r in service.clients()] == [result.record.id, "remoteA"]


@pytest.mark.asyncio
async def test_added_record_is_released_once_a_snapshot_contains_it():
    remote = StaleSnapshotRemoteStore()
    service = ProjectSyncService(InMemoryProjectStore(), remote)
    await service.start()
    record = (await service.add_client("Ana")).record

    confirmed = _remote(record.id, "Ana", T0, valor_estimado=300.0)
    await remote.collection_callback([confirmed])
    assert service.get(record.id).valor_estimado == 300.0

    # Deleted elsewhere after confirmation
    await remote.collection_callback([])
    with pytest.raises(EntityNotFoundError):
        service.get(record.id)
