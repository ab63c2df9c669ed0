"""Sync orchestrator — one client list over the local store and the optional cloud.

Writes are routed by id namespace: ``local_`` ids live only in the local
store, every other id belongs to the remote collection. The unified list is
``local_only ++ remote`` sorted by ``updated_at`` descending, and every
change is pushed to the registered listeners.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from cockpit.application.interfaces import ProjectStore, RemoteClientStore, Subscription
from cockpit.domain.entities import ChatEntry, ProjectRecord, WorkshopStats, is_local_id
from cockpit.domain.exceptions import EntityNotFoundError
from cockpit.infrastructure.logging.activity_logger import ActivityLogger, ActivityStage

logger = logging.getLogger(__name__)
alog = ActivityLogger("ProjectSyncService")

NOTICE_CONNECTED = "Conectado!"
NOTICE_CLOUD_FALLBACK = "Erro na Nuvem. Salvando local..."
NOTICE_LOCAL_MODE = "Modo local: sincronização com a nuvem desativada."
NOTICE_UPDATE_NOT_SYNCED = "Alteração guardada apenas nesta sessão (falha na nuvem)."

# Fields a manual edit or a workshop tool may change
EDITABLE_FIELDS = frozenset({
    "name",
    "phone",
    "status",
    "valor_estimado",
    "bom",
    "custo_material",
    "custo_mao_obra",
    "contract",
})

ChangeListener = Callable[[list[ProjectRecord]], Awaitable[None]]


class SyncMode(str, Enum):
    OFFLINE = "offline"
    AUTHENTICATING = "authenticating"
    ONLINE = "online"


@dataclass
class SyncResult:
    """A record after a write, plus the notices the UI should show."""

    record: ProjectRecord
    notices: list[str] = field(default_factory=list)


def _sort_key(record: ProjectRecord) -> datetime:
    return record.updated_at or datetime.fromtimestamp(0, tz=timezone.utc)


class ProjectSyncService:
    """Application service that owns the session's view of every client record.

    Created once per process and started in the lifespan. Remote-backed
    records carry two kinds of unconfirmed state that survive incoming
    snapshots: records added this session that no snapshot has shown yet,
    chat entries not yet seen remotely and field edits whose remote write
    failed.
    """

    def __init__(self, store: ProjectStore, remote: RemoteClientStore | None = None):
        self._store = store
        self._remote = remote
        self._mode = SyncMode.OFFLINE
        self._local: dict[str, ProjectRecord] = {}
        self._remote_records: dict[str, ProjectRecord] = {}
        self._pending_entries: dict[str, list[ChatEntry]] = {}
        self._unconfirmed_adds: dict[str, ProjectRecord] = {}
        self._unsynced_fields: dict[str, dict[str, Any]] = {}
        self._active_id: str | None = None
        self._collection_subscription: Subscription | None = None
        self._active_subscription: Subscription | None = None
        self._listeners: list[ChangeListener] = []

    # ── Session lifecycle ───────────────────────────────────────────

    @property
    def mode(self) -> SyncMode:
        return self._mode

    @property
    def active_id(self) -> str | None:
        return self._active_id

    async def start(self) -> list[str]:
        """Load local records and, when configured, go online.

        Returns the notices to show once at startup.
        """
        self._local = {r.id: r for r in await self._store.get_all()}
        alog.step_complete(ActivityStage.LOCAL, "Local records loaded", count=len(self._local))

        if self._remote is None:
            logger.warning("Remote store not configured — running in local mode")
            self._mode = SyncMode.OFFLINE
            await self._notify()
            return [NOTICE_LOCAL_MODE]

        self._mode = SyncMode.AUTHENTICATING
        try:
            await self._remote.sign_in_anonymously()
            # Online before the first snapshot lands so the merge sees it
            self._mode = SyncMode.ONLINE
            self._collection_subscription = await self._remote.subscribe_collection(
                self._on_collection_snapshot
            )
        except Exception as exc:
            self._mode = SyncMode.OFFLINE
            alog.step_warning(ActivityStage.CLOUD, "Remote initialization failed — local mode", error=exc)
            await self._notify()
            return [NOTICE_LOCAL_MODE]

        alog.step_complete(ActivityStage.CLOUD, "Online", remote=len(self._remote_records))
        return []

    async def stop(self) -> None:
        for subscription in (self._active_subscription, self._collection_subscription):
            if subscription is not None:
                await subscription.close()
        self._active_subscription = None
        self._collection_subscription = None
        self._listeners.clear()

    # ── Listeners ───────────────────────────────────────────────────

    def add_listener(self, listener: ChangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    async def _notify(self) -> None:
        snapshot = self.clients()
        for listener in list(self._listeners):
            try:
                await listener(snapshot)
            except Exception:
                logger.exception("Client list listener failed")

    # ── Reads ───────────────────────────────────────────────────────

    def clients(self) -> list[ProjectRecord]:
        """The unified list, most recently updated first."""
        merged = list(self._local.values()) + list(self._remote_records.values())
        return sorted(merged, key=_sort_key, reverse=True)

    def stats(self) -> WorkshopStats:
        return WorkshopStats.from_records(self.clients())

    def get(self, record_id: str) -> ProjectRecord:
        record = self._local.get(record_id) if is_local_id(record_id) else self._remote_records.get(record_id)
        if record is None:
            raise EntityNotFoundError("Client", record_id)
        return record

    def active(self) -> ProjectRecord | None:
        if self._active_id is None:
            return None
        try:
            return self.get(self._active_id)
        except EntityNotFoundError:
            return None

    # ── Remote snapshots ────────────────────────────────────────────

    def _merge_unconfirmed(self, record: ProjectRecord) -> ProjectRecord:
        pending = self._pending_entries.get(record.id)
        if pending:
            seen = {m.id for m in record.messages}
            remaining = [e for e in pending if e.id not in seen]
            if remaining:
                record.messages.extend(remaining)
                self._pending_entries[record.id] = remaining
            else:
                del self._pending_entries[record.id]
        for key, value in self._unsynced_fields.get(record.id, {}).items():
            setattr(record, key, value)
        return record

    async def _on_collection_snapshot(self, records: list[ProjectRecord]) -> None:
        previous = self._remote_records
        self._remote_records = {
            r.id: self._merge_unconfirmed(r) for r in records if not is_local_id(r.id)
        }
        for record_id, record in list(self._unconfirmed_adds.items()):
            if record_id in self._remote_records:
                del self._unconfirmed_adds[record_id]
            else:
                # Snapshot predates the insert
                self._remote_records[record_id] = previous.get(record_id, record)
        alog.detail("Collection snapshot applied", remote=len(self._remote_records))
        await self._notify()

    async def _on_active_snapshot(self, record: ProjectRecord | None) -> None:
        if record is None or record.id != self._active_id:
            return
        self._remote_records[record.id] = self._merge_unconfirmed(record)
        await self._notify()

    # ── Writes ──────────────────────────────────────────────────────

    async def _add_local(self, record: ProjectRecord) -> None:
        await self._store.add(record)
        self._local[record.id] = record
        alog.step_complete(ActivityStage.LOCAL, "Client stored locally", id=record.id)

    async def add_client(self, name: str, phone: str = "") -> SyncResult:
        """Create a Lead; the cloud gets it when online, the local store otherwise."""
        record = ProjectRecord.new_lead(name.strip(), phone.strip())
        notices: list[str] = []

        if self._mode is SyncMode.ONLINE and self._remote is not None:
            try:
                remote_id = await self._remote.add(record)
            except Exception as exc:
                alog.step_warning(ActivityStage.CLOUD, "Remote insert failed — saving locally", error=exc)
                notices.append(NOTICE_CLOUD_FALLBACK)
                await self._add_local(record)
            else:
                record.id = remote_id
                record.created_at = record.updated_at
                self._remote_records[remote_id] = record
                self._unconfirmed_adds[remote_id] = record
                alog.step_complete(ActivityStage.CLOUD, "Client stored remotely", id=remote_id)
        else:
            await self._add_local(record)

        await self.select(record.id)
        notices.append(NOTICE_CONNECTED)
        return SyncResult(record=record, notices=notices)

    async def select(self, record_id: str) -> ProjectRecord:
        """Make ``record_id`` the active record, replacing the document listener."""
        record = self.get(record_id)
        if self._active_subscription is not None:
            await self._active_subscription.close()
            self._active_subscription = None
        self._active_id = record_id

        if not is_local_id(record_id) and self._mode is SyncMode.ONLINE and self._remote is not None:
            try:
                self._active_subscription = await self._remote.subscribe_document(
                    record_id, self._on_active_snapshot
                )
            except Exception as exc:
                alog.step_warning(ActivityStage.CLOUD, "Could not follow active record", error=exc)
        await self._notify()
        return record

    async def append_messages(
        self, record_id: str, entries: list[ChatEntry], *, persist: bool = True
    ) -> ProjectRecord:
        """Append chat entries optimistically; ``persist=False`` stages them only."""
        record = self.get(record_id)
        record.append_messages(entries)
        if not record.is_local:
            self._pending_entries.setdefault(record_id, []).extend(entries)
        if persist:
            await self._persist_messages(record)
        await self._notify()
        return record

    async def flush_messages(self, record_id: str) -> ProjectRecord:
        """Persist the record's current conversation (including staged entries)."""
        record = self.get(record_id)
        await self._persist_messages(record)
        return record

    async def _persist_messages(self, record: ProjectRecord) -> None:
        if record.is_local:
            await self._store.update(record.id, {"messages": record.messages})
            return
        if self._mode is not SyncMode.ONLINE or self._remote is None:
            logger.warning("Offline — messages for %s kept in memory only", record.id)
            return
        try:
            await self._remote.update(record.id, {"messages": record.messages})
        except Exception as exc:
            alog.step_warning(ActivityStage.CLOUD, f"Message sync failed for {record.id}", error=exc)

    async def update_client(self, record_id: str, fields: dict[str, Any]) -> SyncResult:
        """Apply a partial edit (manual change or workshop tool result)."""
        changes = {k: v for k, v in fields.items() if k in EDITABLE_FIELDS}
        record = self.get(record_id)
        notices: list[str] = []
        if not changes:
            return SyncResult(record=record, notices=notices)

        for key, value in changes.items():
            setattr(record, key, value)
        record.updated_at = datetime.now(timezone.utc)

        if record.is_local:
            await self._store.update(record_id, changes)
        elif self._mode is SyncMode.ONLINE and self._remote is not None:
            try:
                await self._remote.update(record_id, changes)
            except Exception as exc:
                alog.step_warning(ActivityStage.CLOUD, f"Update of {record_id} not synced", error=exc)
                self._unsynced_fields.setdefault(record_id, {}).update(changes)
                notices.append(NOTICE_UPDATE_NOT_SYNCED)
            else:
                unsynced = self._unsynced_fields.get(record_id)
                if unsynced:
                    for key in changes:
                        unsynced.pop(key, None)
        else:
            self._unsynced_fields.setdefault(record_id, {}).update(changes)
            notices.append(NOTICE_UPDATE_NOT_SYNCED)

        alog.step_complete(ActivityStage.SYNC, "Client updated", id=record_id, fields=",".join(changes))
        await self._notify()
        return SyncResult(record=record, notices=notices)
