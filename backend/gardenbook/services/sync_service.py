"""
Sync Reconciler - best-effort replication of the local store to a remote
replica for a single signed-in operator.

Local mutations enqueue push operations keyed by logical target; re-enqueuing
a key before the debounce timer fires replaces the pending operation. Failed
flushes flip the status to "error" and are not retried. On sign-in the
remote collections are pulled, merged last-write-wins by updatedAt, then the
full local state is pushed back.
"""
import asyncio
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from gardenbook.config import settings
from gardenbook.schemas.catalog import CatalogType
from gardenbook.schemas.settings import BusinessSettings
from gardenbook.schemas.sync import SyncStatus
from gardenbook.services.auth_service import AuthSession, SessionProvider, session_provider
from gardenbook.services.remote_store import RemoteStore, SqlRemoteStore
from gardenbook.services.storage_service import (
    CATALOG,
    COLLECTION_MODELS,
    CONTRACTS,
    ESTIMATES,
    INVOICES,
    SETTINGS,
    SETTINGS_KEY,
    LocalStore,
    StoreChange,
    local_store,
)

logger = logging.getLogger(__name__)

SyncOperation = Callable[[], Awaitable[None]]
StatusListener = Callable[[SyncStatus], None]

SINGULAR = {ESTIMATES: "estimate", CONTRACTS: "contract", INVOICES: "invoice"}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def remote_wins(local_updated_at: Optional[datetime], remote_updated_at: datetime) -> bool:
    """Remote replaces local iff local is missing or remote is strictly newer."""
    if local_updated_at is None:
        return True
    return _as_utc(remote_updated_at) > _as_utc(local_updated_at)


class SyncReconciler:

    def __init__(
        self,
        store: LocalStore,
        remote: Optional[RemoteStore],
        auth: SessionProvider,
        debounce_seconds: float = settings.sync_debounce_seconds,
    ):
        self.store = store
        self.remote = remote
        self.auth = auth
        self.debounce_seconds = debounce_seconds

        self._pending: Dict[str, SyncOperation] = {}
        self._pending_lock = threading.Lock()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._tasks: set = set()
        self._merge_lock: Optional[asyncio.Lock] = None
        self._status = SyncStatus.IDLE
        self._status_listeners: List[StatusListener] = []
        self._unsubscribers: List[Callable[[], None]] = []
        self._user_id: Optional[str] = None

    # --- Lifecycle ---

    @property
    def enabled(self) -> bool:
        return self.remote is not None

    def start(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        """Attach to the event loop and subscribe to store and session changes."""
        self._loop = loop or asyncio.get_running_loop()
        self._merge_lock = asyncio.Lock()
        self._unsubscribers.append(self.store.add_listener(self.handle_store_change))
        self._unsubscribers.append(self.auth.on_session_change(self._on_session_change))
        session = self.auth.current_session()
        self._user_id = session.user_id if session else None
        logger.info(f"Sync reconciler started (remote configured: {self.enabled})")

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._loop = None

    async def drain(self) -> None:
        """Wait for background flushes and merges started so far."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # --- Status ---

    @property
    def status(self) -> SyncStatus:
        return self._status

    def add_status_listener(self, listener: StatusListener) -> Callable[[], None]:
        self._status_listeners.append(listener)
        return lambda: self._status_listeners.remove(listener)

    def _set_status(self, status: SyncStatus) -> None:
        self._status = status
        for listener in list(self._status_listeners):
            listener(status)

    # --- Queue ---

    @property
    def pending_keys(self) -> List[str]:
        with self._pending_lock:
            return list(self._pending.keys())

    def current_user_id(self) -> Optional[str]:
        session = self.auth.current_session()
        return session.user_id if session else None

    def enqueue(self, key: str, operation: SyncOperation) -> None:
        """Queue a push; a pending operation with the same key is replaced."""
        if not self.enabled:
            return
        with self._pending_lock:
            self._pending[key] = operation
        self._call_in_loop(self._arm_timer)

    def _call_in_loop(self, callback: Callable[[], None]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            # Not started: operations wait for an explicit flush
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            callback()
        else:
            loop.call_soon_threadsafe(callback)

    def _arm_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = self._loop.call_later(self.debounce_seconds, self._on_timer)

    def _on_timer(self) -> None:
        self._timer = None
        self._spawn(self.flush())

    def _spawn(self, coro: Awaitable[Any]) -> None:
        task = self._loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def notify_online(self) -> None:
        """Network came back: flush now, whatever the debounce timer says."""
        self._call_in_loop(lambda: self._spawn(self.flush()))

    async def flush(self) -> None:
        """Run every pending operation concurrently; no retry on failure."""
        if not self.enabled:
            return
        with self._pending_lock:
            if not self._pending:
                return
            operations = list(self._pending.values())
            self._pending.clear()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

        self._set_status(SyncStatus.SYNCING)
        results = await asyncio.gather(*(op() for op in operations), return_exceptions=True)
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            logger.error(f"Sync flush failed ({len(failures)} of {len(operations)} operations)", exc_info=failures[0])
            self._set_status(SyncStatus.ERROR)
        else:
            self._set_status(SyncStatus.SYNCED)

    # --- Store changes -> push operations ---

    def handle_store_change(self, change: StoreChange) -> None:
        if not self.enabled:
            return
        if change.collection in COLLECTION_MODELS:
            if change.action == "delete":
                key = f"delete-{SINGULAR[change.collection]}-{change.record_id}"
                self.enqueue(key, self._delete_operation(change.collection, change.record_id))
                # A pending collection snapshot may still hold the deleted record
                if change.collection in self.pending_keys:
                    self.enqueue(change.collection, self._push_operation(change.collection, self._collection_rows(change.collection)))
            else:
                self.enqueue(change.collection, self._push_operation(change.collection, self._collection_rows(change.collection)))
        elif change.collection == SETTINGS:
            self.enqueue(SETTINGS, self._push_operation(SETTINGS, self._settings_rows()))
        elif change.collection == CATALOG:
            catalog_type = CatalogType(change.record_id)
            self.enqueue(f"catalog-{catalog_type.value}", self._push_operation(CATALOG, self._catalog_rows(catalog_type)))

    def _collection_rows(self, collection: str) -> List[Dict[str, Any]]:
        rows = []
        for record in self.store.list(collection):
            data = record.to_json_dict()
            rows.append({"id": record.id, "data": data, "updated_at": data["updatedAt"]})
        return rows

    def _settings_rows(self) -> List[Dict[str, Any]]:
        data = self.store.load_settings().to_json_dict()
        return [{"id": SETTINGS_KEY, "data": data, "updated_at": data["updatedAt"]}]

    def _catalog_rows(self, catalog_type: CatalogType) -> List[Dict[str, Any]]:
        items = [item.to_json_dict() for item in self.store.load_catalog(catalog_type)]
        return [{"id": catalog_type.value, "data": items, "updated_at": datetime.now(timezone.utc).isoformat()}]

    def _push_operation(self, collection: str, rows: List[Dict[str, Any]]) -> SyncOperation:
        # Rows are captured now so only the latest enqueued state is sent
        async def push() -> None:
            user_id = self.current_user_id()
            if user_id is None:
                return
            await asyncio.to_thread(self.remote.upsert, collection, user_id, rows)
        return push

    def _delete_operation(self, collection: str, record_id: str) -> SyncOperation:
        async def delete() -> None:
            user_id = self.current_user_id()
            if user_id is None:
                return
            await asyncio.to_thread(self.remote.delete, collection, record_id, user_id)
        return delete

    # --- Sign-in: pull, merge, push back ---

    def _on_session_change(self, session: Optional[AuthSession]) -> None:
        new_user = session.user_id if session else None
        had_user = self._user_id is not None
        self._user_id = new_user
        if new_user and not had_user:
            self._call_in_loop(lambda: self._spawn(self.pull_and_merge()))

    async def pull(self, user_id: str) -> Dict[str, List[Dict[str, Any]]]:
        collections = [ESTIMATES, CONTRACTS, INVOICES, SETTINGS, CATALOG]
        results = await asyncio.gather(*(
            asyncio.to_thread(self.remote.select_by_owner, collection, user_id)
            for collection in collections
        ))
        return dict(zip(collections, results))

    def merge(self, pulled: Dict[str, List[Dict[str, Any]]]) -> Dict[str, int]:
        """
        Write remote winners into the local store, whole-record
        last-write-wins by updatedAt.

        Returns:
            Number of records taken from the remote, per collection
        """
        taken = {}
        for collection, model in COLLECTION_MODELS.items():
            count = 0
            for row in pulled.get(collection, []):
                remote_record = model.model_validate(row["data"])
                local_record = self.store.load(collection, remote_record.id)
                local_updated_at = local_record.updated_at if local_record else None
                if remote_wins(local_updated_at, remote_record.updated_at):
                    self.store.put_from_remote(collection, row["data"])
                    count += 1
            taken[collection] = count

        taken[SETTINGS] = 0
        for row in pulled.get(SETTINGS, []):
            remote_settings = BusinessSettings.model_validate(row["data"])
            if remote_wins(self.store.load_settings().updated_at, remote_settings.updated_at):
                self.store.put_settings_from_remote(row["data"])
                taken[SETTINGS] = 1

        taken[CATALOG] = 0
        for row in pulled.get(CATALOG, []):
            # Catalogs carry no per-item timestamps: a non-empty remote list replaces local
            if row["data"]:
                self.store.put_catalog_from_remote(CatalogType(row["id"]), row["data"])
                taken[CATALOG] += 1
        return taken

    def _snapshot_all(self) -> List[Tuple[str, List[Dict[str, Any]]]]:
        snapshots = [(collection, self._collection_rows(collection)) for collection in (ESTIMATES, CONTRACTS, INVOICES)]
        snapshots.append((SETTINGS, self._settings_rows()))
        snapshots.extend((CATALOG, self._catalog_rows(catalog_type)) for catalog_type in CatalogType)
        return snapshots

    async def push_all(self) -> None:
        """Unconditionally push every local collection to the remote."""
        user_id = self.current_user_id()
        if not self.enabled or user_id is None:
            return
        snapshots = await asyncio.to_thread(self._snapshot_all)
        operations = [self._push_operation(collection, rows) for collection, rows in snapshots]

        self._set_status(SyncStatus.SYNCING)
        results = await asyncio.gather(*(op() for op in operations), return_exceptions=True)
        failures = [r for r in results if isinstance(r, Exception)]
        if failures:
            logger.error("Push of local data failed", exc_info=failures[0])
            self._set_status(SyncStatus.ERROR)
        else:
            self._set_status(SyncStatus.SYNCED)

    async def pull_and_merge(self) -> Optional[Dict[str, int]]:
        """
        One-time reconciliation after sign-in. Pull and merge complete (or
        fail) before the push-back starts; concurrent calls are serialized.
        """
        user_id = self.current_user_id()
        if not self.enabled or user_id is None:
            return None
        if self._merge_lock is None:
            self._merge_lock = asyncio.Lock()

        async with self._merge_lock:
            taken = None
            self._set_status(SyncStatus.SYNCING)
            try:
                pulled = await self.pull(user_id)
                taken = await asyncio.to_thread(self.merge, pulled)
                logger.info(f"Merged remote data for {user_id}: {taken}")
            except Exception as e:
                logger.error(f"Pull from remote failed: {str(e)}", exc_info=True)
                self._set_status(SyncStatus.ERROR)

            await self.push_all()
            return taken

    async def sign_out(self) -> None:
        """Flush pending pushes, then end the session."""
        await self.flush()
        self.auth.sign_out()


def _default_remote() -> Optional[RemoteStore]:
    if not settings.remote_database_url:
        logger.info("No remote database configured, cloud sync disabled")
        return None
    remote = SqlRemoteStore(settings.remote_database_url)
    return remote


sync_reconciler = SyncReconciler(local_store, _default_remote(), session_provider)


def get_sync_reconciler() -> SyncReconciler:
    return sync_reconciler
