"""
The CRM store: one explicit handle over every collection.

The entry point creates a Store and passes it to LeadImporter, PipelineEngine,
CrmRepository and the view functions; nothing in the core keeps module-level
state.

Key behaviors:
- load() validates the stored document and seeds the default service
  catalog once, when the services collection is empty.
- Every mutation runs inside transaction(): the outermost transaction
  snapshots the collections, writes the full document once on exit, and
  restores the snapshot if the body or the write fails.
- The activity log is newest first and capped at config.ACTIVITY_LIMIT.
"""

import json
from contextlib import contextmanager
from typing import Generator

import structlog
from pydantic import ValidationError as PydanticValidationError

from .config import config
from .errors import (
    ClientNotFoundError,
    DealNotFoundError,
    LeadNotFoundError,
    ServiceNotFoundError,
    StorageReadError,
    TaskNotFoundError,
)
from .models import (
    Activity,
    ActivityType,
    Client,
    Deal,
    Lead,
    Service,
    Settings,
    StoreSnapshot,
    Task,
    default_services,
)
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage

logger = structlog.get_logger(__name__)


class Store:
    """
    In-memory CRM state bound to a key-value backend.

    Attributes:
        storage: Backend the snapshot is written to
        key: Storage key holding the document
        data: The live StoreSnapshot
    """

    def __init__(
        self,
        storage: KeyValueStorage | None = None,
        key: str | None = None,
        snapshot: StoreSnapshot | None = None,
    ):
        self.storage = storage if storage is not None else MemoryStorage()
        self.key = key or config.STORAGE_KEY
        self.data = snapshot if snapshot is not None else StoreSnapshot()
        self._depth = 0

    # =========================================================================
    # Collections
    # =========================================================================

    @property
    def leads(self) -> list[Lead]:
        return self.data.leads

    @property
    def deals(self) -> list[Deal]:
        return self.data.deals

    @property
    def clients(self) -> list[Client]:
        return self.data.clients

    @property
    def services(self) -> list[Service]:
        return self.data.services

    @property
    def tasks(self) -> list[Task]:
        return self.data.tasks

    @property
    def activities(self) -> list[Activity]:
        return self.data.activities

    @property
    def settings(self) -> Settings:
        return self.data.settings

    # =========================================================================
    # Persistence
    # =========================================================================

    @classmethod
    def load(
        cls,
        storage: KeyValueStorage,
        key: str | None = None,
    ) -> 'Store':
        """
        Load the store document from storage.

        A missing key yields an empty store. When the loaded services
        collection is empty it is seeded with the default catalog and saved.

        Raises:
            StorageReadError: The backend failed, or the document is not a
                              valid store snapshot
        """
        key = key or config.STORAGE_KEY
        raw = storage.load(key)

        snapshot = StoreSnapshot()
        if raw:
            try:
                snapshot = StoreSnapshot.model_validate(json.loads(raw))
            except (json.JSONDecodeError, PydanticValidationError) as exc:
                logger.error('store.load_invalid', key=key, error=str(exc))
                raise StorageReadError(
                    'Stored CRM document is invalid',
                    context={'key': key, 'error_type': type(exc).__name__},
                ) from exc

        store = cls(storage=storage, key=key, snapshot=snapshot)
        logger.info(
            'store.loaded',
            key=key,
            leads=len(store.leads),
            deals=len(store.deals),
            clients=len(store.clients),
        )

        if not store.services:
            with store.transaction():
                store.services.extend(default_services())
            logger.info('store.services_seeded', count=len(store.services))

        return store

    def to_json(self) -> str:
        """Encode the full snapshot document."""
        return json.dumps(self.data.to_document())

    def save(self) -> None:
        """
        Write the full snapshot to storage.

        Raises:
            StorageWriteError: The write failed after retrying
        """
        self.storage.save(self.key, self.to_json())
        logger.debug('store.saved', key=self.key)

    @contextmanager
    def transaction(self) -> Generator['Store', None, None]:
        """
        Group mutations into one all-or-nothing unit.

        Nested transactions join the outermost one; only the outermost
        snapshots, saves, and rolls back.

        The snapshot is a deep copy of the whole document, taken on every
        outermost entry (a standalone add_activity() included), so each
        operation costs O(store size) in copying as well as in the full
        JSON write. Group related mutations under one transaction when
        calling in a loop.
        """
        outermost = self._depth == 0
        backup = self.data.model_copy(deep=True) if outermost else None
        self._depth += 1
        try:
            yield self
            if outermost:
                self.save()
        except Exception:
            if outermost:
                logger.warning('store.rolled_back', key=self.key)
                self.data = backup
            raise
        finally:
            self._depth -= 1

    # =========================================================================
    # Lookups
    # =========================================================================

    def find_lead(self, lead_id: str | None) -> Lead | None:
        return next((l for l in self.leads if l.id == lead_id), None)

    def find_deal(self, deal_id: str | None) -> Deal | None:
        return next((d for d in self.deals if d.id == deal_id), None)

    def find_client(self, client_id: str | None) -> Client | None:
        return next((c for c in self.clients if c.id == client_id), None)

    def find_service(self, service_id: str | None) -> Service | None:
        return next((s for s in self.services if s.id == service_id), None)

    def find_task(self, task_id: str | None) -> Task | None:
        return next((t for t in self.tasks if t.id == task_id), None)

    def get_lead(self, lead_id: str) -> Lead:
        lead = self.find_lead(lead_id)
        if lead is None:
            raise LeadNotFoundError(lead_id)
        return lead

    def get_deal(self, deal_id: str) -> Deal:
        deal = self.find_deal(deal_id)
        if deal is None:
            raise DealNotFoundError(deal_id)
        return deal

    def get_client(self, client_id: str) -> Client:
        client = self.find_client(client_id)
        if client is None:
            raise ClientNotFoundError(client_id)
        return client

    def get_service(self, service_id: str) -> Service:
        service = self.find_service(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)
        return service

    def get_task(self, task_id: str) -> Task:
        task = self.find_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def client_for_deal(self, deal: Deal) -> Client | None:
        """The client already converted from this deal or its lead, if any."""
        return next(
            (
                c
                for c in self.clients
                if c.lead_id == deal.lead_id or c.deal_id == deal.id
            ),
            None,
        )

    # =========================================================================
    # Activity Log
    # =========================================================================

    def add_activity(self, activity_type: ActivityType, text: str) -> Activity:
        """Prepend an activity entry, evicting the oldest beyond the cap."""
        activity = Activity(type=activity_type, text=text)
        with self.transaction():
            self.activities.insert(0, activity)
            del self.activities[config.ACTIVITY_LIMIT:]
        return activity


def open_store(
    storage: KeyValueStorage | None = None,
    key: str | None = None,
) -> Store:
    """
    Open the configured store.

    Args:
        storage: Backend to use (defaults to a JsonFileStorage under
                 config.STORAGE_DIR)
        key: Storage key (defaults to config.STORAGE_KEY)
    """
    if storage is None:
        storage = JsonFileStorage(config.STORAGE_DIR)
    return Store.load(storage, key)
