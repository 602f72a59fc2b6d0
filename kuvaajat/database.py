"""Record store for the single-table marketplace collection.

Jobs, bids, profiles and portfolios share one collection and one primary-key
namespace. The ``entryType`` field tells them apart and is the only secondary
index; every relationship (bid -> job, bid -> profile) is resolved in
application memory by the services, never by the store.
"""

import copy
from typing import Annotated, Any, Protocol

from fastapi import Depends, Request

from supabase import Client, create_client

from .config import Settings
from .errors import StorageError
from .logging_config import get_logger

logger = get_logger("kuvaajat.database")

# =============================================================================
# Record Kinds
# =============================================================================

KIND_FIELD = "entryType"

JOB_KIND = "job"
BID_KIND = "bid"
PROFILE_KIND = "profile"
PORTFOLIO_KIND = "portfolio"

RECORD_KINDS = (JOB_KIND, BID_KIND, PROFILE_KIND, PORTFOLIO_KIND)


def profile_key(photographer_id: str) -> str:
    """Synthetic primary key of a photographer's profile record."""
    return f"profile_{photographer_id}"


def portfolio_key(photographer_id: str) -> str:
    """Synthetic primary key of a photographer's portfolio record."""
    return f"portfolio_{photographer_id}"


# =============================================================================
# Store Contract
# =============================================================================


class RecordStore(Protocol):
    """Protocol for record persistence backends."""

    async def put(self, record: dict) -> dict:
        """Insert or replace a record. ``id`` and ``entryType`` are required."""
        ...

    async def get(self, record_id: str) -> dict | None:
        """Point lookup by primary key."""
        ...

    async def query_by_kind(self, kind: str, **equals: Any) -> list[dict]:
        """Scan the ``entryType`` index, keeping records whose fields equal ``equals``."""
        ...

    async def update(self, record_id: str, changes: dict) -> dict | None:
        """Merge ``changes`` into a record (last writer wins)."""
        ...

    async def compare_and_set(
        self,
        record_id: str,
        field: str,
        expected: Any,
        changes: dict,
    ) -> tuple[dict | None, str | None]:
        """Merge ``changes`` only if ``record[field] == expected``.

        Returns:
            Tuple of (updated_record, error).
            - If successful: (record, None)
            - If not found: (None, "not_found")
            - If the field no longer holds ``expected``: (None, "conflict")
        """
        ...

    async def delete(self, record_id: str) -> bool:
        """Hard delete. Returns True if a record was removed."""
        ...


def _matches(record: dict, equals: dict[str, Any]) -> bool:
    return all(record.get(field) == value for field, value in equals.items())


def _require_keys(record: dict) -> None:
    if not record.get("id"):
        raise ValueError("Record requires an 'id'")
    if record.get(KIND_FIELD) not in RECORD_KINDS:
        raise ValueError(f"Record requires '{KIND_FIELD}' in {RECORD_KINDS}")


class InMemoryRecordStore:
    """In-memory record store for testing and local development.

    Records are deep-copied on the way in and out so callers cannot mutate
    stored state by accident. No method awaits internally, so each call is
    atomic with respect to the event loop.
    """

    def __init__(self, records: list[dict] | None = None):
        self._records: dict[str, dict] = {}
        for record in records or []:
            _require_keys(record)
            self._records[record["id"]] = copy.deepcopy(record)

    async def put(self, record: dict) -> dict:
        _require_keys(record)
        self._records[record["id"]] = copy.deepcopy(record)
        return copy.deepcopy(record)

    async def get(self, record_id: str) -> dict | None:
        record = self._records.get(record_id)
        return copy.deepcopy(record) if record is not None else None

    async def query_by_kind(self, kind: str, **equals: Any) -> list[dict]:
        return [
            copy.deepcopy(r)
            for r in self._records.values()
            if r.get(KIND_FIELD) == kind and _matches(r, equals)
        ]

    async def update(self, record_id: str, changes: dict) -> dict | None:
        record = self._records.get(record_id)
        if record is None:
            return None
        record.update(copy.deepcopy(changes))
        return copy.deepcopy(record)

    async def compare_and_set(
        self,
        record_id: str,
        field: str,
        expected: Any,
        changes: dict,
    ) -> tuple[dict | None, str | None]:
        record = self._records.get(record_id)
        if record is None:
            return None, "not_found"
        if record.get(field) != expected:
            return None, "conflict"
        record.update(copy.deepcopy(changes))
        return copy.deepcopy(record), None

    async def delete(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None


class SupabaseRecordStore:
    """Record store backed by one Supabase (Postgres) table.

    Table layout::

        create table records (
            id text primary key,
            "entryType" text not null,
            data jsonb not null
        );
        create index records_entry_type_idx on records ("entryType");

    ``data`` holds the whole record; field predicates use ``data->>field``,
    so filter values are compared as text.
    """

    def __init__(self, settings: Settings, client: Client | None = None):
        self._settings = settings
        self._client = client
        self.table_name = settings.records_table

    @property
    def client(self) -> Client:
        """Supabase client, created on first use."""
        if self._client is None:
            # Prefer new secret key, fall back to legacy service_role_key
            api_key = self._settings.supabase_secret_key or self._settings.supabase_service_role_key
            if not self._settings.supabase_url or not api_key:
                raise StorageError("Record store is not configured")
            self._client = create_client(self._settings.supabase_url, api_key)
        return self._client

    def _table(self):
        return self.client.table(self.table_name)

    @staticmethod
    def _to_record(row: dict) -> dict:
        record = dict(row.get("data") or {})
        record["id"] = row["id"]
        record[KIND_FIELD] = row[KIND_FIELD]
        return record

    def _execute(self, operation: str, record_id: str, query):
        try:
            return query.execute()
        except StorageError:
            raise
        except Exception as e:
            logger.error(f"Store {operation} failed | id={record_id} | {type(e).__name__}: {e}")
            raise StorageError() from e

    async def put(self, record: dict) -> dict:
        _require_keys(record)
        row = {"id": record["id"], KIND_FIELD: record[KIND_FIELD], "data": record}
        result = self._execute("put", record["id"], self._table().upsert(row))
        return self._to_record(result.data[0]) if result.data else dict(record)

    async def get(self, record_id: str) -> dict | None:
        result = self._execute("get", record_id, self._table().select("*").eq("id", record_id))
        return self._to_record(result.data[0]) if result.data else None

    async def query_by_kind(self, kind: str, **equals: Any) -> list[dict]:
        query = self._table().select("*").eq(KIND_FIELD, kind)
        for field, value in equals.items():
            query = query.eq(f"data->>{field}", str(value))
        result = self._execute("query", kind, query)
        return [self._to_record(row) for row in result.data or []]

    async def update(self, record_id: str, changes: dict) -> dict | None:
        current = await self.get(record_id)
        if current is None:
            return None
        merged = {**current, **changes}
        result = self._execute(
            "update",
            record_id,
            self._table().update({"data": merged}).eq("id", record_id),
        )
        return self._to_record(result.data[0]) if result.data else None

    async def compare_and_set(
        self,
        record_id: str,
        field: str,
        expected: Any,
        changes: dict,
    ) -> tuple[dict | None, str | None]:
        current = await self.get(record_id)
        if current is None:
            return None, "not_found"
        if current.get(field) != expected:
            return None, "conflict"

        merged = {**current, **changes}
        # Atomic update: only succeeds if the field still holds the expected value
        result = self._execute(
            "compare_and_set",
            record_id,
            self._table()
            .update({"data": merged})
            .eq("id", record_id)
            .eq(f"data->>{field}", str(expected)),
        )
        if result.data:
            return self._to_record(result.data[0]), None

        # Update didn't match - either deleted meanwhile or the field changed
        if await self.get(record_id) is None:
            return None, "not_found"
        logger.warning(
            f"Race condition detected on record {record_id}: "
            f"expected {field}='{expected}' no longer holds"
        )
        return None, "conflict"

    async def delete(self, record_id: str) -> bool:
        result = self._execute("delete", record_id, self._table().delete().eq("id", record_id))
        return bool(result.data)


def create_record_store(settings: Settings) -> RecordStore:
    """Build the record store selected by ``RECORD_STORE``."""
    if settings.record_store == "memory":
        logger.warning("Using in-memory record store; data will not persist")
        return InMemoryRecordStore()
    return SupabaseRecordStore(settings)


def get_store(request: Request) -> RecordStore:
    """FastAPI dependency for the record store built at app creation."""
    return request.app.state.record_store


# Type alias for dependency injection
Database = Annotated[RecordStore, Depends(get_store)]
