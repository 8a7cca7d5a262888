"""
In-memory store: used when STORE_URL is not set (local dev) and by tests.
Rows live in per-table dicts keyed by id; nothing survives a restart.
Can simulate unprovisioned tables and failing calls, and records every call.
"""
import copy
import logging

from classpoll.store.base import TABLE_MISSING_CODE, Row, StoreError

logger = logging.getLogger(__name__)


class MemoryStore:
    """RemoteStore kept in process memory."""

    def __init__(
        self,
        tables: dict[str, list[Row]] | None = None,
        missing_tables: set[str] | None = None,
    ) -> None:
        self._tables: dict[str, dict[str, Row]] = {}
        for table, rows in (tables or {}).items():
            self._tables[table] = {str(r["id"]): copy.deepcopy(r) for r in rows}
        self.missing_tables = set(missing_tables or ())
        # (operation, table) pairs that raise StoreError; "*" matches every table
        self.failures: set[tuple[str, str]] = set()
        self.calls: list[tuple[str, str]] = []

    def fail(self, op: str, table: str = "*") -> None:
        """Make op on table (or every table) raise StoreError from now on."""
        self.failures.add((op, table))

    def rows(self, table: str) -> list[Row]:
        """Snapshot of a table's rows, for inspection."""
        return [copy.deepcopy(r) for r in self._tables.get(table, {}).values()]

    def _check(self, op: str, table: str) -> dict[str, Row]:
        self.calls.append((op, table))
        if table in self.missing_tables:
            raise StoreError(f'relation "public.{table}" does not exist', code=TABLE_MISSING_CODE, status=404)
        if (op, table) in self.failures or (op, "*") in self.failures:
            raise StoreError(f"{op} {table} failed (simulated)", code="simulated", status=500)
        return self._tables.setdefault(table, {})

    async def select_all(self, table: str, order: str | None = None) -> list[Row]:
        rows = [copy.deepcopy(r) for r in self._check("select", table).values()]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)))
        return rows

    async def select_single(self, table: str) -> Row | None:
        rows = list(self._check("select_single", table).values())
        return copy.deepcopy(rows[0]) if rows else None

    async def insert(self, table: str, row: Row) -> None:
        data = self._check("insert", table)
        row_id = str(row["id"])
        if row_id in data:
            raise StoreError(f"duplicate key value violates unique constraint on {table}", code="23505", status=409)
        data[row_id] = copy.deepcopy(row)

    async def update(self, table: str, fields: Row, row_id: str) -> None:
        data = self._check("update", table)
        if row_id in data:
            data[row_id].update(copy.deepcopy(fields))
        else:
            # PostgREST PATCH matching no row is not an error
            logger.debug("MemoryStore: update on missing %s id=%s", table, row_id)

    async def upsert(self, table: str, row: Row) -> None:
        data = self._check("upsert", table)
        row_id = str(row["id"])
        merged = {**data.get(row_id, {}), **copy.deepcopy(row)}
        data[row_id] = merged

    async def delete(self, table: str, row_id: str) -> None:
        self._check("delete", table).pop(row_id, None)

    async def aclose(self) -> None:
        return None


def get_memory_store() -> MemoryStore:
    return MemoryStore()
