"""
Remote store interface: per-table CRUD over rows in wire format (snake_case dicts, ISO date strings).
All implementations raise StoreError; callers never see transport exceptions.
"""
from typing import Any, Protocol

# PostgreSQL "undefined_table"; PostgREST passes it through when a table was never provisioned.
TABLE_MISSING_CODE = "42P01"

Row = dict[str, Any]


class StoreError(Exception):
    """Remote store failure: code is the backend error code (or a transport tag), message is human text."""

    def __init__(self, message: str, code: str | None = None, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status

    @property
    def table_missing(self) -> bool:
        return self.code == TABLE_MISSING_CODE

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} (code={self.code})"
        return self.message


class RemoteStore(Protocol):
    """Passive key-based store. Rows are addressed by their "id" column."""

    async def select_all(self, table: str, order: str | None = None) -> list[Row]:
        """Every row of table, optionally ordered ascending by one column."""
        ...

    async def select_single(self, table: str) -> Row | None:
        """The only row of a singleton table, or None when it has no row yet."""
        ...

    async def insert(self, table: str, row: Row) -> None:
        ...

    async def update(self, table: str, fields: Row, row_id: str) -> None:
        """Set the given columns on the row with this id."""
        ...

    async def upsert(self, table: str, row: Row) -> None:
        """Insert, or replace the row with the same id."""
        ...

    async def delete(self, table: str, row_id: str) -> None:
        ...

    async def aclose(self) -> None:
        ...
