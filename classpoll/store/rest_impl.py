"""
PostgREST (Supabase REST) store via httpx.AsyncClient.
Uses STORE_URL (e.g. https://<ref>.supabase.co/rest/v1) and STORE_API_KEY.
No retries: a failed call is reported once as StoreError and the caller decides what it means.
"""
import logging

import httpx

from classpoll.config import settings
from classpoll.store.base import Row, StoreError

logger = logging.getLogger(__name__)

# PostgREST answers 406 with this code when a single-object request matches zero rows.
_NO_ROWS_CODE = "PGRST116"
_SINGLE_OBJECT = "application/vnd.pgrst.object+json"


def _error_from_response(response: httpx.Response, table: str, op: str) -> StoreError:
    """Build StoreError from a PostgREST error body {code, message, details, hint}."""
    code = None
    message = response.text[:500] if response.text else response.reason_phrase
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        code = body.get("code") or None
        message = body.get("message") or message
    return StoreError(f"{op} {table} failed: HTTP {response.status_code}: {message}", code=code, status=response.status_code)


class PostgrestStore:
    """RemoteStore over the PostgREST HTTP API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if api_key:
            # Supabase wants both; plain PostgREST ignores apikey
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout if timeout is not None else settings.store_timeout_seconds,
            transport=transport,
        )

    async def _request(self, op: str, table: str, method: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, f"/{table}", **kwargs)
        except httpx.HTTPError as e:
            raise StoreError(f"{op} {table} failed: {type(e).__name__}: {e}", code="network") from e
        return response

    async def select_all(self, table: str, order: str | None = None) -> list[Row]:
        params = {"select": "*"}
        if order:
            params["order"] = f"{order}.asc"
        response = await self._request("select", table, "GET", params=params)
        if response.status_code >= 400:
            raise _error_from_response(response, table, "select")
        data = response.json()
        return data if isinstance(data, list) else []

    async def select_single(self, table: str) -> Row | None:
        response = await self._request(
            "select_single", table, "GET",
            params={"select": "*"},
            headers={"Accept": _SINGLE_OBJECT},
        )
        if response.status_code == 406:
            err = _error_from_response(response, table, "select_single")
            if err.code == _NO_ROWS_CODE:
                return None
            raise err
        if response.status_code >= 400:
            raise _error_from_response(response, table, "select_single")
        data = response.json()
        return data if isinstance(data, dict) else None

    async def insert(self, table: str, row: Row) -> None:
        response = await self._request(
            "insert", table, "POST", json=row, headers={"Prefer": "return=minimal"}
        )
        if response.status_code >= 400:
            raise _error_from_response(response, table, "insert")

    async def update(self, table: str, fields: Row, row_id: str) -> None:
        response = await self._request(
            "update", table, "PATCH",
            params={"id": f"eq.{row_id}"},
            json=fields,
            headers={"Prefer": "return=minimal"},
        )
        if response.status_code >= 400:
            raise _error_from_response(response, table, "update")

    async def upsert(self, table: str, row: Row) -> None:
        response = await self._request(
            "upsert", table, "POST",
            json=row,
            headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
        )
        if response.status_code >= 400:
            raise _error_from_response(response, table, "upsert")

    async def delete(self, table: str, row_id: str) -> None:
        response = await self._request(
            "delete", table, "DELETE", params={"id": f"eq.{row_id}"}
        )
        if response.status_code >= 400:
            raise _error_from_response(response, table, "delete")

    async def aclose(self) -> None:
        await self._client.aclose()
