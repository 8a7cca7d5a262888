"""
Remote store abstraction: select/insert/update/upsert/delete per table.
PostgREST over HTTP when STORE_URL is set; in-memory otherwise.
"""
import logging

from classpoll.config import settings
from classpoll.store.base import RemoteStore, StoreError
from classpoll.store.gateway import SyncGateway

logger = logging.getLogger(__name__)


def get_remote_store() -> RemoteStore:
    """Return the PostgREST store; in-memory store only if STORE_URL is not configured."""
    url = (settings.store_url or "").strip()
    if not url:
        logger.warning("STORE_URL not set; using in-memory store (data is lost on restart).")
        from classpoll.store.memory_impl import get_memory_store
        return get_memory_store()
    from classpoll.store.rest_impl import PostgrestStore
    logger.info("Remote store: %s", url)
    return PostgrestStore(url, api_key=(settings.store_api_key or "").strip())


def get_sync_gateway() -> SyncGateway:
    return SyncGateway(get_remote_store())


__all__ = ["RemoteStore", "StoreError", "SyncGateway", "get_remote_store", "get_sync_gateway"]
