"""
Store registry - one PathStore per Garage endpoint.

Every handle resolved against the same host and port shares one store
(and so one boto3 client and one set of per-parent listing locks). The
registry owns those stores and closes them all on close().
"""

import logging
import threading
from typing import Callable

from .path_store import PathStore

log = logging.getLogger(__name__)

StoreFactory = Callable[[str, int], PathStore]


class StoreRegistry:
    """Endpoint-keyed pool of PathStores with explicit teardown."""

    def __init__(self, factory: StoreFactory):
        self._factory = factory
        self._stores: dict[tuple[str, int], PathStore] = {}
        self._lock = threading.Lock()
        self._closed = False

    def get(self, host: str, port: int) -> PathStore:
        """Return the store for (host, port), creating it on first use.

        The factory runs under the registry lock, so it is called at most
        once per endpoint. Factory errors propagate and nothing is cached.
        """
        endpoint = (host.lower(), port)
        with self._lock:
            if self._closed:
                raise RuntimeError("Store registry is closed")
            store = self._stores.get(endpoint)
            if store is None:
                store = self._factory(host, port)
                self._stores[endpoint] = store
                log.debug(f"Opened store for {host}:{port} ({len(self._stores)} open)")
            return store

    def __contains__(self, endpoint: tuple[str, int]) -> bool:
        host, port = endpoint
        with self._lock:
            return (host.lower(), port) in self._stores

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)

    def close(self) -> None:
        """Close and forget every store. Further get() calls fail."""
        with self._lock:
            stores = list(self._stores.items())
            self._stores.clear()
            self._closed = True

        for (host, port), store in stores:
            try:
                store.close()
            except Exception as e:
                log.warning(f"Error closing store for {host}:{port}: {e}")
        if stores:
            log.info(f"Closed {len(stores)} store(s)")

    def __enter__(self) -> "StoreRegistry":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
