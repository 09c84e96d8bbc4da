"""
GarageFileSystem - resolves garage:// locators to HierarchicalFileStore handles.

Locator form:
    garage://[host][:port]/path/to/entry

Host and port default to the configured endpoint. The path is made
absolute and stripped of any trailing separator.

Resolution never raises: a malformed locator, missing credentials or an
unreachable endpoint yields a handle over a NullPathStore, which behaves
as an empty filesystem.
"""

import logging
from typing import Optional
from urllib.parse import urlsplit

from botocore.exceptions import BotoCoreError

from .config import StoreConfig, load_config
from .connections import StoreRegistry
from .errors import StoreUnavailable
from .file_store import SCHEME, HierarchicalFileStore
from .garage import create_garage_store
from .path_store import NullPathStore
from .paths import normalize_path

log = logging.getLogger(__name__)


class GarageFileSystem:
    """Entry point from locators to handles. Owns the store registry."""

    scheme = SCHEME

    def __init__(self, config: Optional[StoreConfig] = None, registry: Optional[StoreRegistry] = None):
        self.config = config or load_config()
        if registry is None:
            registry = StoreRegistry(lambda host, port: create_garage_store(self.config, host, port))
        self.registry = registry

    def can_write(self) -> bool:
        return True

    def can_delete(self) -> bool:
        return True

    def parse_uri(self, uri: str) -> tuple[str, int, str]:
        """Split a locator into (host, port, absolute path).

        Bare paths ("/a/b") resolve against the default endpoint.

        Raises:
            ValueError: wrong scheme or invalid port
        """
        parts = urlsplit(uri)
        if parts.scheme and parts.scheme != self.scheme:
            raise ValueError(f"Unsupported scheme '{parts.scheme}' in '{uri}'")

        host = parts.hostname or self.config.default_host
        port = parts.port  # raises ValueError when out of range or not numeric
        if port is None:
            port = self.config.default_port

        return host, port, normalize_path(parts.path)

    def get_store(self, uri: str) -> HierarchicalFileStore:
        """Resolve a locator to a handle; falls back to a null store on failure."""
        try:
            host, port, path = self.parse_uri(uri)
            store = self.registry.get(host, port)
        except (ValueError, BotoCoreError, StoreUnavailable) as e:
            log.warning(f"Couldn't resolve '{uri}', using null store: {e}")
            return HierarchicalFileStore(NullPathStore(uri), self._fallback_path(uri))
        return HierarchicalFileStore(store, path)

    @staticmethod
    def _fallback_path(uri: str) -> str:
        try:
            return normalize_path(urlsplit(uri).path)
        except ValueError:
            return normalize_path("")

    def close(self) -> None:
        self.registry.close()

    def __enter__(self) -> "GarageFileSystem":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
