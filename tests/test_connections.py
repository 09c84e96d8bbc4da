"""Tests for the endpoint-keyed store registry."""

import threading
from unittest.mock import MagicMock

import pytest

from garage_fs.connections import StoreRegistry
from garage_fs.path_store import MemoryPathStore


class TestStoreRegistry:

    def test_same_endpoint_reuses_store(self):
        factory = MagicMock(side_effect=lambda host, port: MemoryPathStore())
        registry = StoreRegistry(factory)

        first = registry.get("localhost", 3900)
        second = registry.get("localhost", 3900)

        assert first is second
        factory.assert_called_once_with("localhost", 3900)

    def test_host_case_insensitive(self):
        registry = StoreRegistry(lambda host, port: MemoryPathStore())
        assert registry.get("Garage.Local", 3900) is registry.get("garage.local", 3900)

    def test_distinct_endpoints(self):
        registry = StoreRegistry(lambda host, port: MemoryPathStore())
        assert registry.get("a", 3900) is not registry.get("a", 3901)
        assert registry.get("a", 3900) is not registry.get("b", 3900)
        assert len(registry) == 3
        assert ("a", 3901) in registry
        assert ("c", 3900) not in registry

    def test_factory_error_not_cached(self):
        factory = MagicMock(side_effect=[ValueError("no credentials"), MemoryPathStore()])
        registry = StoreRegistry(factory)

        with pytest.raises(ValueError):
            registry.get("h", 1)
        assert len(registry) == 0
        assert registry.get("h", 1) is not None
        assert factory.call_count == 2

    def test_close_closes_all_and_clears(self):
        stores = [MagicMock(), MagicMock()]
        registry = StoreRegistry(MagicMock(side_effect=stores))
        registry.get("a", 1)
        registry.get("b", 2)

        registry.close()

        for store in stores:
            store.close.assert_called_once()
        assert len(registry) == 0

    def test_close_continues_after_store_error(self):
        failing, healthy = MagicMock(), MagicMock()
        failing.close.side_effect = RuntimeError("socket already closed")
        registry = StoreRegistry(MagicMock(side_effect=[failing, healthy]))
        registry.get("a", 1)
        registry.get("b", 2)

        registry.close()

        healthy.close.assert_called_once()

    def test_get_after_close_fails(self):
        registry = StoreRegistry(lambda host, port: MemoryPathStore())
        registry.close()
        with pytest.raises(RuntimeError):
            registry.get("a", 1)

    def test_context_manager_closes(self):
        store = MagicMock()
        with StoreRegistry(lambda host, port: store) as registry:
            registry.get("a", 1)
        store.close.assert_called_once()

    def test_concurrent_get_creates_once(self):
        factory = MagicMock(side_effect=lambda host, port: MemoryPathStore())
        registry = StoreRegistry(factory)
        barrier = threading.Barrier(8)
        results = []

        def resolve():
            barrier.wait()
            results.append(registry.get("localhost", 3900))

        threads = [threading.Thread(target=resolve) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert factory.call_count == 1
        assert all(store is results[0] for store in results)
