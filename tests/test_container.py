"""Tests for the service registry."""

import threading
import time

import pytest

from listkeeper.container import Container, Factory, NotFoundError, Value


class TestRegistration:
    def test_has(self):
        container = Container()
        assert container.has("cache") is False
        container.register("cache", Value({}))
        assert container.has("cache") is True

    def test_rejects_untagged_entries(self):
        with pytest.raises(TypeError):
            Container().register("cache", {})

    def test_resolve_unknown_raises(self):
        with pytest.raises(NotFoundError, match="No service named nope was registered."):
            Container().resolve("nope")

    def test_not_found_is_a_lookup_error(self):
        with pytest.raises(LookupError):
            Container().resolve("nope")


class TestResolve:
    def test_value_returned_as_is(self):
        obj = object()
        container = Container()
        container.register("thing", Value(obj))
        assert container.resolve("thing") is obj

    def test_callable_value_is_not_invoked(self):
        def handler():
            raise AssertionError("should not be called")

        container = Container()
        container.register("handler", Value(handler))
        assert container.resolve("handler") is handler

    def test_factory_is_memoized(self):
        calls = []

        def build():
            calls.append(1)
            return object()

        container = Container()
        container.register("svc", Factory(build))
        first = container.resolve("svc")
        second = container.resolve("svc")
        assert first is second
        assert len(calls) == 1

    def test_factory_may_resolve_other_services(self):
        container = Container()
        container.register("base", Factory(lambda: {"name": "base"}))
        container.register("derived", Factory(lambda: ("derived", container.resolve("base"))))
        assert container.resolve("derived") == ("derived", {"name": "base"})

    def test_reregistering_forgets_memoized_instance(self):
        container = Container()
        container.register("svc", Factory(object))
        first = container.resolve("svc")
        container.register("svc", Factory(object))
        assert container.resolve("svc") is not first

    def test_factory_built_once_under_concurrent_first_access(self):
        calls = []
        lock = threading.Lock()

        def slow_build():
            with lock:
                calls.append(1)
            time.sleep(0.05)
            return object()

        container = Container()
        container.register("svc", Factory(slow_build))

        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(container.resolve("svc"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(calls) == 1
        assert len(results) == 8
        assert all(r is results[0] for r in results)

    def test_entry_replaced_while_waiting_for_lock(self):
        container = Container()
        container.register("svc", Factory(lambda: "old"))
        results = []

        with container._lock:
            worker = threading.Thread(target=lambda: results.append(container.resolve("svc")))
            worker.start()
            time.sleep(0.05)
            container.register("svc", Factory(lambda: "new"))
        worker.join()

        assert results == ["new"]
        assert container.resolve("svc") == "new"


class TestMappingAccess:
    def test_setitem_wraps_plain_values(self):
        container = Container()
        container["answer"] = 42
        assert "answer" in container
        assert container["answer"] == 42

    def test_setitem_accepts_factories(self):
        container = Container()
        container["svc"] = Factory(list)
        assert container["svc"] is container["svc"]

    def test_delitem(self):
        container = Container()
        container["answer"] = 42
        del container["answer"]
        assert "answer" not in container
        with pytest.raises(NotFoundError):
            container["answer"]

    def test_contains_non_string(self):
        assert 42 not in Container()
