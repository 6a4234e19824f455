"""Tests for thread safety of Container."""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

from scopebind import Container, Lifetime


class SlowService:
    instances = 0
    lock = threading.Lock()

    def __init__(self) -> None:
        time.sleep(0.01)
        with SlowService.lock:
            SlowService.instances += 1


class Resource:
    def __init__(self) -> None:
        self.dispose_calls = 0

    def dispose(self) -> None:
        self.dispose_calls += 1


def _run_concurrently(target, count=10):
    results = []
    errors = []
    barrier = threading.Barrier(count)

    def run() -> None:
        try:
            barrier.wait()
            results.append(target())
        except Exception as e:  # noqa: BLE001
            errors.append(e)

    threads = [threading.Thread(target=run) for _ in range(count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


class TestConcurrentResolution:
    def test_concurrent_singleton_resolution_same_instance(self) -> None:
        SlowService.instances = 0
        container = Container()
        container.register(SlowService)

        results, errors = _run_concurrently(lambda: container.get_service(SlowService))

        assert not errors
        assert len(results) == 10
        assert all(r is results[0] for r in results)
        assert SlowService.instances == 1

    def test_concurrent_scoped_resolution_same_instance_per_scope(self) -> None:
        SlowService.instances = 0
        container = Container()
        container.register(SlowService, lifetime=Lifetime.SCOPED)
        scope = container.create_scope()

        results, errors = _run_concurrently(lambda: scope.get_service(SlowService))

        assert not errors
        assert all(r is results[0] for r in results)
        assert SlowService.instances == 1

    def test_concurrent_transient_resolution_different_instances(self) -> None:
        container = Container()
        container.register(Resource, lifetime=Lifetime.TRANSIENT)

        results, errors = _run_concurrently(lambda: container.get_service(Resource))

        assert not errors
        assert len({id(r) for r in results}) == 10


class TestConcurrentRegistration:
    def test_concurrent_registration_no_corruption(self) -> None:
        container = Container()
        classes = [type(f"Service{i}", (), {}) for i in range(50)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(container.register, classes))

        for cls in classes:
            assert isinstance(container.get_service(cls), cls)

    def test_concurrent_registration_and_resolution(self) -> None:
        container = Container()
        container.register(Resource, lifetime=Lifetime.TRANSIENT)
        classes = [type(f"Late{i}", (), {}) for i in range(50)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            registered = [pool.submit(container.register, cls) for cls in classes]
            resolved = [pool.submit(container.get_services, Resource) for _ in range(50)]
            for future in registered + resolved:
                future.result()

        assert all(len(f.result()) == 1 for f in resolved)


class TestConcurrentDisposal:
    def test_concurrent_dispose_releases_once(self) -> None:
        container = Container()
        container.register(Resource)
        resource = container.get_service(Resource)

        _, errors = _run_concurrently(container.dispose)

        assert not errors
        assert resource.dispose_calls == 1

    def test_concurrent_scope_lifecycles(self) -> None:
        container = Container()
        container.register(Resource, lifetime=Lifetime.SCOPED)
        container.register(SlowService)

        def scope_lifecycle() -> Resource:
            with container.create_scope() as scope:
                scope.get_service(SlowService)
                return scope.get_service(Resource)

        results, errors = _run_concurrently(scope_lifecycle)

        assert not errors
        assert len({id(r) for r in results}) == 10
        assert all(r.dispose_calls == 1 for r in results)
