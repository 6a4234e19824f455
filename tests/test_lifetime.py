import unittest

import pytest

from scopebind import Container, Lifetime, ScopedServiceFromRootError, ServiceDefinition


class TestLifetimeControl(unittest.TestCase):
    cont: Container

    def setUp(self):
        self.cont = Container()

    def test_singleton_returns_same_instance(self):
        class A: ...

        self.cont.register(A, A, lifetime=Lifetime.SINGLETON)
        a1 = self.cont.get_service(A)
        a2 = self.cont.get_service(A)
        assert a2 is a1, "SINGLETON should return the cached instance"

    def test_singleton_is_shared_across_scopes(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SINGLETON)
        first = self.cont.create_scope().get_service(A)
        second = self.cont.create_scope().get_service(A)
        assert first is second
        assert first is self.cont.get_service(A)

    def test_transient_returns_new_instances(self):
        class A: ...

        self.cont.register(A, A, lifetime=Lifetime.TRANSIENT)
        a1 = self.cont.get_service(A)
        a2 = self.cont.get_service(A)
        assert a2 is not a1, "TRANSIENT should return new instances"

    def test_scoped_same_instance_within_scope(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        scope = self.cont.create_scope()
        assert scope.get_service(A) is scope.get_service(A)

    def test_scoped_differs_between_sibling_scopes(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        first = self.cont.create_scope().get_service(A)
        second = self.cont.create_scope().get_service(A)
        assert first is not second

    def test_scoped_differs_between_parent_and_child_scope(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        parent = self.cont.create_scope()
        child = parent.create_scope()
        assert parent.get_service(A) is not child.get_service(A)

    def test_root_rejects_scoped_service(self):
        class A: ...

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        with pytest.raises(ScopedServiceFromRootError):
            self.cont.get_service(A)

    def test_register_instance_is_always_singleton(self):
        class A: ...

        inst = A()
        self.cont.register_instance(A, inst)
        assert self.cont.get_service(A) is inst
        assert self.cont.create_scope().get_service(A) is inst

    def test_transient_instance_definition_returns_the_instance(self):
        class A: ...

        inst = A()
        self.cont.add(ServiceDefinition(A, instance=inst, lifetime=Lifetime.TRANSIENT))
        assert self.cont.get_service(A) is inst

    def test_singleton_factory_runs_once(self):
        calls = []

        class A: ...

        def make(_):
            calls.append(1)
            return A()

        self.cont.register(A, factory=make)
        self.cont.get_service(A)
        self.cont.create_scope().get_service(A)
        assert len(calls) == 1

    def test_registrations_added_later_are_visible_to_existing_scopes(self):
        class A: ...

        scope = self.cont.create_scope()
        assert scope.get_service(A) is None

        self.cont.register(A, lifetime=Lifetime.SCOPED)
        assert isinstance(scope.get_service(A), A)

    def test_registration_through_scope_is_visible_to_root(self):
        class A: ...

        scope = self.cont.create_scope()
        scope.register(A)
        assert isinstance(self.cont.get_service(A), A)

    def test_different_implementations_do_not_share_singleton_slot(self):
        class Base: ...

        class First(Base): ...

        class Second(Base): ...

        self.cont.register(Base, First)
        first = self.cont.get_service(Base)
        self.cont.register(Base, Second)
        second = self.cont.get_service(Base)

        assert type(first) is First
        assert type(second) is Second
