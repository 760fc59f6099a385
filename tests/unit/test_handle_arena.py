"""Unit tests for the handle arena."""

from __future__ import annotations

import threading

import pytest

from duckling.domain.errors import ClosedHandleError
from duckling.domain.services.handle_arena import HandleArena, get_arena, reset_arena
from duckling.domain.value_objects import HandleKind


@pytest.mark.unit
class TestRegisterResolve:
    """Tests for issuing and resolving handles."""

    def test_resolve_returns_resource(self, arena: HandleArena) -> None:
        """A live handle resolves to the registered resource."""
        resource = object()
        handle = arena.register(HandleKind.DATABASE, resource)

        assert arena.resolve(handle) is resource
        assert arena.is_live(handle)
        assert handle.kind is HandleKind.DATABASE

    def test_released_handle_is_closed(self, arena: HandleArena) -> None:
        """Resolving a released handle raises ClosedHandleError."""
        handle = arena.register(HandleKind.CONNECTION, "conn")
        arena.release(handle)

        assert not arena.is_live(handle)
        with pytest.raises(ClosedHandleError, match="connection handle is closed"):
            arena.resolve(handle)

    def test_release_is_idempotent(self, arena: HandleArena) -> None:
        """Releasing twice reports False the second time."""
        handle = arena.register(HandleKind.STATEMENT, "stmt")

        assert arena.release(handle) is True
        assert arena.release(handle) is False

    def test_stale_handle_does_not_alias_reused_slot(self, arena: HandleArena) -> None:
        """A reused slot gets a new generation; the old handle stays closed."""
        old = arena.register(HandleKind.QUERY_RESULT, "first")
        arena.release(old)
        new = arena.register(HandleKind.QUERY_RESULT, "second")

        assert new.index == old.index
        assert new.generation == old.generation + 1
        assert arena.resolve(new) == "second"
        with pytest.raises(ClosedHandleError):
            arena.resolve(old)
        assert arena.release(old) is False
        assert arena.is_live(new)

    def test_kinds_have_separate_tables(self, arena: HandleArena) -> None:
        """Handles of different kinds never collide."""
        db = arena.register(HandleKind.DATABASE, "db")
        app = arena.register(HandleKind.APPENDER, "app")

        assert db.index == app.index == 0
        assert arena.resolve(db) == "db"
        assert arena.resolve(app) == "app"


@pytest.mark.unit
class TestOwnership:
    """Tests for parent/child bookkeeping."""

    def test_children_in_registration_order(self, arena: HandleArena) -> None:
        """Children are listed oldest first and can be filtered by kind."""
        db = arena.register(HandleKind.DATABASE, "db")
        conn = arena.register(HandleKind.CONNECTION, "conn", parent=db)
        stmt = arena.register(HandleKind.STATEMENT, "stmt", parent=conn)
        result = arena.register(HandleKind.QUERY_RESULT, "result", parent=conn)

        assert arena.children(db) == [conn]
        assert arena.children(conn) == [stmt, result]
        assert arena.children(conn, HandleKind.QUERY_RESULT) == [result]
        assert arena.parent(stmt) == conn

    def test_register_under_closed_parent(self, arena: HandleArena) -> None:
        """A released parent cannot take new children."""
        db = arena.register(HandleKind.DATABASE, "db")
        arena.release(db)

        with pytest.raises(ClosedHandleError):
            arena.register(HandleKind.CONNECTION, "conn", parent=db)

    def test_release_cascades_to_descendants(self, arena: HandleArena) -> None:
        """Releasing an owner releases everything below it."""
        db = arena.register(HandleKind.DATABASE, "db")
        conn = arena.register(HandleKind.CONNECTION, "conn", parent=db)
        app = arena.register(HandleKind.APPENDER, "app", parent=conn)

        arena.release(db)

        assert not arena.is_live(conn)
        assert not arena.is_live(app)
        assert arena.live_count() == 0

    def test_release_child_detaches_from_parent(self, arena: HandleArena) -> None:
        """A released child disappears from its parent's children."""
        db = arena.register(HandleKind.DATABASE, "db")
        first = arena.register(HandleKind.CONNECTION, "a", parent=db)
        second = arena.register(HandleKind.CONNECTION, "b", parent=db)

        arena.release(first)

        assert arena.children(db) == [second]
        assert arena.is_live(db)


@pytest.mark.unit
class TestLiveCount:
    """Tests for live handle counting."""

    def test_counts_per_kind(self, arena: HandleArena) -> None:
        """live_count reports per kind and in total."""
        db = arena.register(HandleKind.DATABASE, "db")
        arena.register(HandleKind.CONNECTION, "a", parent=db)
        b = arena.register(HandleKind.CONNECTION, "b", parent=db)
        arena.release(b)

        assert arena.live_count(HandleKind.DATABASE) == 1
        assert arena.live_count(HandleKind.CONNECTION) == 1
        assert arena.live_count() == 2

    def test_concurrent_register_release(self, arena: HandleArena) -> None:
        """Bookkeeping stays consistent under concurrent use."""
        db = arena.register(HandleKind.DATABASE, "db")

        def worker() -> None:
            for _ in range(200):
                handle = arena.register(HandleKind.CONNECTION, "conn", parent=db)
                arena.release(handle)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert arena.live_count(HandleKind.CONNECTION) == 0
        assert arena.children(db) == []

    def test_cascade_updates_counts(self, arena: HandleArena) -> None:
        """Releasing an owner decrements the counts of its descendants."""
        db = arena.register(HandleKind.DATABASE, "db")
        conn = arena.register(HandleKind.CONNECTION, "conn", parent=db)
        arena.register(HandleKind.QUERY_RESULT, "result", parent=conn)

        arena.release(db)
        arena.release(db)

        assert arena.live_count(HandleKind.QUERY_RESULT) == 0
        assert arena.live_count() == 0


class _Resource:
    """Weakly referenceable stand-in for a resource."""


@pytest.mark.unit
class TestWeakSlots:
    """Tests for slots that hold their resource weakly."""

    def test_resolves_while_referenced(self, arena: HandleArena) -> None:
        resource = _Resource()
        handle = arena.register(HandleKind.QUERY_RESULT, resource, weak=True)

        assert arena.resolve(handle) is resource
        assert arena.lookup(handle) is resource

    def test_collected_resource(self, arena: HandleArena) -> None:
        """A collected resource no longer resolves, even before release."""
        resource = _Resource()
        handle = arena.register(HandleKind.QUERY_RESULT, resource, weak=True)

        del resource

        assert arena.lookup(handle) is None
        with pytest.raises(ClosedHandleError):
            arena.resolve(handle)
        assert arena.release(handle)
        assert arena.live_count(HandleKind.QUERY_RESULT) == 0

    def test_lookup_of_released_handle(self, arena: HandleArena) -> None:
        handle = arena.register(HandleKind.STATEMENT, "stmt")
        arena.release(handle)

        assert arena.lookup(handle) is None


@pytest.mark.unit
class TestGlobalArena:
    """Tests for the process-wide arena accessors."""

    def test_get_arena_returns_same_instance(self) -> None:
        """get_arena caches until reset."""
        reset_arena()
        first = get_arena()
        assert get_arena() is first

        reset_arena()
        assert get_arena() is not first
        reset_arena()
