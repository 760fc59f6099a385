"""Arena of generation-tagged slots for engine resources.

Every resource the access layer hands out (database, connection, statement,
query result, appender) lives in a slot of a per-kind table. Callers hold a
Handle naming the slot and the generation it had when issued:

    - resolve() checks the generation before returning the resource, so a
      handle used after close raises ClosedHandleError instead of touching a
      torn-down engine object.
    - release() bumps the generation, so a stale handle can never alias a
      resource that later reuses the slot.
    - Each slot records its parent and children. Owners walk their children
      on close to tear down everything that depends on them.
    - A slot registered with ``weak=True`` holds only a weak reference. The
      resource's own finalizer releases the slot once the caller drops it,
      so abandoned statements and results do not pile up under their owner.

Thread Safety:
    All arena operations take a re-entrant lock. The resources themselves are
    single-owner; the arena only guarantees its own bookkeeping.
"""

from __future__ import annotations

import threading
import weakref
from dataclasses import dataclass, field
from typing import Any, Dict, List

from duckling.domain.errors import ClosedHandleError
from duckling.domain.value_objects.handles import (
    Generation,
    Handle,
    HandleKind,
    SlotIndex,
)


@dataclass
class _Slot:
    """One arena slot."""

    generation: int = 0
    live: bool = False
    resource: Any = None
    weak: bool = False
    parent: Handle | None = None
    # Insertion-ordered set
    children: dict[Handle, None] = field(default_factory=dict)


class HandleArena:
    """Per-kind slot tables with liveness and generation tracking."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._slots: Dict[HandleKind, List[_Slot]] = {kind: [] for kind in HandleKind}
        self._free: Dict[HandleKind, List[int]] = {kind: [] for kind in HandleKind}
        self._live: Dict[HandleKind, int] = {kind: 0 for kind in HandleKind}

    def register(
        self,
        kind: HandleKind,
        resource: Any,
        parent: Handle | None = None,
        weak: bool = False,
    ) -> Handle:
        """Store a resource and issue a handle for it.

        Args:
            kind: Resource kind.
            resource: The object the handle resolves to.
            parent: Owning handle, if any. The new handle is released
                together with its owner.
            weak: Hold the resource through a weak reference. The caller is
                then responsible for releasing the slot when the resource is
                collected.

        Returns:
            A handle for the new slot.

        Raises:
            ClosedHandleError: If parent is no longer live.
        """
        with self._lock:
            parent_slot = self._live_slot(parent) if parent is not None else None

            table = self._slots[kind]
            if self._free[kind]:
                index = self._free[kind].pop()
                slot = table[index]
            else:
                index = len(table)
                slot = _Slot()
                table.append(slot)

            slot.live = True
            slot.resource = weakref.ref(resource) if weak else resource
            slot.weak = weak
            slot.parent = parent
            slot.children = {}
            self._live[kind] += 1

            handle = Handle(kind=kind, index=SlotIndex(index), generation=Generation(slot.generation))
            if parent_slot is not None:
                parent_slot.children[handle] = None
            return handle

    def resolve(self, handle: Handle) -> Any:
        """Return the resource behind a live handle.

        Raises:
            ClosedHandleError: If the handle was released or is stale, or its
                weakly held resource was collected.
        """
        with self._lock:
            slot = self._live_slot(handle)
            if not slot.weak:
                return slot.resource
            resource = slot.resource()
            if resource is None:
                raise ClosedHandleError(f"{handle.kind.label} handle is closed")
            return resource

    def lookup(self, handle: Handle) -> Any | None:
        """Return the resource behind a handle, or None if it is gone."""
        with self._lock:
            if not self.is_live(handle):
                return None
            slot = self._slots[handle.kind][handle.index]
            return slot.resource() if slot.weak else slot.resource

    def is_live(self, handle: Handle) -> bool:
        """Check whether a handle still resolves."""
        with self._lock:
            slot = self._slot(handle)
            return slot is not None and slot.live and slot.generation == handle.generation

    def parent(self, handle: Handle) -> Handle | None:
        """Return the owner of a live handle."""
        with self._lock:
            return self._live_slot(handle).parent

    def children(self, handle: Handle, kind: HandleKind | None = None) -> list[Handle]:
        """Return the live children of a handle in registration order.

        Args:
            handle: The owning handle.
            kind: Only return children of this kind.
        """
        with self._lock:
            slot = self._live_slot(handle)
            return [c for c in slot.children if kind is None or c.kind == kind]

    def release(self, handle: Handle) -> bool:
        """Free the slot behind a handle.

        Owners close their children first so each resource runs its own
        teardown. Children still registered at this point are released along
        with the handle, so no descendant outlives its owner.

        Returns:
            True if the handle was live, False if it was already released.
        """
        with self._lock:
            slot = self._slot(handle)
            if slot is None or not slot.live or slot.generation != handle.generation:
                return False

            for child in list(slot.children):
                self.release(child)

            if slot.parent is not None:
                parent_slot = self._slot(slot.parent)
                if parent_slot is not None and parent_slot.generation == slot.parent.generation:
                    parent_slot.children.pop(handle, None)

            slot.live = False
            slot.resource = None
            slot.weak = False
            slot.parent = None
            slot.children = {}
            slot.generation += 1
            self._live[handle.kind] -= 1
            self._free[handle.kind].append(handle.index)
            return True

    def live_count(self, kind: HandleKind | None = None) -> int:
        """Count live handles, optionally of one kind."""
        with self._lock:
            if kind is not None:
                return self._live[kind]
            return sum(self._live.values())

    def _slot(self, handle: Handle) -> _Slot | None:
        table = self._slots[handle.kind]
        if not 0 <= handle.index < len(table):
            return None
        return table[handle.index]

    def _live_slot(self, handle: Handle) -> _Slot:
        slot = self._slot(handle)
        if slot is None or not slot.live or slot.generation != handle.generation:
            raise ClosedHandleError(f"{handle.kind.label} handle is closed")
        return slot


_arena: HandleArena | None = None
_arena_lock = threading.Lock()


def get_arena() -> HandleArena:
    """Get the process-wide arena."""
    global _arena
    with _arena_lock:
        if _arena is None:
            _arena = HandleArena()
        return _arena


def reset_arena() -> None:
    """Drop the process-wide arena (useful for testing)."""
    global _arena
    with _arena_lock:
        _arena = None
