"""Common plumbing for arena-tracked resources."""

from __future__ import annotations

import weakref
from typing import Callable, Sequence

from duckling.domain.services.handle_arena import HandleArena
from duckling.domain.value_objects.handles import Handle, HandleKind
from duckling.infrastructure.metrics import MetricsRegistry


def sync_handle_gauge(arena: HandleArena, metrics: MetricsRegistry) -> None:
    """Publish the arena's live handle counts.

    Every kind is refreshed because releasing an owner also releases its
    children.
    """
    for kind in HandleKind:
        metrics.handles_open.labels(kind=kind.value).set(arena.live_count(kind))


def _release_slot(
    arena: HandleArena,
    metrics: MetricsRegistry,
    handle: Handle,
    closers: Sequence[Callable[[], None]],
) -> bool:
    # Must not reference the resource itself; runs from its finalizer.
    try:
        for close in closers:
            close()
    finally:
        released = arena.release(handle)
        if released:
            sync_handle_gauge(arena, metrics)
    return released


class ManagedResource:
    """Base class for objects that live in a HandleArena slot.

    Subclasses set ``kind``. Every public operation starts with
    ``_ensure_open()``, which resolves the resource's own handle and raises
    ClosedHandleError once the resource or any of its owners is closed.

    Subclasses with ``held_weakly = True`` are only weakly referenced by the
    arena. When the caller drops one without closing it, its slot is released
    and the closers passed to ``_release_when_collected`` run.
    """

    kind: HandleKind
    held_weakly = False

    def __init__(
        self,
        arena: HandleArena,
        metrics: MetricsRegistry,
        parent: Handle | None = None,
    ) -> None:
        self._arena = arena
        self._metrics = metrics
        self._handle = arena.register(self.kind, self, parent, weak=self.held_weakly)
        self._finalizer: weakref.finalize | None = None
        sync_handle_gauge(arena, metrics)

    @property
    def handle(self) -> Handle:
        """Arena handle of this resource."""
        return self._handle

    @property
    def is_closed(self) -> bool:
        return not self._arena.is_live(self._handle)

    def _ensure_open(self) -> None:
        self._arena.resolve(self._handle)

    def _release_when_collected(self, *closers: Callable[[], None]) -> None:
        finalizer = weakref.finalize(
            self, _release_slot, self._arena, self._metrics, self._handle, closers
        )
        finalizer.atexit = False
        self._finalizer = finalizer

    def _release(self) -> bool:
        """Run the closers, if any, and free the slot.

        Returns:
            True if this call freed the slot.
        """
        if self._finalizer is not None:
            # A finalizer runs its callback at most once
            return bool(self._finalizer())
        return _release_slot(self._arena, self._metrics, self._handle, ())

    def __repr__(self) -> str:
        state = "closed" if self.is_closed else "open"
        return f"<{type(self).__name__} {self._handle!r} {state}>"
