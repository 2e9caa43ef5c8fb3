"""Reconciliation outcomes, resource lifecycle states and diagnostics."""

from __future__ import annotations

import enum
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Hashable, Iterator

from .constants import REPORTER


@dataclass(frozen=True)
class Action:
    """What the watch machinery should do after a reconciliation.

    ``requeue_after`` is the number of seconds until the next check, or None
    when nothing should be scheduled until the object changes again.
    """

    requeue_after: float | None = None

    @classmethod
    def requeue(cls, seconds: float) -> Action:
        return cls(requeue_after=seconds)

    @classmethod
    def await_change(cls) -> Action:
        return cls(requeue_after=None)

    @property
    def is_terminal(self) -> bool:
        return self.requeue_after is None


class ResourceState(enum.Enum):
    """Lifecycle of a reconciled resource."""

    PENDING = "Pending"
    CREATED = "Created"
    DELETING = "Deleting"
    REMOVED = "Removed"

    @classmethod
    def of(cls, deleting: bool, has_finalizer: bool, created: bool) -> ResourceState:
        if deleting:
            return cls.DELETING if has_finalizer else cls.REMOVED
        return cls.CREATED if created else cls.PENDING


@dataclass(frozen=True)
class ResourceRef:
    """Identity of a namespaced resource."""

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class DiagnosticsState:
    """Process-wide diagnostics written by reconciliations and read by the web server."""

    last_event: datetime = field(default_factory=_now)
    reporter: str = REPORTER
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def touch(self) -> None:
        with self._lock:
            self.last_event = _now()

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "last_event": self.last_event.isoformat(),
                "reporter": self.reporter,
            }


class ObjectLocks:
    """Mutual exclusion per object.

    Entries exist only while a thread holds or waits for them, so the map
    does not grow with the number of objects ever seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Hashable, tuple[threading.Lock, list[int]]] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.setdefault(key, (threading.Lock(), [0]))
            users[0] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                users[0] -= 1
                if users[0] == 0:
                    del self._locks[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
