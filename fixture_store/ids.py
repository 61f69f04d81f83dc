"""
Identifier generators used to assign primary keys to new records which were saved without one.
"""
import itertools
import threading
import typing as t
import uuid
from abc import ABC, abstractmethod


class IdGenerator(ABC):
    """Produces a primary key for a record that doesn't have one yet."""

    @abstractmethod
    def next_id(self, record) -> t.Any:
        pass


# Shared by every `CounterIdGenerator` that isn't given its own counter, so ids are unique for the whole process.
_process_counter = itertools.count(1)
_process_lock = threading.Lock()


class CounterIdGenerator(IdGenerator):
    """
    Hands out monotonically increasing integers. By default the counter is shared process-wide, so two adapters never
    hand out the same id. Pass ``start`` to get a private counter instead, e.g. for deterministic tests.
    """

    def __init__(self, start: t.Optional[int] = None):
        if start is None:
            self._counter = _process_counter
            self._lock = _process_lock
        else:
            self._counter = itertools.count(start)
            self._lock = threading.Lock()

    def next_id(self, record) -> int:
        with self._lock:
            return next(self._counter)


class UUIDGenerator(IdGenerator):
    """Hands out random version 4 UUID strings."""

    def next_id(self, record) -> str:
        return str(uuid.uuid4())
