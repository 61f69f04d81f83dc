import json
import threading
import typing as t

from loguru import logger

from fixture_store.types.model import Model


ModelRef = t.Union[t.Type[Model], str]  # a model class, or its type name


def _type_name(klass: ModelRef) -> str:
    return klass if isinstance(klass, str) else klass.type_name()


class FixtureStore:
    """
    Owns the fixtures of every model class: one ordered, mutable list of flat records per class, keyed by the class's
    type name. Classes never share storage. A store lives only as long as the process (or test) that made it; call
    :meth:`clear` to discard everything explicitly.

    Parameters
    ----------
    fixtures : dict, optional
        Initial fixtures, mapping type names to lists of flat records. The records are copied.
    """

    def __init__(self, fixtures: t.Optional[t.Mapping[str, t.Iterable[t.Mapping[str, t.Any]]]] = None):
        self._fixtures: t.Dict[str, t.List[dict]] = {}
        self._locks: t.Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()
        for type_name, records in (fixtures or {}).items():
            self.load(type_name, records)

    def get(self, klass: ModelRef) -> t.Optional[t.List[dict]]:
        """The live fixtures list for ``klass``, or ``None`` if it has none."""
        return self._fixtures.get(_type_name(klass))

    def get_or_create(self, klass: ModelRef) -> t.List[dict]:
        return self._fixtures.setdefault(_type_name(klass), [])

    def load(self, klass: ModelRef, records: t.Iterable[t.Mapping[str, t.Any]]):
        """
        Replaces the fixtures of ``klass`` with copies of ``records``. Records are not validated, so they should hold
        every required field of the model; a field left out can't be read off the models later loaded from them.
        """
        type_name = _type_name(klass)
        with self.lock(type_name):
            self._fixtures[type_name] = [dict(record) for record in records]

    def load_json(self, path: str):
        """
        Loads fixtures from the JSON file at ``path``, which should hold an object mapping type names to lists of flat
        records. Classes not mentioned in the file are left alone.
        """
        with open(path) as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"expected {path} to contain an object mapping type names to records")
        for type_name, records in data.items():
            self.load(type_name, records)
        logger.info(f"loaded fixtures for {len(data)} model class(es) from {path}")

    def drop(self, klass: ModelRef) -> bool:
        """Removes the fixtures of ``klass``, returning ``True`` if it had any."""
        type_name = _type_name(klass)
        with self.lock(type_name):
            return self._fixtures.pop(type_name, None) is not None

    def clear(self):
        self._fixtures.clear()

    def lock(self, klass: ModelRef) -> threading.RLock:
        """The lock guarding the fixtures of ``klass``. Hold it across any find-then-mutate sequence."""
        type_name = _type_name(klass)
        with self._locks_guard:
            return self._locks.setdefault(type_name, threading.RLock())

    def type_names(self) -> t.List[str]:
        return list(self._fixtures)

    def __contains__(self, klass: ModelRef) -> bool:
        return _type_name(klass) in self._fixtures

    def __len__(self) -> int:
        return len(self._fixtures)
