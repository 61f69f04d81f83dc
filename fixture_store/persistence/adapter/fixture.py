import typing as t

from loguru import logger

from fixture_store.errors import MissingFixturesError, ReadOnlyStoreError, StaleRecordError
from fixture_store.ids import CounterIdGenerator, IdGenerator
from fixture_store.persistence.adapter.base import BaseAdapter
from fixture_store.persistence.store import FixtureStore
from fixture_store.serialization import JSONSerializer
from fixture_store.types.model import Model, ModelT, RecordArray


_MISSING = object()


class FixtureAdapter(BaseAdapter):
    r"""
    An adapter that works against predefined data held in memory instead of a remote back-end. Each model class gets
    its own list of flat records in ``store``. Keeps no indexes, so every lookup is :math:`\mathcal{O}(n)`.

    Parameters
    ----------
    store : FixtureStore, optional
        Where fixtures live. A fresh, empty store is made if not provided.
    serializer : JSONSerializer, optional
        Used to flatten records on save and to rebuild them on lookup. Defaults to each record class's own
        serializer.
    id_generator : IdGenerator, optional
        Assigns primary keys to new records saved without one. Defaults to a process-wide counter.
    read_only : bool
        If ``True``, saves and deletes call the record's ``on_error`` callback, then raise
        :class:`~fixture_store.errors.ReadOnlyStoreError`.
    """

    def __init__(
        self,
        store: t.Optional[FixtureStore] = None,
        *,
        serializer: t.Optional[JSONSerializer] = None,
        id_generator: t.Optional[IdGenerator] = None,
        read_only: bool = False,
    ):
        self.store = store if store is not None else FixtureStore()
        self.serializer = serializer
        self.id_generator = id_generator if id_generator is not None else CounterIdGenerator()
        self._read_only = read_only

    async def save_record(self, record: ModelT) -> ModelT:
        """Appends ``record`` to its class's fixtures if it is new, otherwise replaces its existing fixture."""
        is_new = record.is_new
        if not is_new and not record.is_dirty:
            return record
        self.assert_can_edit(record)

        klass = type(record)
        record.on_saving()
        with self.store.lock(klass):
            fixtures = self.store.get_or_create(klass)
            try:
                if record.primary_key_value is None:
                    record.set(klass.primary_key, self._unused_id(record, fixtures))
                serialized = self._serialize(record)
            except Exception:
                logger.exception(f"cannot save {klass.type_name()} {record.primary_key_value!r}")
                record.on_error()
                raise
            if is_new:
                fixtures.append(serialized)
                logger.debug(f"created {klass.type_name()} fixture {record.primary_key_value!r}")
                record.on_saved(True)
                return record

            index = self._find_fixture_record_index(record)
            if index == -1:
                logger.warning(f"cannot update {klass.type_name()} {record.primary_key_value!r}: no such fixture")
                record.on_error()
                raise StaleRecordError(klass.type_name(), record.primary_key_value)
            fixtures[index] = serialized
            logger.debug(f"updated {klass.type_name()} fixture {record.primary_key_value!r} at index {index}")
            record.on_saved(False)
            return record

    async def delete_record(self, record: ModelT) -> ModelT:
        """Removes the fixture of ``record`` from its class's fixtures."""
        self.assert_can_edit(record)
        klass = type(record)
        with self.store.lock(klass):
            fixtures = self.store.get(klass)
            if fixtures is None:
                logger.warning(f"cannot delete {klass.type_name()} {record.primary_key_value!r}: no fixtures defined")
                record.on_error()
                raise MissingFixturesError(klass.type_name())

            index = self._find_fixture_record_index(record)
            if index == -1:
                logger.warning(f"cannot delete {klass.type_name()} {record.primary_key_value!r}: no such fixture")
                record.on_error()
                raise StaleRecordError(klass.type_name(), record.primary_key_value)
            del fixtures[index]
            logger.debug(f"deleted {klass.type_name()} fixture {record.primary_key_value!r} at index {index}")
            record.on_deleted()
            return record

    def find_all(self, klass: t.Type[ModelT]) -> t.Optional[RecordArray]:
        return self.find_query(klass)

    def find_query(
        self, klass: t.Type[ModelT], query_params: t.Optional[t.Mapping[str, t.Any]] = None
    ) -> t.Optional[RecordArray]:
        """
        Returns ``None`` if ``klass`` has no fixtures at all, which is different from having fixtures but none that
        match (an empty :class:`RecordArray`).
        """
        with self.store.lock(klass):
            fixtures = self.store.get(klass)
            if fixtures is None:
                return None
            if query_params:
                matches = [record for record in fixtures if self._matches(record, query_params)]
            else:
                matches = list(fixtures)

        result = RecordArray()
        result.deserialize_many(klass, matches, serializer=self.serializer)
        result.on_loaded()
        return result

    def find_by_key(self, klass: t.Type[ModelT], key: t.Any) -> t.Optional[ModelT]:
        """
        Keys are compared as strings, so ``find_by_key(klass, 5)`` and ``find_by_key(klass, "5")`` find the same
        record. The first match wins.

        Fixtures are trusted to be complete. A seeded fixture missing a required field loads anyway, and reading that
        field off the result raises :class:`AttributeError`.
        """
        if key is None:
            return None
        with self.store.lock(klass):
            fixtures = self.store.get(klass)
            if fixtures is None:
                return None
            key_as_string = str(key)
            fixture = next(
                (r for r in fixtures if klass.primary_key in r and str(r[klass.primary_key]) == key_as_string),
                None,
            )

        if fixture is None:
            return None
        result = klass.create(is_new=False)
        if self.serializer is not None:
            self.serializer.deserialize(result, fixture)
        else:
            result.deserialize(fixture)
        result.on_loaded()
        return result

    def generate_id_for_record(self, record: Model) -> t.Any:
        return self.id_generator.next_id(record)

    def assert_can_edit(self, record: t.Optional[Model] = None):
        """Raises an error if this adapter is read only, first telling ``record`` (if given) that its write failed."""
        if self._read_only:
            if record is not None:
                record.on_error()
            raise ReadOnlyStoreError()

    def _find_fixture_record_index(self, record: Model) -> int:
        """
        The position of the fixture for ``record`` in its class's fixtures, or ``-1``. Unlike :meth:`find_by_key`,
        keys are compared as-is, so a fixture keyed by ``"5"`` is not found for a record keyed by ``5``.
        """
        klass = type(record)
        fixtures = self.store.get(klass)
        if fixtures is None:
            return -1
        key = record.primary_key_value
        for index, fixture in enumerate(fixtures):
            if fixture.get(klass.primary_key, _MISSING) == key:
                return index
        return -1

    def _unused_id(self, record: Model, fixtures: t.List[dict]) -> t.Any:
        """Generates ids until one is found that no existing fixture (e.g. a seeded one) already uses."""
        primary_key = type(record).primary_key
        taken = {str(fixture[primary_key]) for fixture in fixtures if primary_key in fixture}
        id_ = self.generate_id_for_record(record)
        while str(id_) in taken:
            id_ = self.generate_id_for_record(record)
        return id_

    def _serialize(self, record: Model) -> dict:
        # Flat records with related models stored by reference, so fixtures stay comparable.
        options = {"non_embedded": True, "include_relationships": True}
        if self.serializer is not None:
            return self.serializer.serialize(record, **options)
        return record.serialize(**options)

    @staticmethod
    def _matches(fixture: t.Mapping[str, t.Any], query_params: t.Mapping[str, t.Any]) -> bool:
        return all(fixture.get(k, _MISSING) == v for k, v in query_params.items())
