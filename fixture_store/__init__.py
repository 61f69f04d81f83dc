"""
A fixture-backed persistence adapter for a `Pydantic <https://docs.pydantic.dev/>`_ based model layer. Simulates a
remote data store with one in-memory list of flat records per model class, so application code can be developed and
tested against the model layer without a live backend. Supports creating, updating, and deleting records, and
retrieving them by primary key or by `WHERE equals` style queries.
"""
from fixture_store.errors import FixtureStoreError, MissingFixturesError, ReadOnlyStoreError, StaleRecordError
from fixture_store.ids import CounterIdGenerator, IdGenerator, UUIDGenerator
from fixture_store.persistence.adapter import BaseAdapter, FixtureAdapter
from fixture_store.persistence.store import FixtureStore
from fixture_store.serialization import JSONSerializer
from fixture_store.types.model import Model, RecordArray
