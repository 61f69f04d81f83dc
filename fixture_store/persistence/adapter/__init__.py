"""
Adapters connect the model layer to a storage back-end. :class:`BaseAdapter` is the interface the model layer talks to,
and :class:`FixtureAdapter` implements it against in-memory fixtures.
"""
from fixture_store.persistence.adapter.base import BaseAdapter
from fixture_store.persistence.adapter.fixture import FixtureAdapter
