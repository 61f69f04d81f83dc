import typing as t


class FixtureStoreError(Exception):
    """Base class for all errors raised by a fixture adapter."""


class StaleRecordError(FixtureStoreError):
    """
    An update or delete was requested for a record that is not present in its class's fixtures. Either the record was
    removed after it was loaded, or it never existed there in the first place.
    """

    def __init__(self, type_name: str, key: t.Any):
        super().__init__(f"no {type_name} fixture exists with primary key {key!r}")
        self.type_name = type_name
        self.key = key


class MissingFixturesError(FixtureStoreError):
    """A delete was requested against a model class which has no fixtures at all."""

    def __init__(self, type_name: str):
        super().__init__(f"no fixtures are defined for {type_name}")
        self.type_name = type_name


class ReadOnlyStoreError(FixtureStoreError):
    """A write was attempted through an adapter that was constructed as read only."""

    def __init__(self):
        super().__init__("fixture adapter is read only")
