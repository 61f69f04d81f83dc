import typing as t
from abc import ABC, abstractmethod

from fixture_store.types.model import Model, ModelT, RecordArray


class BaseAdapter(ABC):
    """
    Abstract base class for the persistence back-end of the model layer. Application code only talks to this
    interface, so an in-memory implementation can be swapped in for a network-backed one (or vice versa) without
    changes.

    Writes are coroutines and must be awaited, even by implementations that settle immediately. Failed writes call
    the record's ``on_error`` callback, then raise. Lookups that find nothing return ``None``; that is not an error.
    """

    @abstractmethod
    async def save_record(self, record: ModelT) -> ModelT:
        """Creates ``record`` in the back-end if it is new, otherwise updates it."""
        pass

    @abstractmethod
    async def delete_record(self, record: ModelT) -> ModelT:
        pass

    @abstractmethod
    def find_all(self, klass: t.Type[ModelT]) -> t.Optional[RecordArray]:
        pass

    @abstractmethod
    def find_query(
        self, klass: t.Type[ModelT], query_params: t.Optional[t.Mapping[str, t.Any]] = None
    ) -> t.Optional[RecordArray]:
        """Retrieves all records of ``klass`` whose fields equal every value in ``query_params``."""
        pass

    @abstractmethod
    def find_by_key(self, klass: t.Type[ModelT], key: t.Any) -> t.Optional[ModelT]:
        pass

    def find(self, klass: t.Type[ModelT], params: t.Any = None) -> t.Union[RecordArray, Model, None]:
        """
        Convenience dispatcher: no ``params`` finds all records of ``klass``, a mapping of ``params`` queries them,
        and anything else is treated as a primary key.
        """
        if params is None:
            return self.find_all(klass)
        if isinstance(params, t.Mapping):
            return self.find_query(klass, params)
        return self.find_by_key(klass, params)
