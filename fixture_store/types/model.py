"""
The model layer that adapters persist. A :class:`Model` is a pydantic model which additionally knows its primary key
field, how to serialize itself to a flat record, and which tracks its own persistence status (new, dirty, saving,
etc.). Adapters drive that status through the model's lifecycle callbacks.
"""
import typing as t

from pydantic import BaseModel, ConfigDict, PrivateAttr

from fixture_store.serialization import JSONSerializer


ModelT = t.TypeVar("ModelT", bound="Model")  # used to help static type checking tools

Listener = t.Callable[["Model"], t.Any]

EVENTS = {"did_create", "did_update", "did_delete", "did_load", "became_error"}


class Model(BaseModel):
    """
    Base class for persistable models. Subclasses declare their fields like any pydantic model, and can override the
    ``primary_key`` class variable to name the field records are keyed by, e.g.

    >>> class Fruit(Model):
    ...     primary_key = "name"
    ...
    ...     name: t.Optional[str] = None
    ...     color: str

    Assigning to any field after construction marks the instance dirty.
    """

    model_config = ConfigDict(validate_assignment=True, arbitrary_types_allowed=True)

    primary_key: t.ClassVar[str] = "id"
    serializer: t.ClassVar[JSONSerializer] = JSONSerializer()

    _is_new: bool = PrivateAttr(default=True)
    _is_dirty: bool = PrivateAttr(default=False)
    _is_saving: bool = PrivateAttr(default=False)
    _is_loaded: bool = PrivateAttr(default=False)
    _is_error: bool = PrivateAttr(default=False)
    _is_deleted: bool = PrivateAttr(default=False)
    _listeners: t.Dict[str, t.List[Listener]] = PrivateAttr(default_factory=dict)

    @classmethod
    def create(cls: t.Type[ModelT], *, is_new: bool = True, **data) -> ModelT:
        """
        Builds an instance without validating ``data``, in the requested new/not-new state. Used to make shells that
        are then filled in by :meth:`deserialize`, since a shell may not have its required fields yet.
        """
        instance = cls.model_construct(**data)
        instance._is_new = is_new
        return instance

    @classmethod
    def type_name(cls) -> str:
        """The name this model's fixtures are stored under."""
        return cls.__name__

    def __setattr__(self, name: str, value: t.Any):
        super().__setattr__(name, value)
        if name in type(self).model_fields:
            self._is_dirty = True

    @property
    def primary_key_value(self) -> t.Any:
        return getattr(self, type(self).primary_key, None)

    def get(self, field: str) -> t.Any:
        return getattr(self, field, None)

    def set(self, field: str, value: t.Any):
        setattr(self, field, value)

    # Status

    @property
    def is_new(self) -> bool:
        return self._is_new

    @property
    def is_dirty(self) -> bool:
        return self._is_dirty

    @property
    def is_saving(self) -> bool:
        return self._is_saving

    @property
    def is_loaded(self) -> bool:
        return self._is_loaded

    @property
    def is_error(self) -> bool:
        return self._is_error

    @property
    def is_deleted(self) -> bool:
        return self._is_deleted

    # Serialization

    def serialize(self, **options) -> dict:
        """Serializes this record to a flat ``dict``. ``**options`` are forwarded to the class's serializer."""
        return type(self).serializer.serialize(self, **options)

    def deserialize(self: ModelT, data: t.Mapping[str, t.Any]) -> ModelT:
        """Sets this record's fields from the flat record ``data``. The record is clean afterwards."""
        type(self).serializer.deserialize(self, data)
        self._is_dirty = False
        return self

    # Lifecycle callbacks, invoked by adapters.

    def on_saving(self):
        self._is_saving = True
        self._is_error = False

    def on_saved(self, was_new: bool):
        self._is_new = False
        self._is_saving = False
        self._is_dirty = False
        self._is_error = False
        self._notify("did_create" if was_new else "did_update")

    def on_deleted(self):
        self._is_deleted = True
        self._is_saving = False
        self._notify("did_delete")

    def on_error(self):
        self._is_error = True
        self._is_saving = False
        self._notify("became_error")

    def on_loaded(self):
        self._is_loaded = True
        self._is_new = False
        self._is_dirty = False
        self._is_error = False
        self._notify("did_load")

    def add_listener(self, event: str, callback: Listener):
        """Registers ``callback`` to be called with this record whenever ``event`` fires."""
        if event not in EVENTS:
            raise ValueError(f"unknown event {event!r}, expected one of {sorted(EVENTS)}")
        self._listeners.setdefault(event, []).append(callback)

    def _notify(self, event: str):
        for callback in self._listeners.get(event, []):
            callback(self)


class RecordArray(list):
    """The collection of models returned by adapter queries. A snapshot: it doesn't track later changes."""

    def __init__(self, content: t.Iterable[Model] = ()):
        super().__init__(content)
        self.is_loaded = False
        self.is_error = False

    def deserialize_many(
        self,
        klass: t.Type[Model],
        records: t.Iterable[t.Mapping[str, t.Any]],
        serializer: t.Optional[JSONSerializer] = None,
    ) -> "RecordArray":
        """
        Deserializes ``records`` into instances of ``klass``, appending them to this array. Uses ``serializer`` if
        given, otherwise the class's own.
        """
        serializer = serializer if serializer is not None else klass.serializer
        self.extend(serializer.deserialize_many(klass, records))
        return self

    def on_loaded(self):
        self.is_loaded = True
        self.is_error = False

    def on_error(self):
        self.is_error = True
