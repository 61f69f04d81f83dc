"""
Converts models to and from the flat, JSON-compatible records that fixtures are stored as.
"""
import typing as t

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel


class Relationship(t.NamedTuple):
    model_class: t.Type[BaseModel]
    many: bool


def _unwrap_model_class(annotation) -> t.Optional[Relationship]:
    """
    Finds the model class referenced by a field annotation, looking through ``Optional[...]`` and ``List[...]``.
    Returns ``None`` if the annotation doesn't reference a model, i.e. the field is a plain attribute.
    """
    origin = t.get_origin(annotation)
    if origin is None:
        if isinstance(annotation, type) and issubclass(annotation, BaseModel) and hasattr(annotation, "primary_key"):
            return Relationship(annotation, many=False)
        return None
    if origin in (list, t.List):
        args = t.get_args(annotation)
        inner = _unwrap_model_class(args[0]) if args else None
        if inner is not None and not inner.many:
            return Relationship(inner.model_class, many=True)
        return None
    # `Optional[X]` and other unions: the first member that is a model wins.
    for arg in t.get_args(annotation):
        if arg is type(None):
            continue
        found = _unwrap_model_class(arg)
        if found is not None:
            return found
    return None


def relationship_fields(klass: t.Type[BaseModel]) -> t.Dict[str, Relationship]:
    """Maps the name of each field of ``klass`` that holds other models to the relationship it describes."""
    fields = {}
    for name, info in klass.model_fields.items():
        relationship = _unwrap_model_class(info.annotation)
        if relationship is not None:
            fields[name] = relationship
    return fields


class JSONSerializer:
    """
    Serializes models to flat ``dict`` records holding only JSON-compatible values, and deserializes those records
    back onto model instances. Fields holding other models are treated as relationships, which can either be embedded
    as nested records or stored by reference (the related record's primary key).
    """

    def serialize(
        self,
        record: BaseModel,
        *,
        non_embedded: bool = False,
        include_relationships: bool = True,
        custom_encoder: t.Optional[t.Dict[t.Any, t.Callable[[t.Any], t.Any]]] = None,
    ) -> dict:
        """
        Parameters
        ----------
        record : Model
            The model instance to serialize.
        non_embedded : bool, optional
            If ``True``, related models are stored as their primary key values, keeping the record flat. Otherwise
            they are stored as nested records.
        include_relationships : bool, optional
            If ``False``, relationship fields are left out of the record entirely.
        custom_encoder : dict, optional
            Type to encoder function overrides, forwarded on to :func:`fastapi.encoders.jsonable_encoder`.
        """
        relationships = relationship_fields(type(record))
        data = {}
        for name in type(record).model_fields:
            value = getattr(record, name, None)
            if name in relationships:
                if not include_relationships:
                    continue
                value = self._serialize_relationship(value, relationships[name], non_embedded, custom_encoder)
            data[name] = value
        return jsonable_encoder(data, custom_encoder=custom_encoder or {})

    def deserialize(self, record: BaseModel, data: t.Mapping[str, t.Any]) -> BaseModel:
        """
        Assigns each field in ``data`` onto ``record``, validating and coercing values as it goes. Keys that aren't
        fields of the record's class are ignored.
        """
        klass = type(record)
        relationships = relationship_fields(klass)
        for name, value in data.items():
            if name not in klass.model_fields:
                continue
            if name in relationships and value is not None:
                value = self._deserialize_relationship(value, relationships[name])
            setattr(record, name, value)
        return record

    def deserialize_many(self, klass: t.Type[BaseModel], records: t.Iterable[t.Mapping[str, t.Any]]) -> list:
        """Builds one loaded, not-new instance of ``klass`` for each record."""
        results = []
        for data in records:
            instance = klass.create(is_new=False)
            self.deserialize(instance, data)
            instance.on_loaded()
            results.append(instance)
        return results

    @staticmethod
    def _serialize_relationship(value, relationship: Relationship, non_embedded: bool, custom_encoder) -> t.Any:
        if value is None:
            return None

        def encode(related):
            if non_embedded:
                return related.primary_key_value
            return related.serialize(non_embedded=False, custom_encoder=custom_encoder)

        if relationship.many:
            return [encode(related) for related in value]
        return encode(value)

    @staticmethod
    def _deserialize_relationship(value, relationship: Relationship) -> t.Any:
        def decode(item):
            if isinstance(item, (dict, BaseModel)):
                # Nested records are validated into the related class on assignment.
                return item
            # A bare primary key: the related record is only known by reference.
            return relationship.model_class.create(is_new=False, **{relationship.model_class.primary_key: item})

        if relationship.many:
            return [decode(item) for item in value]
        return decode(value)
