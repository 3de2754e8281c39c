# model.py: create resource descriptors from SQLAlchemy mapped classes
#
"""
    descriptor = descriptor_from_model(User, type_name="users", exclude=["password_hash"])
    registry.register(descriptor)

The mapped columns become attributes (primary and foreign keys aren't exposed),
the mapper relationships become jsonapi relationships.
"""
from functools import partial
from typing import Any, Iterable, Optional

from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.orm.interfaces import MANYTOONE

import jadoc
from .config import default_config
from .descriptor import ResourceDescriptor, infer_type_name
from .errors import SchemaError
from .fields import Direct
from .relationships import MANY, ONE, RelationshipSpec


def jsonapi_id(obj: Any, delimiter: str = "_") -> Optional[str]:
    """
    :return: json:api id of a mapped instance

    if the table has a single primary key, it will return this key.
    In case of a composite PK, the pks are joined with the delimiter, eg.
    pkA = 1, pkB = 2, delimiter = '_' => jsonapi_id = '1_2'
    """
    mapper = sqla_inspect(type(obj))
    values = [getattr(obj, mapper.get_property_by_column(column).key, None) for column in mapper.primary_key]
    if all(value is None for value in values):
        return None
    return delimiter.join(str(value) for value in values)


def descriptor_from_model(
    model: type,
    type_name: Optional[str] = None,
    exclude: Iterable[str] = (),
    exclude_rels: Iterable[str] = (),
    polymorphic: Iterable[str] = (),
    delimiter: Optional[str] = None,
) -> ResourceDescriptor:
    """
    Create a descriptor from a mapped class

    :param model: sqlalchemy mapped class
    :param type_name: jsonapi type, inferred from the class name if not set
    :param exclude: list of attribute names that should not be serialized
    :param exclude_rels: list of relationship names that should not be serialized
    :param polymorphic: relationship names whose targets are resolved per related object
    :param delimiter: composite primary key delimiter, cfr. JadocConfig.id_delimiter
    :return: ResourceDescriptor
    """
    mapper = sqla_inspect(model, raiseerr=False)
    if mapper is None or not hasattr(mapper, "column_attrs"):
        raise SchemaError(f"{model} is not a mapped class")

    exclude = set(exclude)
    exclude_rels = set(exclude_rels)
    polymorphic = set(polymorphic)
    if delimiter is None:
        delimiter = default_config().id_delimiter

    descriptor = ResourceDescriptor(type_name=type_name, model=model, id_func=partial(jsonapi_id, delimiter=delimiter))

    for prop in mapper.column_attrs:
        # don't expose attributes starting with an underscore
        if prop.key.startswith("_") or prop.key in exclude:
            continue
        columns = prop.columns
        if any(column.primary_key or column.foreign_keys for column in columns):
            continue
        if prop.key in ("id", "type"):
            jadoc.log.debug(f"{model.__name__}.{prop.key} is a reserved jsonapi name, not exposed")
            continue
        descriptor.add_attribute(Direct(prop.key))

    for rel in mapper.relationships:
        if rel.key.startswith("_") or rel.key in exclude_rels:
            continue
        cardinality = ONE if rel.direction == MANYTOONE or not rel.uselist else MANY
        if rel.key in polymorphic:
            descriptor.add_relationship(RelationshipSpec(rel.key, cardinality, polymorphic=True))
        else:
            target_type = infer_type_name(rel.mapper.class_.__name__)
            descriptor.add_relationship(RelationshipSpec(rel.key, cardinality, target_type=target_type))

    return descriptor
