"""
Relationship specifications

A relationship has a cardinality (to-one or to-many), an accessor that fetches the related
value(s) from the owning object and, for homogeneous relationships, the declared target type.
Polymorphic relationships leave the target type unset: the related objects' types are resolved
per object when the relationship is serialized.
"""

from typing import Any, Callable, List, Optional, Union

from .fields import Direct, FieldSpec, Transform, as_field

ONE = "one"
MANY = "many"
CARDINALITIES = (ONE, MANY)


class RelationshipSpec:
    """
    Relationship declaration
    """

    def __init__(
        self, name: str, cardinality: str = ONE, accessor: Optional[FieldSpec] = None, target_type: Optional[str] = None, polymorphic: bool = False
    ) -> None:
        """
        :param name: relationship name, this is the name used in include paths
        :param cardinality: ONE or MANY
        :param accessor: FieldSpec used to fetch the related object(s), reads `name` if not set
        :param target_type: declared jsonapi type of the related objects
        :param polymorphic: ignore `target_type` and resolve the type of every related object
        """
        if cardinality not in CARDINALITIES:
            raise ValueError(f"Invalid cardinality '{cardinality}' for relationship '{name}'")
        self.name = name
        self.cardinality = cardinality
        self.accessor = as_field(accessor) if accessor is not None else Direct(name)
        self.polymorphic = polymorphic
        self.target_type = None if polymorphic else target_type

    @property
    def to_many(self) -> bool:
        return self.cardinality == MANY

    def fetch(self, view) -> Union[None, Any, List[Any]]:
        """
        Fetch the related value(s) for `view`

        :return: None or a single object for to-one relationships, a (possibly empty) list for to-many relationships
        """
        value = self.accessor.resolve(view)
        if self.to_many:
            if value is None:
                return []
            if isinstance(value, (list, tuple)):
                return list(value)
            if hasattr(value, "all") and callable(value.all):
                # lazy="dynamic" sqlalchemy relationships
                return list(value.all())
            return list(value)
        if isinstance(value, (list, tuple)):
            # to-one relationship backed by a collection
            return value[0] if value else None
        return value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RelationshipSpec):
            return NotImplemented
        return (self.name, self.cardinality, self.accessor, self.target_type, self.polymorphic) == (
            other.name,
            other.cardinality,
            other.accessor,
            other.target_type,
            other.polymorphic,
        )

    def __hash__(self) -> int:
        return hash((self.name, self.cardinality, self.target_type))

    def __repr__(self) -> str:
        target = "polymorphic" if self.polymorphic else self.target_type
        return f"<RelationshipSpec {self.name} ({self.cardinality}) -> {target}>"


def _accessor(name: str, attr: Optional[str], func: Optional[Callable]) -> FieldSpec:
    if func is not None:
        return Transform(name, func)
    return Direct(name, attr)


def has_one(name: str, target_type: Optional[str] = None, attr: Optional[str] = None, func: Optional[Callable] = None, polymorphic: bool = False) -> RelationshipSpec:
    """
    Declare a to-one relationship
    :param name: relationship name
    :param target_type: declared type of the related object
    :param attr: property of the domain object holding the related object (defaults to `name`)
    :param func: ``func(object, context)`` returning the related object
    :param polymorphic: the related object may be of any registered type
    """
    return RelationshipSpec(name, ONE, _accessor(name, attr, func), target_type, polymorphic)


def has_many(name: str, target_type: Optional[str] = None, attr: Optional[str] = None, func: Optional[Callable] = None, polymorphic: bool = False) -> RelationshipSpec:
    """
    Declare a to-many relationship, cfr. `has_one`
    """
    return RelationshipSpec(name, MANY, _accessor(name, attr, func), target_type, polymorphic)
