# descriptor.py: resource descriptors and the descriptor registry
#
# A ResourceDescriptor is the static schema of a domain type: jsonapi type name, attributes,
# meta attributes, relationships and sortable fields.
# Descriptors are created and registered once, when the application starts,
# and are treated as read-only afterwards.
#
from __future__ import annotations

import re
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import inflect

import jadoc
from .errors import SchemaError
from .fields import Direct, FieldSpec, as_field
from .relationships import RelationshipSpec
from .sorting import ByAliasedColumn, ByDeclaredField, SortStrategy, as_sort_strategy

_inflect = inflect.engine()
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def underscore(name: str) -> str:
    """
    BlogPost => blog_post, HTTPRequest => http_request
    """
    return _CAMEL_RE.sub("_", name).replace("-", "_").lower()


@lru_cache(maxsize=256)
def infer_type_name(model_name: str) -> str:
    """
    Derive the jsonapi type from a domain type name: the pluralized, underscored class name

    :param model_name: class name, e.g. "BlogPost"
    :return: type name, e.g. "blog_posts"
    """
    words = underscore(model_name).split("_")
    words[-1] = _inflect.plural_noun(words[-1]) or words[-1]
    return "_".join(words)


@lru_cache(maxsize=256)
def infer_relationship_type(relationship_name: str) -> str:
    """
    Derive the target type of a relationship from its name: author => authors, tags => tags
    """
    words = underscore(relationship_name).split("_")
    singular = _inflect.singular_noun(words[-1])
    if singular:
        words[-1] = singular
    return infer_type_name("_".join(words))


def _put_field(table: Dict[str, FieldSpec], spec: FieldSpec) -> None:
    """
    Add `spec` to `table` unless a declaration with a higher precedence exists: Override > Transform > Direct
    """
    current = table.get(spec.name)
    if current is not None and current.precedence > spec.precedence:
        return
    table[spec.name] = spec


class ResourceDescriptor:
    """
    Static schema of a domain type

    The tables are ordered: attributes are serialized in declaration order.
    ``inherit`` creates a new descriptor with copies of the tables, modifications of the
    child never affect the parent and vice versa.
    Registered descriptors are read-only, changing them raises SchemaError.
    """

    def __init__(
        self,
        type_name: Optional[str] = None,
        attributes: Iterable[Any] = (),
        meta_attributes: Iterable[Any] = (),
        relationships: Union[Iterable[RelationshipSpec], Mapping[str, RelationshipSpec]] = (),
        sortable_fields: Optional[Mapping[str, Any]] = None,
        model: Any = None,
        meta: Optional[Callable[[Any], Mapping]] = None,
        id_attr: str = "id",
        id_func: Optional[Callable[[Any], Any]] = None,
        view_class: Optional[type] = None,
    ) -> None:
        """
        :param type_name: jsonapi type, inferred from `model` if not set
        :param attributes: attribute names, (name, source) tuples or FieldSpecs
        :param meta_attributes: meta attribute names, (name, source) tuples or FieldSpecs
        :param relationships: RelationshipSpecs
        :param sortable_fields: field name => SortStrategy, column name, callable or None
        :param model: the domain class (or its name) described by this descriptor
        :param meta: custom meta computation, ``meta(view)`` must return a mapping
        :param id_attr: name of the domain object's identity property
        :param id_func: ``id_func(object)`` returning the identity, overrides `id_attr`
        :param view_class: ResourceView subclass used to render objects
        """
        self.registered = False
        self.model = model
        self._type_name = type_name
        self.attributes: Dict[str, FieldSpec] = {}
        self.meta_attributes: Dict[str, FieldSpec] = {}
        self.relationships: Dict[str, RelationshipSpec] = {}
        self.sortable_fields: Dict[str, SortStrategy] = {}
        self.meta = meta
        self.id_attr = id_attr
        self.id_func = id_func
        self.view_class = view_class

        for spec in attributes:
            self.add_attribute(spec)
        for spec in meta_attributes:
            self.add_meta_attribute(spec)
        if isinstance(relationships, Mapping):
            relationships = relationships.values()
        for rel in relationships:
            self.add_relationship(rel)
        for name, strategy in (sortable_fields or {}).items():
            self.add_sortable(name, strategy)

    def __repr__(self) -> str:
        return f"<ResourceDescriptor {self.type_name}>"

    @property
    def model_name(self) -> Optional[str]:
        """
        :return: name of the domain type
        """
        if self.model is None:
            return None
        if isinstance(self.model, str):
            return self.model
        return self.model.__name__

    @property
    def type_name(self) -> str:
        """
        :return: the jsonapi type: configured explicitly or inferred from the domain type name
        """
        if self._type_name:
            return self._type_name
        if self.model_name:
            return infer_type_name(self.model_name)
        raise SchemaError("Resource descriptor requires a type name or a model")

    def __setattr__(self, name: str, value: Any) -> None:
        self._check_mutable(name)
        super().__setattr__(name, value)

    @property
    def attribute_names(self) -> List[str]:
        """
        Attributes accepted by the deserializer of the request layer
        """
        return list(self.attributes)

    @property
    def meta_attribute_names(self) -> List[str]:
        return list(self.meta_attributes)

    #
    # Schema definition
    #
    def _check_mutable(self, what: str) -> None:
        if self.__dict__.get("registered"):
            raise SchemaError(f"Can't change {what} of the registered resource type '{self.type_name}'")

    def _freeze(self, frozen: bool = True) -> None:
        """
        Registered descriptors are read-only: the tables are replaced by read-only views
        """
        wrap = MappingProxyType if frozen else dict
        for table in ("attributes", "meta_attributes", "relationships", "sortable_fields"):
            self.__dict__[table] = wrap(dict(self.__dict__[table]))
        self.__dict__["registered"] = frozen

    def add_attribute(self, spec: Any) -> FieldSpec:
        self._check_mutable("attributes")
        spec = as_field(spec)
        if spec.name in ("id", "type"):
            # http://jsonapi.org/format/#document-resource-object-fields
            raise SchemaError(f"'{spec.name}' can't be used as an attribute name ({self._type_name or self.model_name})")
        _put_field(self.attributes, spec)
        return self.attributes[spec.name]

    def add_meta_attribute(self, spec: Any) -> FieldSpec:
        self._check_mutable("meta attributes")
        spec = as_field(spec)
        _put_field(self.meta_attributes, spec)
        return self.meta_attributes[spec.name]

    def add_relationship(self, rel: RelationshipSpec) -> RelationshipSpec:
        self._check_mutable("relationships")
        if not isinstance(rel, RelationshipSpec):
            raise SchemaError(f"Invalid relationship {rel!r}, use has_one() or has_many()")
        current = self.relationships.get(rel.name)
        if current is not None and current.accessor.precedence > rel.accessor.precedence:
            # keep the custom accessor of the existing declaration
            rel = RelationshipSpec(rel.name, rel.cardinality, current.accessor, rel.target_type, rel.polymorphic)
        self.relationships[rel.name] = rel
        return rel

    def add_sortable(self, name: str, strategy: Any = None) -> SortStrategy:
        self._check_mutable("sortable fields")
        self.sortable_fields[name] = as_sort_strategy(strategy)
        return self.sortable_fields[name]

    def inherit(self, type_name: Optional[str] = None, model: Any = None, view_class: Optional[type] = None) -> "ResourceDescriptor":
        """
        Create a child descriptor that starts with copies of this descriptor's tables

        The type name isn't inherited unless it's passed explicitly: a subtype gets its own
        (inferred) type.
        """
        child = ResourceDescriptor(
            type_name=type_name,
            model=model,
            meta=self.meta,
            id_attr=self.id_attr,
            id_func=self.id_func,
            view_class=view_class or self.view_class,
        )
        # FieldSpecs, RelationshipSpecs and SortStrategies are immutable: copying the tables is sufficient
        child.attributes = dict(self.attributes)
        child.meta_attributes = dict(self.meta_attributes)
        child.relationships = dict(self.relationships)
        child.sortable_fields = dict(self.sortable_fields)
        return child

    #
    # Lookups
    #
    def resolve_relationship(self, name: str) -> Optional[RelationshipSpec]:
        return self.relationships.get(name)

    def is_sortable(self, name: str) -> bool:
        """
        Attributes are sortable by default, other fields have to be declared in `sortable_fields`
        """
        return name in self.sortable_fields or name in self.attributes

    def sort_strategy(self, name: str) -> Optional[SortStrategy]:
        strategy = self.sortable_fields.get(name)
        if strategy is not None:
            return strategy
        attr = self.attributes.get(name)
        if attr is None:
            return None
        if isinstance(attr, Direct) and attr.source != name:
            return ByAliasedColumn(attr.source)
        return ByDeclaredField()

    def sortable_field_names(self) -> List[str]:
        result = list(self.attributes)
        result += [name for name in self.sortable_fields if name not in self.attributes]
        return result

    def object_id(self, obj: Any) -> Optional[str]:
        """
        :return: the jsonapi id of `obj`, ids are always strings
        """
        if self.id_func is not None:
            obj_id = self.id_func(obj)
        elif isinstance(obj, dict):
            obj_id = obj.get(self.id_attr)
        else:
            obj_id = getattr(obj, self.id_attr, None)
        return None if obj_id is None else str(obj_id)

    def view(self, obj: Any, context: Optional[Mapping] = None):
        """
        :return: ResourceView of `obj` bound to this descriptor
        """
        from .resource import ResourceView

        view_class = self.view_class or ResourceView
        return view_class(obj, context, descriptor=self)

    def shape(self) -> tuple:
        """
        :return: comparable representation of the schema, used to detect conflicting registrations
        """
        return (
            self.type_name,
            self.model_name,
            tuple(self.attributes.items()),
            tuple(self.meta_attributes.items()),
            tuple(self.relationships.items()),
            tuple(self.sortable_fields.items()),
            self.meta,
            self.id_attr,
            self.id_func,
            self.view_class,
        )


class DescriptorRegistry:
    """
    Registered descriptors, indexed by jsonapi type name and by domain type name

    The registry is written when the application starts, it's read-only afterwards
    """

    def __init__(self) -> None:
        self._by_type: Dict[str, ResourceDescriptor] = {}
        self._by_model: Dict[str, ResourceDescriptor] = {}

    def __contains__(self, type_name: str) -> bool:
        return type_name in self._by_type

    def __iter__(self) -> Iterator[ResourceDescriptor]:
        return iter(self._by_type.values())

    def __len__(self) -> int:
        return len(self._by_type)

    def register(self, descriptor: Union[ResourceDescriptor, str], *args, **kwargs) -> ResourceDescriptor:
        """
        Register a descriptor

            registry.register(descriptor)
            registry.register("posts", attributes=["title"], relationships=[has_one("author", "users")])

        Registering the same schema twice is a no-op
        :raises SchemaError: when another schema has been registered with the same type name
        :return: the registered descriptor
        """
        if not isinstance(descriptor, ResourceDescriptor):
            descriptor = ResourceDescriptor(descriptor, *args, **kwargs)
        elif args or kwargs:
            raise TypeError("register() takes no schema arguments when a ResourceDescriptor is given")

        type_name = descriptor.type_name
        existing = self._by_type.get(type_name)
        if existing is not None:
            if existing is descriptor or existing.shape() == descriptor.shape():
                return existing
            raise SchemaError(f"Type '{type_name}' has already been registered with a different schema")

        descriptor._freeze()
        self._by_type[type_name] = descriptor
        model_name = descriptor.model_name
        if model_name is not None:
            if model_name in self._by_model:
                jadoc.log.debug(f"{model_name} is already rendered by '{self._by_model[model_name].type_name}', not by '{type_name}'")
            else:
                self._by_model[model_name] = descriptor
        jadoc.log.debug(f"Registered resource type '{type_name}'")
        return descriptor

    def unregister(self, type_name: str) -> None:
        descriptor = self._by_type.pop(type_name, None)
        if descriptor is None:
            return
        if self._by_model.get(descriptor.model_name) is descriptor:
            del self._by_model[descriptor.model_name]
        descriptor._freeze(False)

    def get(self, type_name: Optional[str]) -> Optional[ResourceDescriptor]:
        if type_name is None:
            return None
        return self._by_type.get(type_name)

    def __getitem__(self, type_name: str) -> ResourceDescriptor:
        descriptor = self.get(type_name)
        if descriptor is None:
            raise SchemaError(f"Unknown resource type '{type_name}'")
        return descriptor

    def for_model(self, model_name: str) -> Optional[ResourceDescriptor]:
        """
        :param model_name: exact (most derived) domain type name
        :return: the descriptor registered for the domain type or for its inferred type name
        """
        descriptor = self._by_model.get(model_name)
        if descriptor is None:
            descriptor = self._by_type.get(infer_type_name(model_name))
        return descriptor

    def for_object(self, obj: Any) -> Optional[ResourceDescriptor]:
        """
        :return: the descriptor for the runtime type of `obj`
        """
        return self.for_model(type(obj).__name__)


registry = DescriptorRegistry()
