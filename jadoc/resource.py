# resource.py: resource views and declarative resource classes
#
# pylint: disable=protected-access
#
"""
A ``ResourceView`` binds a domain object and the request context to a ``ResourceDescriptor``
and computes the jsonapi attribute, meta and relationship values of the object.

``Resource`` is the declarative way to create descriptors, for example:

    class PostResource(Resource):
        type_name = "posts"
        attributes = ["title", "content"]
        meta_attributes = ["created_at"]
        relationships = [has_one("author", "users"), has_many("comments")]
        sortable = {"popularity": sort_by_likes}

        def title(self):
            # shadows the declared "title" attribute
            return self.object.title.upper()

        def meta(self):
            # merged over the meta attributes
            return {"editable": self.context.get("admin", False)}

Subclasses inherit (a copy of) the schema of their superclass.
"""
from __future__ import annotations

import inspect
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union

from .descriptor import DescriptorRegistry, ResourceDescriptor, registry as default_registry
from .errors import SchemaError
from .fields import Override, is_resource_attr, is_resource_meta
from .relationships import RelationshipSpec


class ResourceView:
    """
    Ephemeral (domain object, context) pair bound to a descriptor.
    Views are created per object per request and aren't modified after construction.
    """

    descriptor: Optional[ResourceDescriptor] = None

    def __init__(self, obj: Any, context: Optional[Mapping] = None, descriptor: Optional[ResourceDescriptor] = None) -> None:
        self.object = obj
        self.context = context if context is not None else {}
        if descriptor is not None:
            self.descriptor = descriptor
        if self.descriptor is None:
            raise SchemaError(f"No resource descriptor for {type(obj).__name__}")

    def __getattr__(self, name: str) -> Any:
        # delegate unknown attributes to the domain object, so custom fields can use self.<attr>
        if name in ("object", "context", "descriptor"):
            raise AttributeError(name)
        return getattr(self.object, name)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} {self.type}:{self.id}>"

    @property
    def id(self) -> Optional[str]:
        return self.descriptor.object_id(self.object)

    @property
    def type(self) -> str:
        return self.descriptor.type_name

    @property
    def key(self) -> tuple:
        """
        :return: (type, id), identifies the resource in a compound document
        """
        return (self.type, self.id)

    def identifier(self) -> Dict[str, Optional[str]]:
        """
        :return: jsonapi resource identifier object
        """
        return {"id": self.id, "type": self.type}

    def attribute_values(self) -> Dict[str, Any]:
        """
        :return: attribute name => value, in declaration order
        """
        return {name: spec.resolve(self) for name, spec in self.descriptor.attributes.items()}

    def meta_values(self) -> Dict[str, Any]:
        """
        The meta attributes, merged with the result of the custom meta computation of the descriptor

        :raises SchemaError: when the custom meta computation doesn't return a mapping
        """
        result = {name: spec.resolve(self) for name, spec in self.descriptor.meta_attributes.items()}
        compute_meta = self.descriptor.meta
        if compute_meta is None:
            return result
        custom = compute_meta(self)
        if not isinstance(custom, Mapping):
            raise SchemaError(f"{self.type}: custom meta must return a mapping, got {type(custom).__name__} ({custom!r})")
        result.update(custom)
        return result

    def relationship_value(self, name: str) -> Union[None, Any, List[Any]]:
        """
        :return: None or the related object for to-one relationships,
                 a (possibly empty) list for to-many relationships and unknown relationships
        """
        rel = self.descriptor.resolve_relationship(name)
        if rel is None:
            return None
        return rel.fetch(self)

    def related_objects(self, name: str) -> List[Any]:
        """
        :return: the related objects as a list
        """
        value = self.relationship_value(name)
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]


def _resource_method(cls: type, name: str) -> Optional[Any]:
    """
    :return: the function `name` if it was defined by a Resource subclass
    """
    if name in ResourceView.__dict__ or name in Resource.__dict__:
        return None
    value = inspect.getattr_static(cls, name, None)
    if inspect.isfunction(value):
        return value
    return None


class Resource(ResourceView):
    """
    Declarative resource: the class attributes below are turned into a ResourceDescriptor
    when the class is created.

    type_name: jsonapi type, inferred from the model name if not set
    model: domain class (or class name), inferred from the class name (PostResource => Post) if not set
    attributes: list of names, (name, source) tuples, (name, func) tuples or FieldSpecs
    meta_attributes: idem
    relationships: list of `has_one` / `has_many` declarations
    sortable: dict of field name => SortStrategy, column name, callable or None
    registry: DescriptorRegistry where the descriptor will be registered
    abstract: set to True to skip registration
    """

    registry: DescriptorRegistry = default_registry
    abstract = True

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        own = cls.__dict__
        parent = cls.descriptor
        type_name = own.get("type_name")
        model = own.get("model")
        if model is None and type_name is None and cls.__name__.endswith("Resource"):
            model = cls.__name__[: -len("Resource")] or None

        if parent is not None:
            descriptor = parent.inherit(type_name=type_name, model=model, view_class=cls)
        else:
            descriptor = ResourceDescriptor(type_name=type_name, model=model, view_class=cls)

        for spec in own.get("attributes", ()):
            descriptor.add_attribute(spec)
        for spec in own.get("meta_attributes", ()):
            descriptor.add_meta_attribute(spec)
        for rel in own.get("relationships", ()):
            descriptor.add_relationship(rel)
        for name, strategy in own.get("sortable", {}).items():
            descriptor.add_sortable(name, strategy)

        # methods shadow the declared fields with the same name
        for name in list(descriptor.attributes):
            method = _resource_method(cls, name)
            if method is not None:
                descriptor.add_attribute(Override(name, method))
        for name in list(descriptor.meta_attributes):
            method = _resource_method(cls, name)
            if method is not None:
                descriptor.add_meta_attribute(Override(name, method))
        for name, rel in list(descriptor.relationships.items()):
            method = _resource_method(cls, name)
            if method is not None:
                descriptor.relationships[name] = RelationshipSpec(name, rel.cardinality, Override(name, method), rel.target_type, rel.polymorphic)

        for name, value in own.items():
            if is_resource_attr(value):
                descriptor.add_attribute(Override(name, value))
            elif is_resource_meta(value):
                descriptor.add_meta_attribute(Override(name, value))

        if callable(own.get("meta")):
            descriptor.meta = own["meta"]

        cls.descriptor = descriptor
        if not own.get("abstract", False):
            cls.registry.register(descriptor)
