# serializer.py: compound document serialization
#
# document = {
#     "data": resource object | [resource objects] | None,
#     "included": [resource objects]   (only present when not empty)
# }
# resource object = {"id": .., "type": .., "attributes": {..}, "meta": {..}}
#
import datetime
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import jadoc
from .config import JadocConfig, default_config
from .descriptor import DescriptorRegistry, ResourceDescriptor, registry as default_registry
from .include import IncludedSet, IncludeGraphResolver, parse_include_paths
from .resource import ResourceView


def is_collection(value: Any) -> bool:
    """
    :return: True if `value` holds multiple root objects: sequences, sets, iterators and query objects
    """
    if isinstance(value, (str, bytes, Mapping)):
        return False
    return hasattr(value, "__iter__")


class SerializationEngine:
    """
    Serialize domain objects with a resource descriptor

        engine = SerializationEngine(post_descriptor)
        document = engine.serialize(post, {"current_user": user}, ["author", "author.comments"])
    """

    def __init__(
        self,
        descriptor: Union[ResourceDescriptor, type],
        registry: Optional[DescriptorRegistry] = None,
        config: Optional[JadocConfig] = None,
        relationship_linkage: bool = False,
    ) -> None:
        """
        :param descriptor: descriptor (or Resource subclass) of the root objects
        :param registry: registry used to lookup the descriptors of related objects
        :param config: JadocConfig
        :param relationship_linkage: add the resource linkage of the included relationships to the resource objects
        """
        descriptor = getattr(descriptor, "descriptor", descriptor)
        if not isinstance(descriptor, ResourceDescriptor):
            raise TypeError(f"Invalid resource descriptor {descriptor!r}")
        self.descriptor = descriptor
        self.registry = registry if registry is not None else default_registry
        self.config = config or default_config()
        self.relationship_linkage = relationship_linkage
        self.resolver = IncludeGraphResolver(self.registry, self.config, render=self.resource_object)

    def serialize_value(self, value: Any) -> Any:
        """
        date and time values are serialized as ISO-8601 strings
        """
        if isinstance(value, datetime.datetime) and self.config.datetime_format:
            return value.strftime(self.config.datetime_format)
        if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
            return value.isoformat()
        return value

    def resource_object(self, view: ResourceView, relationship_names: Sequence[str] = ()) -> Dict[str, Any]:
        """
        :param view: the view to render
        :param relationship_names: relationships to add linkage for (if `relationship_linkage` is set)
        :return: jsonapi resource object
        """
        result = {
            "id": view.id,
            "type": view.type,
            "attributes": {name: self.serialize_value(value) for name, value in view.attribute_values().items()},
        }
        meta = view.meta_values()
        if meta:
            result["meta"] = {name: self.serialize_value(value) for name, value in meta.items()}
        if self.relationship_linkage and relationship_names:
            relationships = self.linkage(view, relationship_names)
            if relationships:
                result["relationships"] = relationships
        return result

    def linkage(self, view: ResourceView, relationship_names: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        :return: relationship name => {"data": resource identifier(s)}
        """
        result = {}
        for rel_name in relationship_names:
            relationship = view.descriptor.resolve_relationship(rel_name)
            if relationship is None:
                continue
            identifiers = []
            for related in view.related_objects(rel_name):
                descriptor = self.resolver.resolve_descriptor_for(related, relationship)
                if descriptor is not None:
                    identifiers.append({"id": descriptor.object_id(related), "type": descriptor.type_name})
            if relationship.to_many:
                result[rel_name] = {"data": identifiers}
            else:
                result[rel_name] = {"data": identifiers[0] if identifiers else None}
        return result

    def serialize(self, roots: Any, context: Optional[dict] = None, include_paths: Union[str, Sequence[str], None] = None) -> Dict[str, Any]:
        """
        Create the jsonapi document for `roots`

        :param roots: a domain object, a list of domain objects or None
        :param context: request context available to the views, e.g. the current user
        :param include_paths: dotted relationship paths to include, e.g. ["author", "author.comments"]
        :return: document dict
        """
        if roots is None:
            return {"data": None}

        context = context if context is not None else {}
        many = is_collection(roots)
        objects = [obj for obj in (roots if many else [roots]) if obj is not None]
        include_tree = parse_include_paths(include_paths, self.config)
        top_names = list(include_tree)

        views = [self.descriptor.view(obj, context) for obj in objects]
        data: List[Dict[str, Any]] = [self.resource_object(view, top_names) for view in views]

        if many:
            document: Dict[str, Any] = {"data": data}
        else:
            document = {"data": data[0] if data else None}

        if include_tree and data:
            included = IncludedSet(exclude=[view.key for view in views])
            self.resolver.expand(objects, include_tree, self.descriptor, context, included)
            if included:
                document["included"] = included.to_list()
            jadoc.log.debug(f"Serialized {len(data)} {self.descriptor.type_name} with {len(included)} included resources")

        return document

    def serialize_many(self, roots: Iterable[Any], context: Optional[dict] = None, include_paths: Union[str, Sequence[str], None] = None) -> Dict[str, Any]:
        """
        Serialize `roots` as a collection, None is serialized as an empty collection
        """
        return self.serialize(list(roots) if roots is not None else [], context, include_paths)
