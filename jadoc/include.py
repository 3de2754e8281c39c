# Inclusion of related resources (https://jsonapi.org/format/#fetching-includes)
#
# Request parameter example:
#     include=author,author.comments,tags
#
# The include paths are parsed into a tree: {"author": ["comments"], "tags": []}
# The relationships in the tree are walked recursively, every related object is rendered
# with the descriptor of its (runtime) type and added to the included set once.
# Objects that are already in the included set aren't walked again, which terminates
# the recursion when the relationship graph contains cycles.
#
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import jadoc
from .config import JadocConfig, default_config
from .descriptor import DescriptorRegistry, ResourceDescriptor, infer_relationship_type, registry as default_registry
from .errors import InvalidIncludeParameterError, UnsupportedIncludeError
from .relationships import RelationshipSpec
from .sorting import split_csv

ResourceKey = Tuple[str, Optional[str]]


class IncludedSet:
    """
    Insertion ordered set of included resource objects, keyed by (type, id)

    The set is owned by a single serialization call. The keys of the primary data
    are excluded: they're considered present but they're never part of the included resources.
    """

    def __init__(self, exclude: Iterable[ResourceKey] = ()) -> None:
        self._items: "OrderedDict[ResourceKey, Dict[str, Any]]" = OrderedDict()
        self._excluded = set(exclude)

    def __contains__(self, key: ResourceKey) -> bool:
        return key in self._items or key in self._excluded

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[Dict[str, Any]]:
        return iter(self._items.values())

    def add(self, key: ResourceKey, resource_object: Dict[str, Any]) -> bool:
        """
        :return: False if `key` was already present
        """
        if key in self:
            return False
        self._items[key] = resource_object
        return True

    def keys(self) -> List[ResourceKey]:
        return list(self._items.keys())

    def to_list(self) -> List[Dict[str, Any]]:
        return list(self._items.values())


def parse_include_paths(paths: Union[str, Sequence[str], None], config: Optional[JadocConfig] = None) -> "OrderedDict[str, List[str]]":
    """
    Map the top-level relationship names to the remaining nested paths

        ["author", "author.comments", "tags"] => {"author": ["comments"], "tags": []}

    :param paths: list of dotted include paths or the comma separated include parameter value
    :return: ordered dict
    """
    config = config or default_config()
    result: "OrderedDict[str, List[str]]" = OrderedDict()
    for path in split_csv(paths, config.field_separator):
        parts = path.split(config.path_separator)
        if not all(parts):
            raise InvalidIncludeParameterError(f"Invalid include path '{path}'")
        nested = result.setdefault(parts[0], [])
        if len(parts) > 1:
            continuation = config.path_separator.join(parts[1:])
            if continuation not in nested:
                nested.append(continuation)
    return result


class IncludeGraphResolver:
    """
    Walk the relationships of a set of objects following an include tree
    """

    def __init__(
        self,
        registry: Optional[DescriptorRegistry] = None,
        config: Optional[JadocConfig] = None,
        render: Optional[Callable[[Any, List[str]], Dict[str, Any]]] = None,
    ) -> None:
        """
        :param registry: registry used to lookup the descriptors of related objects
        :param config: JadocConfig
        :param render: ``render(view, relationship_names)`` creating the resource object of a related view
        """
        self.registry = registry if registry is not None else default_registry
        self.config = config or default_config()
        self.render = render or (lambda view, _names: dict(view.identifier(), attributes=view.attribute_values()))

    def resolve_descriptor_for(self, obj: Any, relationship: RelationshipSpec) -> Optional[ResourceDescriptor]:
        """
        Lookup the descriptor to render a related object:
        1. the descriptor of the relationship's declared target type
        2. the descriptor registered for the runtime type of `obj`
        3. the descriptor of the type inferred from the relationship name (author => authors)
        If none exists the object isn't rendered
        """
        descriptor = self.registry.get(relationship.target_type)
        if descriptor is not None:
            return descriptor
        descriptor = self.registry.for_object(obj)
        if descriptor is None and not relationship.polymorphic:
            descriptor = self.registry.get(infer_relationship_type(relationship.name))
        if descriptor is None:
            jadoc.log.debug(f"No resource descriptor for {type(obj).__name__} in relationship '{relationship.name}', skipped")
        return descriptor

    def expand(
        self,
        roots: Iterable[Any],
        include_tree: Dict[str, List[str]],
        descriptor: ResourceDescriptor,
        context: Optional[dict],
        included: IncludedSet,
    ) -> IncludedSet:
        """
        Add the related objects reachable from `roots` through `include_tree` to `included`

        :param roots: domain objects rendered by `descriptor`
        :param include_tree: parsed include paths, cfr. `parse_include_paths`
        :param descriptor: descriptor of the roots
        :param context: request context passed to the views
        :param included: the included set of the current serialization call
        :return: `included`
        """
        for root in roots:
            view = descriptor.view(root, context)
            for rel_name, nested_paths in include_tree.items():
                relationship = descriptor.resolve_relationship(rel_name)
                if relationship is None:
                    jadoc.log.debug(f"{descriptor.type_name} has no relationship '{rel_name}', ignored")
                    continue
                for related in view.related_objects(rel_name):
                    self._include(related, relationship, nested_paths, context, included)
        return included

    def _include(self, obj: Any, relationship: RelationshipSpec, nested_paths: List[str], context: Optional[dict], included: IncludedSet) -> None:
        if obj is None:
            return
        descriptor = self.resolve_descriptor_for(obj, relationship)
        if descriptor is None:
            return
        view = descriptor.view(obj, context)
        key = view.key
        if key in included:
            # the nested includes of an object are only walked the first time it's found
            return
        subtree = parse_include_paths(nested_paths, self.config)
        included.add(key, self.render(view, list(subtree)))
        if subtree:
            self.expand([obj], subtree, descriptor, context, included)


def validate_include_paths(
    descriptor: ResourceDescriptor,
    paths: Union[str, Sequence[str], None],
    registry: Optional[DescriptorRegistry] = None,
    config: Optional[JadocConfig] = None,
) -> List[str]:
    """
    Stricter include validation for the request handling layer:
    every segment of every path must be a relationship of the resource at that level.
    Validation stops at polymorphic relationships, because the target resource is only known at serialization time.

    :raises UnsupportedIncludeError: for the first unknown segment
    :return: the include paths
    """
    registry = registry if registry is not None else default_registry
    config = config or default_config()
    result = split_csv(paths, config.field_separator)
    for path in result:
        current = descriptor
        for segment in path.split(config.path_separator):
            relationship = current.resolve_relationship(segment)
            if relationship is None:
                raise UnsupportedIncludeError(path, list(current.relationships))
            if relationship.polymorphic:
                break
            target_type = relationship.target_type or infer_relationship_type(relationship.name)
            current = registry.get(target_type)
            if current is None:
                break
    return result
