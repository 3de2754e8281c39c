"""
    Field specifications: how a resource attribute (or meta attribute) value is computed

    A field is one of
    - ``Direct``: read a property of the domain object
    - ``Transform``: call ``func(object, context)``
    - ``Override``: call an explicitly supplied ``func(view)``, e.g. a method of a ``Resource`` subclass

    When the same name is declared more than once, the declaration with the highest precedence
    is kept: Override > Transform > Direct
"""

from typing import Any, Callable, Optional

RESOURCE_ATTR_TAG = "_j_is_resource_attr"
RESOURCE_META_TAG = "_j_is_resource_meta"


class FieldSpec:
    """
    Base class of the field variants
    """

    precedence = 0

    def __init__(self, name: str) -> None:
        self.name = name

    def resolve(self, view) -> Any:  # pragma: no cover
        raise NotImplementedError

    def _key(self):
        return (self.__class__, self.name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldSpec):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class Direct(FieldSpec):
    """
    Read ``source`` (defaults to the field name) from the domain object
    """

    precedence = 1

    def __init__(self, name: str, source: Optional[str] = None) -> None:
        super().__init__(name)
        self.source = source or name

    def resolve(self, view) -> Any:
        obj = view.object
        if isinstance(obj, dict):
            return obj.get(self.source)
        return getattr(obj, self.source, None)

    def _key(self):
        return (self.__class__, self.name, self.source)

    def __repr__(self) -> str:
        if self.source != self.name:
            return f"Direct({self.name!r}, source={self.source!r})"
        return f"Direct({self.name!r})"


class Transform(FieldSpec):
    """
    Compute the value with a pure function of the domain object and the request context
    """

    precedence = 2

    def __init__(self, name: str, func: Callable[[Any, dict], Any]) -> None:
        if not callable(func):
            raise TypeError(f"Transform '{name}' requires a callable, got {func!r}")
        super().__init__(name)
        self.func = func

    def resolve(self, view) -> Any:
        return self.func(view.object, view.context)

    def _key(self):
        return (self.__class__, self.name, self.func)


class Override(FieldSpec):
    """
    Compute the value with an explicitly supplied function that receives the resource view
    """

    precedence = 3

    def __init__(self, name: str, func: Callable[[Any], Any]) -> None:
        if not callable(func):
            raise TypeError(f"Override '{name}' requires a callable, got {func!r}")
        super().__init__(name)
        self.func = func

    def resolve(self, view) -> Any:
        return self.func(view)

    def _key(self):
        return (self.__class__, self.name, self.func)


def as_field(spec: Any) -> FieldSpec:
    """
    :param spec: a FieldSpec, an attribute name or a (name, source) tuple
    :return: FieldSpec
    """
    if isinstance(spec, FieldSpec):
        return spec
    if isinstance(spec, str):
        return Direct(spec)
    if isinstance(spec, tuple) and len(spec) == 2:
        name, source = spec
        if callable(source):
            return Transform(name, source)
        return Direct(name, source)
    raise TypeError(f"Invalid field specification: {spec!r}")


def resource_attr(func: Callable) -> Callable:
    """
    Decorator: expose a ``Resource`` method as an attribute, the method name is the attribute name

        class UserResource(Resource):
            @resource_attr
            def full_name(self):
                return f"{self.object.first_name} {self.object.last_name}"
    """
    setattr(func, RESOURCE_ATTR_TAG, True)
    return func


def resource_meta(func: Callable) -> Callable:
    """
    Decorator: expose a ``Resource`` method as a meta attribute
    """
    setattr(func, RESOURCE_META_TAG, True)
    return func


def is_resource_attr(attr: Any) -> bool:
    return getattr(attr, RESOURCE_ATTR_TAG, False) is True


def is_resource_meta(attr: Any) -> bool:
    return getattr(attr, RESOURCE_META_TAG, False) is True
