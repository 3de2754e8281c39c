# JSON:API sorting (https://jsonapi.org/format/#fetching-sorting)
#
# sort=-created_at,name
# The sort order for each sort field MUST be ascending unless it is prefixed
# with a minus, in which case it MUST be descending.
#
# Sorting is applied to either an in-memory sequence or a query object that implements
# `order_by` (sqlalchemy Query and Select). The sort fields are validated before any
# ordering is applied.
#
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Union

import sqlalchemy

import jadoc
from .config import JadocConfig, default_config
from .errors import InvalidSortParameterError, UnsupportedSortFieldError

ASC = "asc"
DESC = "desc"


class SortTerm(NamedTuple):
    field: str
    direction: str = ASC

    @property
    def descending(self) -> bool:
        return self.direction == DESC


class SortDirective:
    """
    Ordered list of sort terms: the first term is the primary sort key, the next terms break ties
    """

    def __init__(self, terms: Iterable[Union[SortTerm, tuple]] = ()) -> None:
        self.terms = tuple(SortTerm(*term) for term in terms)

    def __iter__(self) -> Iterator[SortTerm]:
        return iter(self.terms)

    def __len__(self) -> int:
        return len(self.terms)

    def __bool__(self) -> bool:
        return bool(self.terms)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SortDirective):
            return self.terms == other.terms
        if isinstance(other, (list, tuple)):
            return list(self.terms) == [tuple(term) for term in other]
        return NotImplemented

    def __repr__(self) -> str:
        return f"SortDirective({list(self.terms)!r})"

    @property
    def fields(self) -> List[str]:
        return [term.field for term in self.terms]

    def to_text(self, config: Optional[JadocConfig] = None) -> str:
        """
        :return: the sort query parameter value for this directive
        """
        config = config or default_config()
        tokens = [(config.descending_marker if term.descending else "") + term.field for term in self.terms]
        return config.field_separator.join(tokens)


class SortStrategy:
    """
    Base class of the sort strategies
    """

    def apply(self, collection: Any, field: str, direction: str, config: JadocConfig) -> Any:  # pragma: no cover
        raise NotImplementedError

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SortStrategy):
            return NotImplemented
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self), tuple(sorted(vars(self).items()))))


class ByDeclaredField(SortStrategy):
    """
    Order by the sort field itself
    """

    def apply(self, collection, field, direction, config):
        return order_by(collection, field, direction, config)

    def __repr__(self) -> str:
        return "ByDeclaredField()"


class ByAliasedColumn(SortStrategy):
    """
    Order by another column (or object property) than the sort field name
    """

    def __init__(self, column: str) -> None:
        self.column = column

    def apply(self, collection, field, direction, config):
        return order_by(collection, self.column, direction, config)

    def __repr__(self) -> str:
        return f"ByAliasedColumn({self.column!r})"


class ByCustomTransform(SortStrategy):
    """
    Delegate the ordering to ``func(collection, direction)``, the result replaces the collection
    """

    def __init__(self, func: Callable[[Any, str], Any]) -> None:
        if not callable(func):
            raise TypeError(f"ByCustomTransform requires a callable, got {func!r}")
        self.func = func

    def apply(self, collection, field, direction, config):
        return self.func(collection, direction)

    def __repr__(self) -> str:
        return f"ByCustomTransform({getattr(self.func, '__name__', self.func)!r})"


def as_sort_strategy(value: Any) -> SortStrategy:
    """
    :param value: SortStrategy, column name, callable or None
    :return: SortStrategy
    """
    if value is None:
        return ByDeclaredField()
    if isinstance(value, SortStrategy):
        return value
    if isinstance(value, str):
        return ByAliasedColumn(value)
    if callable(value):
        return ByCustomTransform(value)
    raise TypeError(f"Invalid sort strategy: {value!r}")


def is_query(collection: Any) -> bool:
    return hasattr(collection, "order_by") and not isinstance(collection, (list, tuple))


def _sort_value(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _query_column(query: Any, name: str) -> Any:
    """
    Lookup `name` on the primary entity of the query, fall back to a plain column expression
    """
    entity = None
    descriptions = getattr(query, "column_descriptions", None)
    if descriptions:
        entity = descriptions[0].get("entity")
    attr = getattr(entity, name, None) if entity is not None else None
    if attr is None or not hasattr(attr, "desc"):
        jadoc.log.debug(f"{entity} has no column attribute {name}, using column('{name}')")
        attr = sqlalchemy.column(name)
    return attr


def order_by(collection: Any, name: str, direction: str, config: JadocConfig) -> Any:
    """
    Order `collection` by `name`

    :param collection: sequence or query object
    :param name: column or property name
    :param direction: ASC or DESC
    :return: ordered query or a new, stably sorted list
    """
    if is_query(collection):
        column = _query_column(collection, name)
        return collection.order_by(column.desc() if direction == DESC else column.asc())

    items = list(collection)
    present = [item for item in items if _sort_value(item, name) is not None]
    missing = [item for item in items if _sort_value(item, name) is None]
    present = sorted(present, key=lambda item: _sort_value(item, name), reverse=direction == DESC)
    return present + missing if config.nulls_last else missing + present


def split_csv(text: Union[str, Sequence[str], None], separator: str = ",") -> List[str]:
    """
    Split a query parameter value, e.g. "-created_at, name" => ["-created_at", "name"]
    Empty tokens are dropped, pre-split sequences are stripped
    """
    if not text:
        return []
    tokens = text.split(separator) if isinstance(text, str) else text
    return [token.strip() for token in tokens if token and token.strip()]


class SortEngine:
    """
    Parse sort directives and apply them using the sortable fields of a resource descriptor
    """

    def __init__(self, config: Optional[JadocConfig] = None) -> None:
        self.config = config or default_config()

    def parse(self, text: Union[str, Sequence[str], None]) -> SortDirective:
        """
        :param text: sort parameter value, e.g. "-created_at,name"
        :return: SortDirective
        """
        marker = self.config.descending_marker
        terms = []
        for token in split_csv(text, self.config.field_separator):
            direction = ASC
            if token.startswith(marker):
                direction = DESC
                token = token[len(marker) :]
            if not token:
                raise InvalidSortParameterError(f"Invalid sort parameter '{text}': empty sort field")
            terms.append(SortTerm(token, direction))
        return SortDirective(terms)

    def validate(self, directive: SortDirective, descriptor) -> None:
        """
        :raises UnsupportedSortFieldError: when a field in `directive` isn't sortable
        """
        for term in directive:
            if not descriptor.is_sortable(term.field):
                raise UnsupportedSortFieldError(term.field, descriptor.sortable_field_names())

    def apply(self, collection: Any, directive: Union[SortDirective, str, Sequence[str], None], descriptor) -> Any:
        """
        Apply the sort directive to `collection`

        All fields are validated before the collection is ordered: when a field isn't sortable
        the collection is left untouched and UnsupportedSortFieldError is raised.

        Query objects accumulate `order_by` clauses, so the terms are applied in order.
        Sequences are sorted stably, so the terms are applied in reverse order: the ordering of
        the first term is applied last and the next terms only break its ties.

        :param collection: sequence or query object
        :param directive: SortDirective or sort parameter text
        :param descriptor: ResourceDescriptor declaring the sortable fields
        :return: the ordered query or a new list
        """
        if not isinstance(directive, SortDirective):
            directive = self.parse(directive)
        if not directive:
            return collection

        self.validate(directive, descriptor)

        terms = list(directive)
        if not is_query(collection):
            collection = list(collection)
            terms.reverse()

        for term in terms:
            strategy = descriptor.sort_strategy(term.field)
            jadoc.log.debug(f"Sorting {descriptor.type_name} by {term.field} ({term.direction}) using {strategy}")
            collection = strategy.apply(collection, term.field, term.direction, self.config)

        return collection

    def sort(self, collection: Any, text: Union[str, Sequence[str], None], descriptor) -> Any:
        """
        Parse `text` and apply it to `collection`
        """
        return self.apply(collection, self.parse(text), descriptor)
