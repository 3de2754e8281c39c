# flake8: noqa: F401
#
# jadoc: declarative resource schemas and JSON:API compound document serialization
#
# The logger has to be created first: the other modules use `jadoc.log`
#
from .jadoc_init import log, init_logging
from .errors import (
    JsonapiError,
    SchemaError,
    BadRequestError,
    UnsupportedSortFieldError,
    UnsupportedIncludeError,
    InvalidSortParameterError,
    InvalidIncludeParameterError,
)
from .config import JadocConfig, get_config
from .fields import Direct, Transform, Override, resource_attr, resource_meta
from .relationships import RelationshipSpec, has_one, has_many, ONE, MANY
from .sorting import SortEngine, SortDirective, SortTerm, ByDeclaredField, ByAliasedColumn, ByCustomTransform, ASC, DESC
from .descriptor import ResourceDescriptor, DescriptorRegistry, registry
from .resource import ResourceView, Resource
from .include import IncludedSet, IncludeGraphResolver, parse_include_paths, validate_include_paths
from .serializer import SerializationEngine
from .json_encoder import JadocJSONEncoder, JadocJSONProvider
from .model import descriptor_from_model, jsonapi_id
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    "log",
    # schema:
    "ResourceDescriptor",
    "DescriptorRegistry",
    "registry",
    "Resource",
    "ResourceView",
    "Direct",
    "Transform",
    "Override",
    "resource_attr",
    "resource_meta",
    "RelationshipSpec",
    "has_one",
    "has_many",
    "ONE",
    "MANY",
    # sorting:
    "SortEngine",
    "SortDirective",
    "SortTerm",
    "ByDeclaredField",
    "ByAliasedColumn",
    "ByCustomTransform",
    "ASC",
    "DESC",
    # serialization:
    "SerializationEngine",
    "IncludeGraphResolver",
    "IncludedSet",
    "parse_include_paths",
    "validate_include_paths",
    "JadocJSONEncoder",
    "JadocJSONProvider",
    "descriptor_from_model",
    "jsonapi_id",
    # config:
    "JadocConfig",
    "get_config",
    # errors:
    "JsonapiError",
    "SchemaError",
    "BadRequestError",
    "UnsupportedSortFieldError",
    "UnsupportedIncludeError",
    "InvalidSortParameterError",
    "InvalidIncludeParameterError",
)
