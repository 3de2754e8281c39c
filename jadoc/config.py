"""jadoc configuration.

Serialization and sorting options are carried by an immutable :class:`JadocConfig`
value which is passed to the engines when they're constructed.
Defaults can be overridden with ``JADOC_*`` environment variables, cfr. :meth:`JadocConfig.from_env`
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields, replace
from functools import lru_cache
from typing import Any, Mapping, Optional

import jadoc

ENV_PREFIX = "JADOC_"


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class JadocConfig:
    """Configuration used by the serialization and sort engines.

    All fields are immutable so a single instance can be shared by concurrent requests.
    """

    # sort=-created_at,name
    descending_marker: str = "-"
    # separator for sort tokens and include paths in query strings
    field_separator: str = ","
    # include=author.comments
    path_separator: str = "."
    # strftime format for datetime values, None means ISO-8601 (datetime.isoformat())
    datetime_format: Optional[str] = None
    # composite primary keys are joined with this delimiter to create the jsonapi id
    id_delimiter: str = "_"
    # None values are ordered after the other values when sorting in-memory collections
    nulls_last: bool = True

    def with_overrides(self, overrides: Mapping[str, Any]) -> "JadocConfig":
        """Return a new config where known fields are replaced by ``overrides``."""
        valid = {k: v for k, v in overrides.items() if k in self.__dataclass_fields__}
        if not valid:
            return self
        return replace(self, **valid)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "JadocConfig":
        """
        Create a config from the ``JADOC_<FIELD>`` environment variables, e.g. JADOC_DESCENDING_MARKER="!"
        :param environ: mapping to read from, defaults to os.environ
        :return: JadocConfig
        """
        if environ is None:
            environ = os.environ
        overrides = {}
        for field in fields(cls):
            value = environ.get(ENV_PREFIX + field.name.upper())
            if value is None:
                continue
            if field.type in (bool, "bool"):
                overrides[field.name] = _parse_bool(value)
            else:
                overrides[field.name] = value
        return cls().with_overrides(overrides)


@lru_cache(maxsize=1)
def default_config() -> JadocConfig:
    """
    :return: the config created from the environment when the first engine was instantiated
    """
    return JadocConfig.from_env()


def get_config(option: str) -> Any:
    """Retrieve a configuration parameter
    :param option: configuration parameter, e.g. "descending_marker"
    :return: configuration value or None
    """
    return getattr(default_config(), option, None)


def is_debug() -> bool:
    """
    We use the loglevel to check whether we're running in debug mode
    :return: whether jadoc is in debug mode
    :rtype: Boolean
    """
    return jadoc.log.getEffectiveLevel() < logging.INFO
