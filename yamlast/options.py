"""Parser options."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

from .types import YAMLVersion

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS: Final[frozenset[str]] = frozenset(["1.1", "1.2"])

_VERSION_KEYS: Final[tuple[str, ...]] = (
    "default_yaml_version",
    "defaultYAMLVersion",
    "defaultVersion",
)
_UNIQUE_KEYS_KEYS: Final[tuple[str, ...]] = ("unique_keys", "uniqueKeysEnforced")
_STRICT_KEYS: Final[tuple[str, ...]] = ("strict", "strictMode")


@dataclass(frozen=True, slots=True)
class ParserOptions:
    """Options controlling a conversion."""

    default_yaml_version: str | None = None
    unique_keys: bool = False
    strict: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> ParserOptions:
        """Build options from a camelCase or snake_case mapping."""
        if not options:
            return cls()
        known = {*_VERSION_KEYS, *_UNIQUE_KEYS_KEYS, *_STRICT_KEYS}
        for key in options:
            if key not in known:
                logger.debug("ignoring unknown parser option %r", key)
        version = _first(options, _VERSION_KEYS)
        return cls(
            default_yaml_version=None if version is None else str(version),
            unique_keys=bool(_first(options, _UNIQUE_KEYS_KEYS)),
            strict=bool(_first(options, _STRICT_KEYS)),
        )

    def resolve_version(self, directive_version: str | None) -> YAMLVersion:
        """Pick the document version from its `%YAML` directive or the default."""
        version = directive_version or self.default_yaml_version
        if version is None:
            return "1.2"
        if version in SUPPORTED_VERSIONS:
            return version  # type: ignore[return-value]
        return "next"


def _first(options: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = options.get(key)
        if value is not None:
            return value
    return None
