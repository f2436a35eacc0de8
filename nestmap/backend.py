"""Backend capability context passed to metadata builds."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict

from .errors import InvalidArgError
from .naming import DefaultNamingStrategy, NamingStrategy


@dataclass(frozen=True)
class BackendContext:
    """What the active storage backend can represent.

    ``nested_embeds`` selects how embedded prefixes are resolved: backends
    that store embeds as nested documents keep the bare property name, all
    others flatten nested embeds into prefixed column names.
    """

    name: str
    nested_embeds: bool = False
    embedded_arrays: bool = False
    naming_strategy: NamingStrategy = field(default_factory=DefaultNamingStrategy)
    strict: bool = True

    @property
    def flattens_embeds(self) -> bool:
        return not self.nested_embeds

    @classmethod
    def for_backend(cls, name: str, **options: Any) -> "BackendContext":
        """Return the context for a known backend name, with keyword overrides applied.

        Unknown names are accepted only when ``nested_embeds`` is given
        explicitly, since that flag cannot be guessed.
        """
        if not isinstance(name, str) or not name.strip():
            raise InvalidArgError("backend name must be a non-empty string")
        key = name.strip().lower()
        unknown = set(options) - _OPTION_NAMES
        if unknown:
            raise InvalidArgError(f"unknown backend options: {', '.join(sorted(unknown))}")
        preset = _PRESETS.get(key)
        if preset is None:
            if "nested_embeds" not in options:
                raise InvalidArgError(
                    f"unknown backend '{name}'; pass nested_embeds= to describe it"
                )
            return cls(name=key, **options)
        return replace(preset, **options) if options else preset


_OPTION_NAMES = {"nested_embeds", "embedded_arrays", "naming_strategy", "strict"}

_PRESETS: Dict[str, BackendContext] = {
    "postgres": BackendContext("postgres"),
    "mysql": BackendContext("mysql"),
    "mariadb": BackendContext("mariadb"),
    "sqlite": BackendContext("sqlite"),
    "mssql": BackendContext("mssql"),
    "oracle": BackendContext("oracle"),
    "mongodb": BackendContext("mongodb", nested_embeds=True, embedded_arrays=True),
}

RELATIONAL = _PRESETS["postgres"]
DOCUMENT = _PRESETS["mongodb"]
