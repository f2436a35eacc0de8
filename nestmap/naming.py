"""Naming strategies used to derive prefixes and database column names."""

from __future__ import annotations

from typing import Iterable, Optional, Sequence


class NamingStrategy:
    """Joins name segments produced by embedded prefixes and column names."""

    separator: str = "_"

    def __init__(self, separator: Optional[str] = None) -> None:
        if separator is not None:
            if not isinstance(separator, str):
                raise TypeError("separator must be a string")
            self.separator = separator

    def join(self, segments: Iterable[str]) -> str:
        return self.separator.join(segment for segment in segments if segment)

    def embedded_prefix(self, parent_prefix: Optional[str], segment: Optional[str]) -> str:
        """Return the prefix of an embed from its parent's prefix and its own segment.

        Either part may be empty or None; empty parts contribute nothing.
        """
        return self.join([parent_prefix or "", segment or ""])

    def column_name(
        self,
        property_name: str,
        custom_name: Optional[str],
        embedded_prefixes: Sequence[str],
    ) -> str:
        return self.join([*embedded_prefixes, custom_name or property_name])

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamingStrategy):
            return NotImplemented
        return type(self) is type(other) and self.separator == other.separator

    def __hash__(self) -> int:
        return hash((type(self), self.separator))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(separator={self.separator!r})"


class DefaultNamingStrategy(NamingStrategy):
    """Underscore separated names: ``data_cnt_likes``."""
