"""Descriptor value objects aggregated by embedded and entity metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from typing_extensions import Literal

RelationType = Literal["one-to-one", "many-to-one", "one-to-many", "many-to-many"]

RELATION_TYPES = ("one-to-one", "many-to-one", "one-to-many", "many-to-many")


@dataclass(frozen=True)
class ColumnMetadata:
    """A storage column declared on an entity or an embed.

    ``database_name`` is the name given explicitly by the declaration; the
    final name with embedded prefixes applied is computed by the owning
    entity.
    """

    property_name: str
    database_name: Optional[str] = None
    type: str = "varchar"
    nullable: bool = False
    primary: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.property_name, str) or not self.property_name.strip():
            raise ValueError("column property names must be non-empty strings")


@dataclass(frozen=True)
class RelationMetadata:
    property_name: str
    target: Any
    relation_type: RelationType = "many-to-one"
    join_column: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.property_name, str) or not self.property_name.strip():
            raise ValueError("relation property names must be non-empty strings")
        if self.relation_type not in RELATION_TYPES:
            raise ValueError(f"unknown relation type '{self.relation_type}'")

    @property
    def is_owning(self) -> bool:
        return self.relation_type in ("many-to-one", "one-to-one")


@dataclass(frozen=True)
class RelationIdMetadata:
    """Mirror of a related record's id, loaded into ``property_name``."""

    property_name: str
    relation_name: str


@dataclass(frozen=True)
class RelationCountMetadata:
    """Count of related records, loaded into ``property_name``."""

    property_name: str
    relation_name: str
