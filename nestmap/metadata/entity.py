"""Entity metadata holding the top-level embeds of one entity."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..backend import BackendContext
from ..errors import DuplicateColumnError, InvalidArgError, NotBuiltError, UnsupportedFeatureError
from .columns import ColumnMetadata, RelationCountMetadata, RelationIdMetadata, RelationMetadata
from .embedded import EmbeddedMetadata

logger = logging.getLogger(__name__)

_ANY_OWNER: Any = object()


@dataclass(frozen=True)
class ColumnMapping:
    """One occurrence of a column in an entity, with its storage location.

    ``storage_path`` is where the value lives in storage: a single flat
    name on flattening backends, the embed path plus the column name on
    nested-document backends.
    """

    column: ColumnMetadata
    embedded: Optional[EmbeddedMetadata]
    database_name: str
    storage_path: Tuple[str, ...]


class EntityMetadata:
    """Owns the columns, relations and embedded tree of one entity.

    The same descriptor instance may be declared in several embeds; each
    occurrence gets its own ColumnMapping.
    """

    def __init__(self, target: Any, name: Optional[str] = None) -> None:
        self.target = target
        self.name = name or getattr(target, "__name__", None) or str(target)
        self.own_columns: List[ColumnMetadata] = []
        self.own_relations: List[RelationMetadata] = []
        self.own_relation_ids: List[RelationIdMetadata] = []
        self.own_relation_counts: List[RelationCountMetadata] = []
        self.embeddeds: List[EmbeddedMetadata] = []

        self._context: Optional[BackendContext] = None
        self.column_mappings: List[ColumnMapping] = []
        self.all_columns: List[ColumnMetadata] = []
        self.all_relations: List[RelationMetadata] = []
        self.all_relation_ids: List[RelationIdMetadata] = []
        self.all_relation_counts: List[RelationCountMetadata] = []

    def __repr__(self) -> str:
        return f"EntityMetadata(name={self.name!r}, embeddeds={len(self.embeddeds)})"

    def add_embedded(self, embedded: EmbeddedMetadata) -> "EntityMetadata":
        if embedded.parent_embedded_metadata is not None:
            raise InvalidArgError(
                f"embedded '{embedded.property_name}' is nested and cannot sit on entity '{self.name}'"
            )
        if embedded not in self.embeddeds:
            self.embeddeds.append(embedded)
        return self

    def build(self, context: BackendContext) -> "EntityMetadata":
        """Build every top-level embed, aggregate the tree, then validate it."""
        for embedded in self.embeddeds:
            embedded.build(context)

        self._context = context
        self.all_relations = list(self.own_relations)
        self.all_relation_ids = list(self.own_relation_ids)
        self.all_relation_counts = list(self.own_relation_counts)
        for embedded in self.embeddeds:
            self.all_relations.extend(embedded.relations_from_tree)
            self.all_relation_ids.extend(embedded.relation_ids_from_tree)
            self.all_relation_counts.extend(embedded.relation_counts_from_tree)

        # _walk_embeddeds is depth-first in declaration order, the same order
        # columns_from_tree folds in.
        mappings = [self._map_column(column, None, context) for column in self.own_columns]
        for embedded in self._walk_embeddeds():
            mappings.extend(self._map_column(column, embedded, context) for column in embedded.columns)
        self.column_mappings = mappings
        self.all_columns = [mapping.column for mapping in mappings]

        self.validate(context)
        logger.debug(
            "built entity %s: %d columns, %d embeds",
            self.name,
            len(self.all_columns),
            len(self.embeddeds),
        )
        return self

    def _map_column(
        self,
        column: ColumnMetadata,
        embedded: Optional[EmbeddedMetadata],
        context: BackendContext,
    ) -> ColumnMapping:
        naming = context.naming_strategy
        if embedded is None:
            name = naming.column_name(column.property_name, column.database_name, [])
            return ColumnMapping(column, None, name, (name,))
        if context.flattens_embeds:
            name = naming.column_name(column.property_name, column.database_name, [embedded.prefix])
            return ColumnMapping(column, embedded, name, (name,))
        name = naming.column_name(column.property_name, column.database_name, [])
        return ColumnMapping(column, embedded, name, tuple(embedded.parent_property_names) + (name,))

    def _walk_embeddeds(self) -> List[EmbeddedMetadata]:
        found: List[EmbeddedMetadata] = []
        stack = list(reversed(self.embeddeds))
        while stack:
            embedded = stack.pop()
            found.append(embedded)
            stack.extend(reversed(embedded.embeddeds))
        return found

    def validate(self, context: BackendContext) -> None:
        """Check the built tree for mappings the backend cannot store.

        Columns sharing a storage location raise DuplicateColumnError in
        strict mode and are logged otherwise. On nested-document backends the
        location includes the embed path, so only columns on the same level
        can collide. Embeds sharing a prefix are only logged; they fail when
        their columns actually collide.
        """
        embeddeds = self._walk_embeddeds()
        if not context.embedded_arrays:
            for embedded in embeddeds:
                if embedded.is_array:
                    raise UnsupportedFeatureError(
                        f"backend '{context.name}' does not support array embeds "
                        f"('{'.'.join(embedded.parent_property_names)}' on '{self.name}')"
                    )

        if context.flattens_embeds:
            by_prefix: Dict[str, List[str]] = defaultdict(list)
            for embedded in embeddeds:
                by_prefix[embedded.prefix].append(".".join(embedded.parent_property_names))
            for prefix, paths in by_prefix.items():
                if len(paths) > 1:
                    logger.warning(
                        "embeds %s of entity %s share the column prefix %r",
                        ", ".join(paths),
                        self.name,
                        prefix,
                    )

        seen: Dict[str, int] = defaultdict(int)
        for mapping in self.column_mappings:
            seen[".".join(mapping.storage_path)] += 1
        duplicates = sorted(name for name, count in seen.items() if count > 1)
        if duplicates:
            message = f"entity '{self.name}' maps several columns to {', '.join(duplicates)}"
            if context.strict:
                raise DuplicateColumnError(message, duplicates)
            logger.warning(message)

    def _require_built(self) -> BackendContext:
        if self._context is None:
            raise NotBuiltError(f"entity '{self.name}' has not been built yet; call build() first")
        return self._context

    def column_mapping(self, column: ColumnMetadata, embedded: Any = _ANY_OWNER) -> ColumnMapping:
        """Find the mapping of a column.

        Pass ``embedded`` (None for entity-level columns) when the same
        descriptor is declared in more than one place.
        """
        self._require_built()
        matches = [
            mapping
            for mapping in self.column_mappings
            if mapping.column is column and (embedded is _ANY_OWNER or mapping.embedded is embedded)
        ]
        if not matches:
            raise InvalidArgError(
                f"column '{column.property_name}' does not belong to entity '{self.name}'"
            )
        if len(matches) > 1:
            raise InvalidArgError(
                f"column '{column.property_name}' is declared {len(matches)} times on entity "
                f"'{self.name}'; pass embedded= to pick one"
            )
        return matches[0]

    def column_database_name(self, column: ColumnMetadata, embedded: Any = _ANY_OWNER) -> str:
        """Database column name with the owning embed's prefix applied."""
        return self.column_mapping(column, embedded).database_name

    def column_embedded(self, column: ColumnMetadata) -> Optional[EmbeddedMetadata]:
        """The embed a column is declared on, or None for entity columns."""
        return self.column_mapping(column).embedded


    def find_embedded(self, path: str) -> Optional[EmbeddedMetadata]:
        """Look up an embed by its dotted property path, e.g. ``"data.counters"``."""
        candidates = self.embeddeds
        found: Optional[EmbeddedMetadata] = None
        for name in path.split("."):
            found = next((item for item in candidates if item.property_name == name), None)
            if found is None:
                return None
            candidates = found.embeddeds
        return found

    def get_embedded_value(self, entity: Any, embedded: EmbeddedMetadata) -> Any:
        """Read an embed's value from an entity instance, or None if a level is missing."""
        value = entity
        for name in embedded.parent_property_names:
            value = getattr(value, name, None)
            if value is None:
                return None
        return value

    def ensure_embedded_value(self, entity: Any, embedded: EmbeddedMetadata) -> Any:
        """Read an embed's value, creating blank instances for missing levels.

        Array embeds are never filled implicitly: a missing array level gets
        an empty list, and the walk cannot descend past an array level that
        is not the requested embed itself.
        """
        value = entity
        tree = embedded.embedded_metadata_tree
        for depth, node in enumerate(tree):
            current = getattr(value, node.property_name, None)
            if node.is_array:
                if current is None:
                    current = []
                    setattr(value, node.property_name, current)
                if depth < len(tree) - 1:
                    return None
            elif current is None:
                current = node.create()
                setattr(value, node.property_name, current)
            value = current
        return value
