"""Metadata of embedded properties and their nested embeds."""

from __future__ import annotations

import logging
import weakref
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from ..backend import BackendContext
from ..errors import InstantiationError, InvalidArgError, NotBuiltError
from .args import EmbeddedMetadataArgs, normalize_prefix
from .columns import ColumnMetadata, RelationCountMetadata, RelationIdMetadata, RelationMetadata

if TYPE_CHECKING:
    from .entity import EntityMetadata

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedEmbedded:
    """State derived by EmbeddedMetadata.build() for one backend context."""

    prefix: str
    parent_property_names: Tuple[str, ...]
    embedded_metadata_tree: Tuple["EmbeddedMetadata", ...]
    columns_from_tree: Tuple[ColumnMetadata, ...]
    relations_from_tree: Tuple[RelationMetadata, ...]
    relation_ids_from_tree: Tuple[RelationIdMetadata, ...]
    relation_counts_from_tree: Tuple[RelationCountMetadata, ...]


class EmbeddedMetadata:
    """Contains all information about an entity's embedded property.

    Example: in ``post.data.information.counters.likes`` the properties
    ``data``, ``information`` and ``counters`` are embeds. ``counters`` has
    ``information`` as its parent and ``data`` as its outermost ancestor;
    ``data`` sits directly on the entity and has no parent.

    Own declarations (``columns``, ``relations``, ``relation_ids``,
    ``relation_counts``, ``embeddeds``) are plain lists filled by the
    assembler. Everything else is derived by :meth:`build` and raises
    NotBuiltError until then.
    """

    def __init__(self, entity_metadata: "EntityMetadata", args: EmbeddedMetadataArgs) -> None:
        property_name = args.get("property_name")
        if not isinstance(property_name, str) or not property_name.strip():
            raise InvalidArgError("embedded property name must be a non-empty string")

        self.entity_metadata = entity_metadata
        self.type: Optional[Callable[[], Any]] = args.get("type")
        self._property_name = property_name
        self.custom_prefix: Optional[str] = normalize_prefix(args.get("prefix"))
        self.is_array: bool = bool(args.get("is_array", False))

        self.columns: List[ColumnMetadata] = []
        self.relations: List[RelationMetadata] = []
        self.relation_ids: List[RelationIdMetadata] = []
        self.relation_counts: List[RelationCountMetadata] = []
        self.embeddeds: List[EmbeddedMetadata] = []

        self._parent_ref: Optional["weakref.ReferenceType[EmbeddedMetadata]"] = None
        self._resolved: Optional[ResolvedEmbedded] = None

    def __repr__(self) -> str:
        return f"EmbeddedMetadata(property_name={self._property_name!r}, children={len(self.embeddeds)})"

    # ------------------------------------------------------------------
    # Raw declaration

    @property
    def property_name(self) -> str:
        return self._property_name

    @property
    def parent_embedded_metadata(self) -> Optional["EmbeddedMetadata"]:
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    def add_embedded(self, embedded: "EmbeddedMetadata") -> "EmbeddedMetadata":
        """Attach a nested embed and make this node its parent."""
        node: Optional[EmbeddedMetadata] = self
        while node is not None:
            if node is embedded:
                raise InvalidArgError(
                    f"embedded '{embedded.property_name}' cannot be nested inside itself"
                )
            node = node.parent_embedded_metadata
        current_parent = embedded.parent_embedded_metadata
        if current_parent is not None and current_parent is not self:
            raise InvalidArgError(
                f"embedded '{embedded.property_name}' is already attached to '{current_parent.property_name}'"
            )
        embedded._parent_ref = weakref.ref(self)
        if embedded not in self.embeddeds:
            self.embeddeds.append(embedded)
        return self

    def create(self) -> Any:
        """Creates a new blank instance of the embedded type."""
        factory = self.type
        if factory is None or not callable(factory):
            raise InstantiationError(
                f"embedded '{self._property_name}' has no callable type to instantiate"
            )
        return factory()

    # ------------------------------------------------------------------
    # Build

    def build(self, context: BackendContext) -> "EmbeddedMetadata":
        """Resolve prefix, paths and aggregates for this node and its subtree.

        Children are built first. Calling build again recomputes the same
        state from the same inputs. A rebuild must not run while other
        threads read this tree; nothing here synchronizes it.
        """
        for embedded in self.embeddeds:
            embedded.build(context)

        tree = self._build_tree()
        self._resolved = ResolvedEmbedded(
            prefix=self._build_prefix(context),
            parent_property_names=tuple(node.property_name for node in tree),
            embedded_metadata_tree=tree,
            columns_from_tree=self._fold("columns_from_tree", self.columns),
            relations_from_tree=self._fold("relations_from_tree", self.relations),
            relation_ids_from_tree=self._fold("relation_ids_from_tree", self.relation_ids),
            relation_counts_from_tree=self._fold("relation_counts_from_tree", self.relation_counts),
        )
        logger.debug(
            "built embedded %s with prefix %r (%d columns)",
            ".".join(self._resolved.parent_property_names),
            self._resolved.prefix,
            len(self._resolved.columns_from_tree),
        )
        return self

    def _build_prefix(self, context: BackendContext) -> str:
        if context.nested_embeds:
            return self._property_name

        parent = self.parent_embedded_metadata
        parent_prefix = parent._build_prefix(context) if parent is not None else None
        if self.custom_prefix is None:
            segment = self._property_name
        else:
            segment = self.custom_prefix
        return context.naming_strategy.embedded_prefix(parent_prefix, segment)

    def _build_tree(self) -> Tuple["EmbeddedMetadata", ...]:
        parent = self.parent_embedded_metadata
        if parent is None:
            return (self,)
        return parent._build_tree() + (self,)

    def _fold(self, attribute: str, own: List[Any]) -> Tuple[Any, ...]:
        items = tuple(own)
        for embedded in self.embeddeds:
            items += getattr(embedded._require_resolved(), attribute)
        return items

    # ------------------------------------------------------------------
    # Derived state

    @property
    def is_built(self) -> bool:
        return self._resolved is not None

    @property
    def resolved(self) -> ResolvedEmbedded:
        return self._require_resolved()

    def _require_resolved(self) -> ResolvedEmbedded:
        if self._resolved is None:
            raise NotBuiltError(
                f"embedded '{self._property_name}' has not been built yet; call build() first"
            )
        return self._resolved

    @property
    def prefix(self) -> str:
        """Column prefix of this embed, including the prefixes of its parents."""
        return self._require_resolved().prefix

    @property
    def parent_property_names(self) -> List[str]:
        """Property names from the outermost embed down to this one.

        For ``post.data.information.counters`` this is
        ``["data", "information", "counters"]``.
        """
        return list(self._require_resolved().parent_property_names)

    @property
    def embedded_metadata_tree(self) -> List["EmbeddedMetadata"]:
        """Embed metadatas from the outermost embed down to this one."""
        return list(self._require_resolved().embedded_metadata_tree)

    @property
    def columns_from_tree(self) -> List[ColumnMetadata]:
        return list(self._require_resolved().columns_from_tree)

    @property
    def relations_from_tree(self) -> List[RelationMetadata]:
        return list(self._require_resolved().relations_from_tree)

    @property
    def relation_ids_from_tree(self) -> List[RelationIdMetadata]:
        return list(self._require_resolved().relation_ids_from_tree)

    @property
    def relation_counts_from_tree(self) -> List[RelationCountMetadata]:
        return list(self._require_resolved().relation_counts_from_tree)
