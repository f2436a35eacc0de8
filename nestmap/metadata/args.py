"""Declaration types and normalization helpers for entity metadata."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from typing_extensions import NotRequired, TypedDict

from .columns import ColumnMetadata, RelationCountMetadata, RelationIdMetadata, RelationMetadata


class EmbeddedMetadataArgs(TypedDict):
    """Raw arguments of a single embedded property."""

    property_name: str
    type: Callable[[], Any]
    prefix: NotRequired[Union[str, bool, None]]
    is_array: NotRequired[bool]


class EmbeddedDeclaration(EmbeddedMetadataArgs, total=False):
    columns: Sequence[ColumnMetadata]
    relations: Sequence[RelationMetadata]
    relation_ids: Sequence[RelationIdMetadata]
    relation_counts: Sequence[RelationCountMetadata]
    embeddeds: Sequence["EmbeddedDeclaration"]


class EntityDeclaration(TypedDict):
    target: Any
    name: NotRequired[str]
    columns: NotRequired[Sequence[ColumnMetadata]]
    relations: NotRequired[Sequence[RelationMetadata]]
    relation_ids: NotRequired[Sequence[RelationIdMetadata]]
    relation_counts: NotRequired[Sequence[RelationCountMetadata]]
    embeddeds: NotRequired[Sequence[EmbeddedDeclaration]]


class NormalizedEmbedded(TypedDict):
    property_name: str
    type: Callable[[], Any]
    prefix: Optional[str]
    is_array: bool
    columns: List[ColumnMetadata]
    relations: List[RelationMetadata]
    relation_ids: List[RelationIdMetadata]
    relation_counts: List[RelationCountMetadata]
    embeddeds: List["NormalizedEmbedded"]


class NormalizedEntity(TypedDict):
    target: Any
    name: str
    columns: List[ColumnMetadata]
    relations: List[RelationMetadata]
    relation_ids: List[RelationIdMetadata]
    relation_counts: List[RelationCountMetadata]
    embeddeds: List[NormalizedEmbedded]


_DESCRIPTOR_KINDS = (
    ("columns", ColumnMetadata),
    ("relations", RelationMetadata),
    ("relation_ids", RelationIdMetadata),
    ("relation_counts", RelationCountMetadata),
)


def normalize_prefix(prefix: Union[str, bool, None]) -> Optional[str]:
    """Map a declared prefix onto None (unset), "" (no segment) or a literal."""
    if prefix is None or isinstance(prefix, str):
        return prefix
    if prefix is False:
        return ""
    raise TypeError("embedded prefix must be a string, False or None")


def _normalize_descriptors(owner: str, definition: Mapping[str, Any]) -> Dict[str, List[Any]]:
    result: Dict[str, List[Any]] = {}
    for key, kind in _DESCRIPTOR_KINDS:
        raw = definition.get(key) or []
        if isinstance(raw, (str, bytes)) or not isinstance(raw, Sequence):
            raise TypeError(f"'{key}' of {owner} must be a sequence")
        for item in raw:
            if not isinstance(item, kind):
                raise TypeError(f"'{key}' of {owner} must only contain {kind.__name__} values")
        result[key] = list(raw)
    return result


def normalize_embedded_declaration(declaration: EmbeddedDeclaration, owner: str = "entity") -> NormalizedEmbedded:
    if not isinstance(declaration, Mapping):
        raise TypeError(f"embedded declarations of {owner} must be mappings")

    property_name = declaration.get("property_name")
    if not isinstance(property_name, str) or not property_name.strip():
        raise ValueError(f"embedded property names of {owner} must be non-empty strings")
    label = f"embedded '{property_name}'"
    if "type" not in declaration:
        raise TypeError(f"{label} must declare a type")

    is_array = declaration.get("is_array", False)
    if not isinstance(is_array, bool):
        raise TypeError(f"'is_array' of {label} must be a boolean")

    raw_children = declaration.get("embeddeds") or []
    if isinstance(raw_children, (str, bytes)) or not isinstance(raw_children, Sequence):
        raise TypeError(f"'embeddeds' of {label} must be a sequence")

    normalized: NormalizedEmbedded = {
        "property_name": property_name,
        "type": declaration["type"],
        "prefix": normalize_prefix(declaration.get("prefix")),
        "is_array": is_array,
        "embeddeds": [normalize_embedded_declaration(child, label) for child in raw_children],
        **_normalize_descriptors(label, declaration),  # type: ignore[typeddict-item]
    }
    return normalized


def normalize_entity_declaration(declaration: EntityDeclaration) -> NormalizedEntity:
    if not isinstance(declaration, Mapping):
        raise TypeError("entity declaration must be a mapping")
    if "target" not in declaration:
        raise TypeError("entity declaration must include 'target'")

    target = declaration["target"]
    name = declaration.get("name") or getattr(target, "__name__", None)
    if not isinstance(name, str) or not name.strip():
        raise ValueError("entity name must be a non-empty string")

    raw_embeddeds = declaration.get("embeddeds") or []
    if isinstance(raw_embeddeds, (str, bytes)) or not isinstance(raw_embeddeds, Sequence):
        raise TypeError(f"'embeddeds' of entity '{name}' must be a sequence")

    label = f"entity '{name}'"
    normalized: NormalizedEntity = {
        "target": target,
        "name": name,
        "embeddeds": [normalize_embedded_declaration(item, label) for item in raw_embeddeds],
        **_normalize_descriptors(label, declaration),  # type: ignore[typeddict-item]
    }
    return normalized
