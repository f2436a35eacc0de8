"""Entity and embedded metadata."""

from .args import EmbeddedDeclaration, EmbeddedMetadataArgs, EntityDeclaration, normalize_entity_declaration
from .builder import build_entity_metadata, build_entity_metadatas
from .columns import ColumnMetadata, RelationCountMetadata, RelationIdMetadata, RelationMetadata
from .embedded import EmbeddedMetadata, ResolvedEmbedded
from .entity import ColumnMapping, EntityMetadata

__all__ = [
    "ColumnMetadata",
    "RelationMetadata",
    "RelationIdMetadata",
    "RelationCountMetadata",
    "EmbeddedMetadataArgs",
    "EmbeddedDeclaration",
    "EntityDeclaration",
    "EmbeddedMetadata",
    "ResolvedEmbedded",
    "EntityMetadata",
    "ColumnMapping",
    "build_entity_metadata",
    "build_entity_metadatas",
    "normalize_entity_declaration",
]
