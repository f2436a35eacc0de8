"""Embedded-object mapping metadata for entity storage layers."""

from . import metadata
from .backend import DOCUMENT, RELATIONAL, BackendContext
from .errors import (
    DuplicateColumnError,
    DuplicatePropertyError,
    ErrorCode,
    InstantiationError,
    InvalidArgError,
    NestmapError,
    NotBuiltError,
    UnsupportedFeatureError,
)
from .metadata import (
    ColumnMetadata,
    EmbeddedMetadata,
    EntityMetadata,
    RelationCountMetadata,
    RelationIdMetadata,
    RelationMetadata,
    build_entity_metadata,
)
from .naming import DefaultNamingStrategy, NamingStrategy

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "metadata",
    "BackendContext",
    "RELATIONAL",
    "DOCUMENT",
    "NamingStrategy",
    "DefaultNamingStrategy",
    "ColumnMetadata",
    "RelationMetadata",
    "RelationIdMetadata",
    "RelationCountMetadata",
    "EmbeddedMetadata",
    "EntityMetadata",
    "build_entity_metadata",
    # Error types
    "ErrorCode",
    "NestmapError",
    "NotBuiltError",
    "InvalidArgError",
    "InstantiationError",
    "DuplicateColumnError",
    "DuplicatePropertyError",
    "UnsupportedFeatureError",
]
