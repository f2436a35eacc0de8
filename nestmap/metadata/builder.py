"""Assembles entity metadata from raw declarations."""

from __future__ import annotations

import logging
from typing import List, Sequence

from ..backend import BackendContext
from ..errors import DuplicatePropertyError
from .args import EntityDeclaration, NormalizedEmbedded, normalize_entity_declaration
from .embedded import EmbeddedMetadata
from .entity import EntityMetadata

logger = logging.getLogger(__name__)


def _check_unique(owner: str, declarations: Sequence[NormalizedEmbedded], taken: Sequence[str] = ()) -> None:
    seen = set(taken)
    for declaration in declarations:
        name = declaration["property_name"]
        if name in seen:
            raise DuplicatePropertyError(f"{owner} declares property '{name}' more than once")
        seen.add(name)


def _property_names(declaration: NormalizedEmbedded) -> List[str]:
    names = [column.property_name for column in declaration["columns"]]
    names.extend(relation.property_name for relation in declaration["relations"])
    names.extend(item.property_name for item in declaration["relation_ids"])
    names.extend(item.property_name for item in declaration["relation_counts"])
    return names


def _create_embedded(entity: EntityMetadata, declaration: NormalizedEmbedded) -> EmbeddedMetadata:
    embedded = EmbeddedMetadata(
        entity,
        {
            "property_name": declaration["property_name"],
            "type": declaration["type"],
            "prefix": declaration["prefix"],
            "is_array": declaration["is_array"],
        },
    )
    embedded.columns.extend(declaration["columns"])
    embedded.relations.extend(declaration["relations"])
    embedded.relation_ids.extend(declaration["relation_ids"])
    embedded.relation_counts.extend(declaration["relation_counts"])

    children = declaration["embeddeds"]
    _check_unique(f"embedded '{declaration['property_name']}'", children, _property_names(declaration))
    for child in children:
        embedded.add_embedded(_create_embedded(entity, child))
    return embedded


def build_entity_metadata(declaration: EntityDeclaration, context: BackendContext) -> EntityMetadata:
    """Create the metadata tree of one entity and build it for ``context``."""
    normalized = normalize_entity_declaration(declaration)
    entity = EntityMetadata(normalized["target"], normalized["name"])
    entity.own_columns.extend(normalized["columns"])
    entity.own_relations.extend(normalized["relations"])
    entity.own_relation_ids.extend(normalized["relation_ids"])
    entity.own_relation_counts.extend(normalized["relation_counts"])

    own_names = [column.property_name for column in entity.own_columns]
    own_names.extend(relation.property_name for relation in entity.own_relations)
    _check_unique(f"entity '{entity.name}'", normalized["embeddeds"], own_names)
    for item in normalized["embeddeds"]:
        entity.add_embedded(_create_embedded(entity, item))

    logger.debug("assembled entity %s from declaration", entity.name)
    return entity.build(context)


def build_entity_metadatas(
    declarations: Sequence[EntityDeclaration], context: BackendContext
) -> List[EntityMetadata]:
    return [build_entity_metadata(declaration, context) for declaration in declarations]
