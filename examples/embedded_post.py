"""Print the column layout of an entity with nested embeds on two backends."""

from __future__ import annotations

import logging

from nestmap import DOCUMENT, RELATIONAL, ColumnMetadata, build_entity_metadata


class Post:
    pass


class PostData:
    pass


class Counters:
    pass


DECLARATION = {
    "target": Post,
    "columns": [ColumnMetadata("id", type="int", primary=True)],
    "embeddeds": [
        {
            "property_name": "data",
            "type": PostData,
            "columns": [ColumnMetadata("title")],
            "embeddeds": [
                {
                    "property_name": "counters",
                    "type": Counters,
                    "prefix": "cnt",
                    "columns": [ColumnMetadata("likes", type="int")],
                }
            ],
        }
    ],
}


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    for context in (RELATIONAL, DOCUMENT):
        post = build_entity_metadata(DECLARATION, context)
        print(f"{context.name}:")
        for mapping in post.column_mappings:
            path = ".".join(mapping.storage_path)
            print(f"  {mapping.column.property_name:<16} -> {path}")


if __name__ == "__main__":
    main()
