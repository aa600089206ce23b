"""Compile a content manifest into backend content-type schemas.

Pages with fields become single types keyed by page id; collections become
collection types keyed by their manifest identifier.  Attribute names are
the manifest identifiers, unchanged.
"""

import logging
from typing import Dict, Mapping

from flowcms.models.backend import BackendAttribute, BackendInfo, BackendSchema
from flowcms.models.manifest import (
    CollectionFieldMapping,
    CollectionMapping,
    ContentManifest,
    FieldMapping,
    FieldType,
)
from flowcms.services.naming import display_name, kebab_case, pluralize, singularize

logger = logging.getLogger(__name__)

_TYPE_MAP: Dict[FieldType, str] = {
    FieldType.PLAIN: "string",
    FieldType.RICH: "richtext",
    FieldType.HTML: "richtext",
    FieldType.IMAGE: "media",
    FieldType.LINK: "string",
    FieldType.EMAIL: "email",
    FieldType.PHONE: "string",
}

# Collection fields without a declared type are typed from their name
_RICH_FIELD_NAMES = {"description", "content"}


def backend_type(field_type: FieldType) -> str:
    return _TYPE_MAP.get(field_type, "string")


def _collection_field_type(name: str, mapping) -> str:
    if isinstance(mapping, CollectionFieldMapping) and mapping.type is not None:
        return backend_type(mapping.type)
    if "image" in name:
        return "media"
    if name in _RICH_FIELD_NAMES:
        return "richtext"
    return "string"


def page_schema(page_id: str, fields: Mapping[str, FieldMapping]) -> BackendSchema:
    attributes: Dict[str, BackendAttribute] = {}
    for name, field in fields.items():
        attributes[name] = BackendAttribute(
            type=backend_type(field.type),
            required=bool(field.required),
            default=field.default or None,
        )

    singular = kebab_case(page_id)
    return BackendSchema(
        kind="singleType",
        collectionName=singular,
        info=BackendInfo(
            singularName=singular,
            pluralName=pluralize(singular),
            displayName=display_name(page_id),
        ),
        attributes=attributes,
    )


def collection_schema(name: str, collection: CollectionMapping) -> BackendSchema:
    attributes = {
        field_name: BackendAttribute(type=_collection_field_type(field_name, mapping))
        for field_name, mapping in collection.fields.items()
    }
    plural = kebab_case(name)
    return BackendSchema(
        kind="collectionType",
        collectionName=name,
        info=BackendInfo(
            singularName=singularize(plural),
            pluralName=plural,
            displayName=display_name(name),
        ),
        attributes=attributes,
    )


def compile_schemas(manifest: ContentManifest) -> Dict[str, BackendSchema]:
    """Project *manifest* into backend schemas, keyed by entry name.

    Entries without attributes are left out.  A collection found on more
    than one page is compiled once with the union of its fields; the type
    seen first wins.  A collection named like a page is left out, the page
    keeps the key.
    """
    schemas: Dict[str, BackendSchema] = {}

    for page_id, page in manifest.pages.items():
        if page.fields:
            schemas[page_id] = page_schema(page_id, page.fields)

    for page in manifest.pages.values():
        for name, collection in page.collections.items():
            compiled = collection_schema(name, collection)
            if not compiled.attributes:
                continue
            existing = schemas.get(name)
            if existing is not None and existing.kind == "singleType":
                # Page schemas own their key; see manifest.separate_namespaces
                logger.warning("Compiler: collection %s skipped, page %s has that name", name, name)
                continue
            if existing is not None:
                for field_name, attribute in compiled.attributes.items():
                    existing.attributes.setdefault(field_name, attribute)
                continue
            schemas[name] = compiled

    logger.info("Compiler: %d backend schemas", len(schemas))
    return schemas
