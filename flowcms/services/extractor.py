"""Content extraction: pull literal values out of the original page tree.

Values are keyed by manifest identifiers so the seed data lines up with the
backend schemas and template bindings field for field.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from flowcms.errors import UnknownFieldReference
from flowcms.models.content import ExtractedContent, PageContent
from flowcms.models.issue import Issue
from flowcms.models.manifest import CollectionMapping, FieldType, PageSchema, field_selector
from flowcms.models.page import ParsedPage
from flowcms.services.normalizer import normalize_image_path
from flowcms.services.rewriter import collection_field_type
from flowcms.services.selectors import safe_select_one, select_members

logger = logging.getLogger(__name__)


def _image_src(element: Tag) -> str:
    src = element.get("src")
    if not src:
        img = element.find("img")
        src = img.get("src") if img is not None else ""
    return normalize_image_path(str(src or ""))


def _link_href(element: Tag) -> str:
    href = element.get("href")
    if not href:
        link = element.find("a", href=True)
        href = link["href"] if link is not None else ""
    return str(href).strip()


def _value(element: Tag, field_type: FieldType) -> str:
    if field_type == FieldType.IMAGE:
        return _image_src(element)
    if field_type == FieldType.LINK:
        return _link_href(element)
    if field_type in (FieldType.RICH, FieldType.HTML):
        return element.decode_contents().strip()
    return element.get_text().strip()


def _collection_items(
    tree: BeautifulSoup,
    name: str,
    collection: CollectionMapping,
    missing: Callable[[str, str], None],
) -> List[Dict[str, str]]:
    items: List[Dict[str, str]] = []
    containers = select_members(tree, collection.selector)
    if not containers:
        missing(name, f"collection {name} ({collection.selector}) not found")
        return items

    for container in containers:
        record: Dict[str, str] = {}
        for field_name, mapping in collection.fields.items():
            element = safe_select_one(container, field_selector(mapping))
            if element is None:
                continue
            value = _value(element, collection_field_type(field_name, mapping))
            if value:
                record[field_name] = value
        # Repetitions that lost every analogous element carry no content
        if record:
            items.append(record)
        if collection.limit is not None and len(items) >= collection.limit:
            break
    return items


def extract_with_issues(page: ParsedPage, schema: PageSchema) -> Tuple[PageContent, List[Issue]]:
    """Extract the values of every manifest entry from the unmodified tree."""
    issues: List[Issue] = []
    tree = page.tree

    def missing(name: str, detail: str) -> None:
        logger.warning("Extractor [%s]: %s", page.page_id, detail)
        issues.append(
            Issue(page_id=page.page_id, kind=UnknownFieldReference.__name__, detail=detail, name=name)
        )

    content = PageContent()

    for name, field in schema.fields.items():
        element = safe_select_one(tree, field.selector)
        if element is None:
            missing(name, f"field {name} ({field.selector}) not found")
            continue
        content.fields[name] = _value(element, field.type)

    for name, collection in schema.collections.items():
        items = _collection_items(tree, name, collection, missing)
        if items:
            content.collections[name] = items

    logger.info(
        "Extractor [%s]: %d field values, %d collection items",
        page.page_id,
        len(content.fields),
        sum(len(items) for items in content.collections.values()),
    )
    return content, issues


def extract(page: ParsedPage, schema: PageSchema) -> PageContent:
    """Return the literal content of *page* for the entries of *schema*."""
    content, _issues = extract_with_issues(page, schema)
    return content


def to_seed(extracted: ExtractedContent) -> Dict[str, Any]:
    """Format extracted content as a seed document.

    Page fields are stored under the page id, collection items under the
    collection name.  Items of a collection shared by several pages are
    concatenated in page order.  A collection named like a page is left
    out, the page keeps the key, as in :func:`~flowcms.services.compiler.compile_schemas`.
    """
    seed: Dict[str, Any] = {}
    for page_id, content in extracted.items():
        if content.fields:
            seed[page_id] = dict(content.fields)

    for content in extracted.values():
        for name, items in content.collections.items():
            existing: Optional[Any] = seed.get(name)
            if isinstance(existing, dict):
                logger.warning("Extractor: collection %s skipped, page %s has that name", name, name)
            elif isinstance(existing, list):
                existing.extend(dict(item) for item in items)
            else:
                seed[name] = [dict(item) for item in items]
    return seed
