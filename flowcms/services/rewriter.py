"""Template rewriter: replace literal page content with binding placeholders.

Binding syntax (Vue-style):

* text fields      ``{{ content.<name> }}`` as the element text
* image fields     ``:src="content.<name>"`` on the ``<img>``
* rich-text fields ``v-html="content.<name>"`` on the emptied element
* link fields      ``:href="content.<name>"``
* collections      ``v-for="(item, index) in content.<name>"`` and
  ``:key="index"`` on the first container; item fields bind to
  ``item.<name>``.  The other container instances are removed, the list is
  materialised at render time.

Internal links become canonical routes and local assets move under the public
asset prefix.  A tree that already carries bindings is returned unchanged, so
rewriting is idempotent.
"""

import copy
import logging
import re
from typing import List, Optional, Tuple, Union

from bs4 import BeautifulSoup, Tag

from flowcms.errors import UnknownFieldReference
from flowcms.models.issue import Issue
from flowcms.models.manifest import CollectionFieldMapping, FieldType, PageSchema, field_selector
from flowcms.models.page import ParsedPage
from flowcms.models.template import PortableTemplate
from flowcms.services.normalizer import is_external_link, normalize_asset_path, normalize_route
from flowcms.services.selectors import safe_select_one, select_members

logger = logging.getLogger(__name__)

_BINDING_ATTRS = ("v-for", "v-html", ":src", ":href", ":key")
_BINDING_TEXT_RE = re.compile(r"\{\{\s*(?:content|item)\.")

# Responsive-image hints that point into the original export layout
_RESPONSIVE_ATTRS = ("srcset", "sizes")

_TEXT_TYPES = {FieldType.PLAIN, FieldType.EMAIL, FieldType.PHONE}


def is_bound(root: Tag) -> bool:
    """Return True when *root* already carries binding placeholders."""
    for tag in root.find_all(True):
        if any(attr in tag.attrs for attr in _BINDING_ATTRS):
            return True
    return root.find(string=_BINDING_TEXT_RE) is not None


def collection_field_type(name: str, mapping: Union[CollectionFieldMapping, str]) -> FieldType:
    """Return the type of a collection item field.

    Declared types win; otherwise the extracted attribute and then the field
    name decide.
    """
    if isinstance(mapping, CollectionFieldMapping):
        if mapping.type is not None:
            return mapping.type
        if mapping.attribute == "src":
            return FieldType.IMAGE
        if mapping.attribute == "href":
            return FieldType.LINK
    if "image" in name:
        return FieldType.IMAGE
    if name in ("link", "url"):
        return FieldType.LINK
    return FieldType.PLAIN


def _drop_attrs(tag: Tag, *attrs: str) -> None:
    for attr in attrs:
        if attr in tag.attrs:
            del tag[attr]


def _bind(element: Tag, expression: str, field_type: FieldType) -> None:
    if field_type == FieldType.IMAGE:
        img = element if element.name == "img" else element.find("img")
        if img is None:
            return
        _drop_attrs(img, "src", *_RESPONSIVE_ATTRS)
        img[":src"] = expression
    elif field_type in (FieldType.RICH, FieldType.HTML):
        element.clear()
        element["v-html"] = expression
    elif field_type == FieldType.LINK:
        link = element if element.name == "a" else (element.find("a") or element)
        _drop_attrs(link, "href")
        link[":href"] = expression
    else:
        element.string = "{{ " + expression + " }}"


def _normalize_references(root: Tag, asset_prefix: Optional[str]) -> None:
    for link in root.find_all("a", href=True):
        href = str(link["href"])
        if href.strip() and not is_external_link(href):
            link["href"] = normalize_route(href)

    for img in root.find_all("img"):
        src = img.get("src")
        if src:
            img["src"] = normalize_asset_path(str(src), asset_prefix)
        _drop_attrs(img, *_RESPONSIVE_ATTRS)


def _serialize(tree: BeautifulSoup) -> str:
    root = tree.body if tree.body is not None else tree
    return root.decode_contents().strip()


def rewrite_with_issues(
    page: ParsedPage,
    schema: PageSchema,
    asset_prefix: Optional[str] = None,
) -> Tuple[PortableTemplate, List[Issue]]:
    """Rewrite *page* against *schema*, reporting schema entries not found.

    The parsed tree of *page* is copied, never modified.
    """
    issues: List[Issue] = []
    tree = copy.copy(page.tree)
    root = tree.body if tree.body is not None else tree

    if is_bound(root):
        logger.info("Rewriter [%s]: already bound, leaving as is", page.page_id)
        return PortableTemplate(page_id=page.page_id, markup=_serialize(tree)), issues

    def missing(name: str, detail: str) -> None:
        logger.warning("Rewriter [%s]: %s", page.page_id, detail)
        issues.append(
            Issue(page_id=page.page_id, kind=UnknownFieldReference.__name__, detail=detail, name=name)
        )

    # Resolve everything first: removing collection repeats shifts the
    # positions structural selectors were computed against.
    collection_plans = []
    for name, collection in schema.collections.items():
        items = select_members(tree, collection.selector)
        if not items:
            missing(name, f"collection {name} ({collection.selector}) not found")
            continue
        first = items[0]
        targets = []
        for field_name, mapping in collection.fields.items():
            element = safe_select_one(first, field_selector(mapping))
            if element is None:
                missing(field_name, f"item field {name}.{field_name} not found")
                continue
            targets.append((field_name, element, collection_field_type(field_name, mapping)))
        collection_plans.append((name, first, items[1:], targets))

    field_plans = []
    for name, field in schema.fields.items():
        element = safe_select_one(tree, field.selector)
        if element is None:
            missing(name, f"field {name} ({field.selector}) not found")
            continue
        field_plans.append((name, element, field.type))

    for name, first, repeats, targets in collection_plans:
        first["v-for"] = f"(item, index) in content.{name}"
        first[":key"] = "index"
        for field_name, element, field_type in targets:
            _bind(element, f"item.{field_name}", field_type)
        for repeat in repeats:
            if not repeat.decomposed:
                repeat.decompose()

    for name, element, field_type in field_plans:
        if element.decomposed:
            missing(name, f"field {name} sits inside a removed collection repeat")
            continue
        _bind(element, f"content.{name}", field_type)

    _normalize_references(root, asset_prefix)

    logger.info(
        "Rewriter [%s]: bound %d fields, %d collections",
        page.page_id,
        len(field_plans),
        len(collection_plans),
    )
    return PortableTemplate(page_id=page.page_id, markup=_serialize(tree)), issues


def rewrite(page: ParsedPage, schema: PageSchema, asset_prefix: Optional[str] = None) -> PortableTemplate:
    """Return the portable template of *page* with bindings for *schema*."""
    template, _issues = rewrite_with_issues(page, schema, asset_prefix)
    return template
