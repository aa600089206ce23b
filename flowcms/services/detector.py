"""Schema inference: classify page elements into editable fields and collections.

Detection runs in two passes over one parsed tree.

Pass 1 – collections
    Elements are grouped by their primary class when that class names a
    repeating unit (``card``, ``item``, ``post``, ``feature``).  A group of at
    least two members of the same tag becomes a collection whose item fields
    are read from the first member only (see
    :data:`~flowcms.services.rules.ITEM_FIELD_RULES`).  Every member and all of
    its descendants are then *owned* by the collection.

Pass 2 – fields
    The remaining, non-owned elements are run through
    :data:`~flowcms.services.rules.FIELD_RULES` (headings, paragraphs, content
    images, call-to-action buttons) in that order.

Ownership lives in a :class:`~flowcms.services.selectors.NodeArena`, so the
tree itself is never modified and detection is a pure function of its input.
Misclassification is not an error: when in doubt an element is registered
rather than hidden.
"""

import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence, Union

from bs4 import BeautifulSoup, Tag

from flowcms.errors import SchemaNameCollision, SelectorUnresolvable
from flowcms.models.issue import Issue
from flowcms.models.manifest import CollectionFieldMapping, CollectionMapping, FieldMapping
from flowcms.services.naming import collection_identifier
from flowcms.services.rules import (
    FIELD_RULES,
    ITEM_FIELD_RULES,
    FieldRule,
    ItemFieldRule,
    is_collection_name,
)
from flowcms.services.selectors import (
    NodeArena,
    class_selector,
    collection_members,
    primary_class,
    resolves_to,
    safe_select,
    select_members,
    selector_for,
)

logger = logging.getLogger(__name__)


class Detection(NamedTuple):
    fields: Dict[str, FieldMapping]
    collections: Dict[str, CollectionMapping]
    issues: List[Issue]


class _Detector:
    def __init__(
        self,
        soup: BeautifulSoup,
        page_id: str,
        field_rules: Sequence[FieldRule],
        item_rules: Sequence[ItemFieldRule],
    ):
        self.soup = soup
        self.root: Tag = soup.body if soup.body is not None else soup
        self.page_id = page_id
        self.field_rules = field_rules
        self.item_rules = item_rules
        self.arena = NodeArena(soup)
        self.fields: Dict[str, FieldMapping] = {}
        self.collections: Dict[str, CollectionMapping] = {}
        self.issues: List[Issue] = []

    # ── issue bookkeeping ─────────────────────────────────────────────────

    def _issue(self, error: type, detail: str, name: Optional[str] = None) -> None:
        logger.warning("Detector [%s]: %s", self.page_id, detail)
        self.issues.append(
            Issue(page_id=self.page_id, kind=error.__name__, detail=detail, name=name)
        )

    # ── pass 0: developer-ignored regions ─────────────────────────────────

    def ignore(self, selectors: Iterable[str]) -> None:
        for selector in selectors:
            for tag in safe_select(self.root, selector):
                self.arena.claim(tag)

    # ── pass 1: collections ───────────────────────────────────────────────

    def _group_candidates(self) -> "OrderedDict[str, List[Tag]]":
        groups: "OrderedDict[str, List[Tag]]" = OrderedDict()
        for tag in self.root.find_all(True):
            if self.arena.is_owned(tag):
                continue
            info = primary_class(tag)
            if info is not None and is_collection_name(info.name):
                groups.setdefault(info.name, []).append(tag)
        return groups

    def _item_fields(
        self, item: Tag, group_name: str
    ) -> Dict[str, Union[CollectionFieldMapping, str]]:
        fields: Dict[str, Union[CollectionFieldMapping, str]] = {}
        for rule in self.item_rules:
            element = next((tag for tag in safe_select(item, rule.selector) if rule.predicate(tag)), None)
            if element is None:
                continue
            selector = selector_for(element, item, relative=True)
            if selector is None:
                self._issue(
                    SelectorUnresolvable,
                    f"no selector resolves to the {rule.name} of {group_name}",
                    name=rule.name,
                )
                continue
            if rule.attribute or rule.type:
                fields[rule.name] = CollectionFieldMapping(
                    selector=selector, attribute=rule.attribute, type=rule.type
                )
            else:
                fields[rule.name] = selector
        return fields

    def detect_collections(self) -> None:
        for group_name, group in self._group_candidates().items():
            if self.arena.is_owned(group[0]):
                # Nested inside a collection that was already promoted
                continue
            candidates = collection_members([tag for tag in group if not self.arena.is_owned(tag)])
            if len(candidates) < 2:
                continue

            first = candidates[0]
            container = class_selector(primary_class(first).token)
            if container is None or not resolves_to(self.soup, container, first):
                self._issue(
                    SelectorUnresolvable,
                    f"container selector for {group_name} does not resolve to its first item",
                    name=group_name,
                )
                continue
            # The rewriter and extractor resolve the container selector the same way
            members = select_members(self.soup, container)

            item_fields = self._item_fields(first, group_name)
            if not item_fields:
                continue

            name = collection_identifier(group_name)
            if name in self.collections:
                self._issue(
                    SchemaNameCollision,
                    f"collection {name} detected twice; keeping the later one",
                    name=name,
                )
            self.collections[name] = CollectionMapping(selector=container, fields=item_fields)
            for member in members:
                self.arena.claim(member)
            logger.debug(
                "Detector [%s]: collection %s with %d items", self.page_id, name, len(members)
            )

    # ── pass 2: fields ────────────────────────────────────────────────────

    def _apply(self, rule: FieldRule) -> None:
        for ordinal, tag in enumerate(safe_select(self.root, rule.selector)):
            if self.arena.is_owned(tag) or not rule.predicate(tag):
                continue
            candidate = rule.action(tag, ordinal)
            if candidate is None or self.arena.is_owned(candidate.element):
                continue

            selector = selector_for(candidate.element, self.soup)
            if selector is None:
                self._issue(
                    SelectorUnresolvable,
                    f"no selector resolves to {rule.name} field {candidate.name}",
                    name=candidate.name,
                )
                continue

            if candidate.name in self.fields:
                self._issue(
                    SchemaNameCollision,
                    f"field {candidate.name} detected twice; keeping {selector}",
                    name=candidate.name,
                )
            self.fields[candidate.name] = FieldMapping(selector=selector, type=candidate.type)
            self.arena.claim(candidate.element)

    def detect_fields(self) -> None:
        for rule in self.field_rules:
            self._apply(rule)

    def result(self) -> Detection:
        return Detection(fields=self.fields, collections=self.collections, issues=self.issues)


def detect(
    tree: BeautifulSoup,
    page_id: str = "",
    ignore_selectors: Iterable[str] = (),
    field_rules: Sequence[FieldRule] = FIELD_RULES,
    item_rules: Sequence[ItemFieldRule] = ITEM_FIELD_RULES,
) -> Detection:
    """Infer the fields and collections of one parsed page.

    Args:
        tree: Parsed page tree.  It is only read, never modified.
        page_id: Used to label issues and log lines.
        ignore_selectors: Regions excluded from detection altogether.
        field_rules: Page-level rule chain, applied in order.
        item_rules: Collection item rule chain, applied in order.

    Returns:
        A :class:`Detection` whose dicts are ordered by document position.
    """
    detector = _Detector(tree, page_id, field_rules, item_rules)
    detector.ignore(ignore_selectors)
    detector.detect_collections()
    detector.detect_fields()
    logger.info(
        "Detector [%s]: %d fields, %d collections",
        page_id,
        len(detector.fields),
        len(detector.collections),
    )
    return detector.result()
