"""Selector construction and verification over a parsed tree.

Two selector shapes are produced:

* a class selector (``.story-card``) when that class picks out the element
  as the first match, and
* a structural path (``body > div:nth-of-type(2) > h2:nth-of-type(1)``)
  otherwise.  Paths are relative (``:scope > ...``) inside collection items.

Every selector is checked with :func:`resolves_to` before it is emitted.
"""

import re
from typing import Dict, List, NamedTuple, Optional, Set

from bs4 import Tag
from soupsieve import SelectorSyntaxError

from flowcms.services.naming import normalize_identifier

# Webflow utility/combo class prefixes that never carry meaning
_UTILITY_PREFIXES = ("w-", "c-")

# Tokens that can be written as a bare CSS class selector without escaping
_SAFE_CLASS_RE = re.compile(r"^-?[A-Za-z_][A-Za-z0-9_-]*$")


class ClassInfo(NamedTuple):
    token: str
    """Class token as written in the markup, used for selectors."""
    name: str
    """Token normalised into an identifier."""


def primary_class(tag: Optional[Tag]) -> Optional[ClassInfo]:
    """Return the first meaningful class token of *tag*, or None."""
    if tag is None or not isinstance(tag, Tag):
        return None
    for token in tag.get("class") or []:
        if not token or token.startswith(_UTILITY_PREFIXES):
            continue
        name = normalize_identifier(token)
        if name:
            return ClassInfo(token=token, name=name)
    return None


def class_selector(token: str) -> Optional[str]:
    """Return ``.token`` when *token* is usable as-is in a selector."""
    if _SAFE_CLASS_RE.match(token):
        return "." + token
    return None


def _nth_of_type(tag: Tag) -> int:
    return len(tag.find_previous_siblings(tag.name)) + 1


def _step(tag: Tag) -> str:
    return f"{tag.name}:nth-of-type({_nth_of_type(tag)})"


def structural_path(tag: Tag, root: Optional[Tag] = None) -> str:
    """Return a positional selector for *tag*.

    Without *root* the path is absolute from ``body``; with *root* it is
    relative to that ancestor, anchored with ``:scope``.
    """
    steps: List[str] = []
    current = tag
    while current is not None and current is not root and current.name not in ("body", "[document]"):
        steps.append(_step(current))
        current = current.parent
    steps.reverse()
    head = ":scope" if root is not None else "body"
    return " > ".join([head] + steps)


def resolves_to(scope: Tag, selector: str, tag: Tag) -> bool:
    """Return True when *selector*'s first match inside *scope* is *tag*."""
    try:
        found = scope.select_one(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError):
        return False
    return found is tag


def safe_select(scope: Tag, selector: str) -> List[Tag]:
    """``scope.select`` that treats an invalid selector as matching nothing."""
    try:
        return scope.select(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError):
        return []


def safe_select_one(scope: Tag, selector: str) -> Optional[Tag]:
    try:
        return scope.select_one(selector)
    except (SelectorSyntaxError, ValueError, NotImplementedError):
        return None


def collection_members(matches: List[Tag]) -> List[Tag]:
    """Return the repetitions among *matches*, in document order.

    Only elements with the tag of the first match count, and none nested
    inside another repetition.
    """
    if not matches:
        return []
    first = matches[0]
    same_tag = [tag for tag in matches if tag.name == first.name]
    member_ids = {id(tag) for tag in same_tag}
    return [
        tag
        for tag in same_tag
        if tag.find_parent(lambda parent: id(parent) in member_ids) is None
    ]


def select_members(scope: Tag, selector: str) -> List[Tag]:
    """Resolve a collection container selector to its repetitions."""
    return collection_members(safe_select(scope, selector))


def selector_for(tag: Tag, scope: Tag, relative: bool = False) -> Optional[str]:
    """Build a verified selector addressing *tag* from *scope*.

    The element's own class selector is preferred; a structural path is the
    fallback.  Returns None when neither resolves back to *tag*.
    """
    info = primary_class(tag)
    if info is not None:
        candidate = class_selector(info.token)
        if candidate and resolves_to(scope, candidate, tag):
            return candidate

    path = structural_path(tag, scope if relative else None)
    if resolves_to(scope, path, tag):
        return path
    return None


class NodeArena:
    """Document-order index of every element in a tree.

    Detection marks elements as owned by their arena index instead of
    flagging the tree, so inference leaves the tree untouched.
    """

    def __init__(self, root: Tag):
        self.nodes: List[Tag] = [tag for tag in root.find_all(True)]
        self._positions: Dict[int, int] = {id(tag): i for i, tag in enumerate(self.nodes)}
        self.owned: Set[int] = set()

    def index_of(self, tag: Tag) -> int:
        return self._positions[id(tag)]

    def is_owned(self, tag: Tag) -> bool:
        position = self._positions.get(id(tag))
        return position is not None and position in self.owned

    def claim(self, tag: Tag) -> None:
        """Own *tag* and all of its descendants."""
        self.owned.add(self.index_of(tag))
        for child in tag.find_all(True):
            self.owned.add(self.index_of(child))
