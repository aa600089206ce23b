"""Heuristic classification rules used by :mod:`flowcms.services.detector`.

Each rule pairs a candidate selector and a predicate with an action.  The
detector runs the rules in order; a rule never looks at what another rule
decided, so every heuristic can be tested and replaced on its own.
"""

from typing import Callable, List, NamedTuple, Optional

from bs4 import NavigableString, Tag

from flowcms.models.manifest import FieldType
from flowcms.services.selectors import primary_class

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

# Class tokens that mark an element as one repetition of a content list
COLLECTION_TOKENS = ("card", "item", "post", "feature")

# ...unless the token names a part of an item rather than the item itself
COLLECTION_EXCLUDED_TOKENS = ("image", "inner")

# Short label-like nodes inside an item (tags, categories, ...)
LABEL_TOKENS = ("tag", "category", "label", "badge")

# Links styled as controls are not item content
CONTROL_CLASSES = {"c_button", "c_icon_button"}

# Ancestors whose class names a section a heading belongs to
HEADING_CONTEXT_TOKENS = ("header", "hero", "cta")

# How far up the tree a cc-* context modifier is looked for
CONTEXT_MODIFIER_DEPTH = 5
CONTEXT_MODIFIER_PREFIX = "cc-"

# Own or parent class fragments that mark an image as decoration
DECORATIVE_PATTERNS = (
    "nav",
    "logo",
    "icon",
    "arrow",
    "button",
    "quote",
    "pagination",
    "footer",
    "link",
)

# Containers whose images are never page content, at any depth
NON_CONTENT_CONTAINER_TAGS = {"nav", "footer", "button", "a"}
NON_CONTENT_CONTAINER_PATTERNS = ("nav", "logo", "footer", "button")

HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]
FORMATTING_TAGS = ["strong", "em", "b", "i", "a"]

MIN_PARAGRAPH_LENGTH = 20
MAX_LABEL_LENGTH = 40
MIN_BUTTON_TEXT_LENGTH = 2


# ---------------------------------------------------------------------------
# Class helpers
# ---------------------------------------------------------------------------

def class_string(tag: Optional[Tag]) -> str:
    if tag is None or not isinstance(tag, Tag):
        return ""
    return " ".join(tag.get("class") or []).lower()


def class_contains(tag: Optional[Tag], fragments) -> bool:
    classes = class_string(tag)
    return bool(classes) and any(fragment in classes for fragment in fragments)


def _class_names(tag: Tag) -> List[str]:
    return [token.lower().replace("-", "_") for token in tag.get("class") or []]


def is_collection_name(name: str) -> bool:
    return any(token in name for token in COLLECTION_TOKENS) and not any(
        token in name for token in COLLECTION_EXCLUDED_TOKENS
    )


def context_modifier(tag: Tag) -> Optional[str]:
    """Return the ``cc-*`` modifier of the nearest ancestor carrying one."""
    current = tag.parent
    depth = 0
    while isinstance(current, Tag) and depth < CONTEXT_MODIFIER_DEPTH:
        for token in current.get("class") or []:
            if token.startswith(CONTEXT_MODIFIER_PREFIX):
                return token[len(CONTEXT_MODIFIER_PREFIX):].replace("-", "_")
        current = current.parent
        depth += 1
    return None


def _context_ancestor(tag: Tag) -> Optional[Tag]:
    return tag.find_parent(lambda t: class_contains(t, HEADING_CONTEXT_TOKENS))


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------

def has_text(tag: Tag) -> bool:
    return bool(tag.get_text(strip=True))


def is_long_paragraph(tag: Tag) -> bool:
    return len(tag.get_text().strip()) > MIN_PARAGRAPH_LENGTH


def has_formatting(tag: Tag) -> bool:
    return tag.find(FORMATTING_TAGS) is not None


def is_inside_control(tag: Tag) -> bool:
    """True for elements nested in a ``<button>`` or a control-styled link."""
    return tag.find_parent(
        lambda t: t.name == "button" or bool(CONTROL_CLASSES & set(_class_names(t)))
    ) is not None


def is_decorative_image(img: Tag) -> bool:
    """True when the image or its direct parent is classed as decoration."""
    return class_contains(img, DECORATIVE_PATTERNS) or class_contains(img.parent, DECORATIVE_PATTERNS)


def is_in_non_content_container(img: Tag) -> bool:
    return img.find_parent(
        lambda t: t.name in NON_CONTENT_CONTAINER_TAGS
        or class_contains(t, NON_CONTENT_CONTAINER_PATTERNS)
    ) is not None


def is_content_image(img: Tag) -> bool:
    return bool(img.get("src")) and not is_decorative_image(img) and not is_in_non_content_container(img)


def is_button(tag: Tag) -> bool:
    for name in _class_names(tag):
        if name in CONTROL_CLASSES and name != "c_button":
            continue
        if "button" in name or name == "btn" or name.startswith("btn_"):
            return True
    return False


def is_label(tag: Tag) -> bool:
    info = primary_class(tag)
    if info is None or "container" in info.name:
        return False
    if not any(token in info.name for token in LABEL_TOKENS):
        return False
    text = tag.get_text(strip=True)
    return 0 < len(text) <= MAX_LABEL_LENGTH


def is_content_link(tag: Tag) -> bool:
    return not (CONTROL_CLASSES & set(_class_names(tag))) and has_text(tag)


def is_item_image(img: Tag) -> bool:
    return bool(img.get("src")) and not is_decorative_image(img) and img.find_parent("button") is None


def button_text_element(button: Tag) -> Optional[Tag]:
    """Return the element holding a button's label, or None without one."""
    for child in button.children:
        if isinstance(child, NavigableString):
            if len(child.strip()) > MIN_BUTTON_TEXT_LENGTH:
                return button
        elif isinstance(child, Tag) and child.name in ("div", "span"):
            if len(child.get_text(strip=True)) > MIN_BUTTON_TEXT_LENGTH:
                return child
    return None


# ---------------------------------------------------------------------------
# Field naming
# ---------------------------------------------------------------------------

def heading_name(tag: Tag, ordinal: int) -> str:
    info = primary_class(tag)
    if info is not None and not info.name.startswith("heading_"):
        return info.name

    modifier = context_modifier(tag)
    context = primary_class(_context_ancestor(tag))
    if context is not None:
        return f"{modifier}_{context.name}" if modifier else context.name
    if modifier:
        return f"{modifier}_heading"
    return f"heading_{ordinal}"


def paragraph_name(tag: Tag, ordinal: int) -> str:
    info = primary_class(tag)
    if info is not None:
        return info.name
    return f"paragraph_{ordinal}"


def image_name(img: Tag, ordinal: int) -> str:
    info = primary_class(img) or primary_class(img.parent)
    if info is None:
        return f"image_{ordinal}"
    if "image" in info.name:
        return info.name
    return f"{info.name}_image"


def button_name(tag: Tag) -> str:
    cta = primary_class(tag.find_parent(lambda t: class_contains(t, ("cta",))))
    if cta is not None:
        return f"{cta.name}_button_text"
    return "button_text"


# ---------------------------------------------------------------------------
# Rule chains
# ---------------------------------------------------------------------------

class FieldCandidate(NamedTuple):
    name: str
    element: Tag
    type: FieldType


class FieldRule(NamedTuple):
    """Page-level rule: candidates matching *selector* and *predicate* are
    turned into a field by *action* (which may still decline with None).

    *action* receives the candidate and its document-order position among
    all elements matching *selector*.
    """

    name: str
    selector: str
    predicate: Callable[[Tag], bool]
    action: Callable[[Tag, int], Optional[FieldCandidate]]


class ItemFieldRule(NamedTuple):
    """Collection item rule: the first element of the item matching
    *selector* and *predicate* becomes the item field *name*."""

    name: str
    selector: str
    predicate: Callable[[Tag], bool]
    attribute: Optional[str] = None
    type: Optional[FieldType] = None


def _heading_action(tag: Tag, ordinal: int) -> FieldCandidate:
    return FieldCandidate(heading_name(tag, ordinal), tag, FieldType.PLAIN)


def _paragraph_action(tag: Tag, ordinal: int) -> FieldCandidate:
    field_type = FieldType.RICH if has_formatting(tag) else FieldType.PLAIN
    return FieldCandidate(paragraph_name(tag, ordinal), tag, field_type)


def _image_action(tag: Tag, ordinal: int) -> FieldCandidate:
    return FieldCandidate(image_name(tag, ordinal), tag, FieldType.IMAGE)


def _button_action(tag: Tag, _ordinal: int) -> Optional[FieldCandidate]:
    element = button_text_element(tag)
    if element is None:
        return None
    return FieldCandidate(button_name(tag), element, FieldType.PLAIN)


FIELD_RULES: List[FieldRule] = [
    FieldRule("heading", ", ".join(HEADING_TAGS), has_text, _heading_action),
    FieldRule("paragraph", "p", is_long_paragraph, _paragraph_action),
    FieldRule("image", "img", is_content_image, _image_action),
    FieldRule("button", "a, button", is_button, _button_action),
]

ITEM_FIELD_RULES: List[ItemFieldRule] = [
    ItemFieldRule("image", "img", is_item_image, attribute="src", type=FieldType.IMAGE),
    ItemFieldRule("tag", "div, span", is_label),
    ItemFieldRule("title", ", ".join(HEADING_TAGS), has_text),
    ItemFieldRule("description", "p", has_text),
    ItemFieldRule("link", "a", is_content_link, attribute="href", type=FieldType.LINK),
]
