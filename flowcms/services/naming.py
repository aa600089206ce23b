"""Identifier normalisation and English pluralisation.

Every field and collection identifier is produced by :func:`normalize_identifier`
exactly once, during detection.  Downstream generators reuse the manifest keys
verbatim and never call back into this module to re-derive them.
"""

import re

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")

_VOWELS = "aeiou"
_SIBILANT_ENDINGS = ("s", "x", "z", "ch", "sh")


def normalize_identifier(token: str) -> str:
    """Lowercase *token* and collapse separator runs into ``_``.

    ``"Story-Card"`` -> ``"story_card"``, ``"hero--title"`` -> ``"hero_title"``.
    """
    return _NON_ALNUM_RE.sub("_", token.lower()).strip("_")


def pluralize(word: str) -> str:
    """Return the English plural of *word*.

    ``card`` -> ``cards``, ``story`` -> ``stories``, ``box`` -> ``boxes``.
    """
    lower = word.lower()
    if len(word) > 1 and lower.endswith("y") and lower[-2] not in _VOWELS:
        return word[:-1] + "ies"
    if lower.endswith(_SIBILANT_ENDINGS):
        return word + "es"
    return word + "s"


def singularize(word: str) -> str:
    """Reverse :func:`pluralize` for words it produced."""
    lower = word.lower()
    if lower.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if lower.endswith("es") and lower[:-2].endswith(_SIBILANT_ENDINGS):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return word[:-1]
    return word


def collection_identifier(identifier: str) -> str:
    """Name a collection after the class its items share.

    Identifiers that already read as plural are kept as they are so
    ``blog_posts`` does not become ``blog_postses``.
    """
    if identifier.endswith("s") and not identifier.endswith("ss"):
        return identifier
    return pluralize(identifier)


def kebab_case(name: str) -> str:
    """``"press-release/article"`` -> ``"press-release-article"``."""
    return _NON_ALNUM_RE.sub("-", name.lower()).strip("-")


def display_name(name: str) -> str:
    """``"story_cards"`` -> ``"Story Cards"``."""
    words = [w for w in _NON_ALNUM_RE.split(name.lower()) if w]
    return " ".join(w[0].upper() + w[1:] for w in words)
