"""Embedded style de-duplication across converted pages.

Webflow repeats the same custom-code embed (fonts, global tweaks) on every
page.  When the embeds are lifted out of the pages, identical blocks would
otherwise be written to the shared stylesheet once per page.
"""

from typing import List


def _split_blocks(text: str) -> List[str]:
    """Split CSS *text* into non-empty blocks separated by blank lines."""
    blocks: List[str] = []
    for block in text.split("\n\n"):
        stripped = block.strip()
        if stripped:
            blocks.append(stripped)
    return blocks


def deduplicate_styles(sections: List[str]) -> tuple[str, bool]:
    """Merge per-page style *sections* into one stylesheet.

    Blocks keep the order in which they were first seen.

    Returns:
        A tuple of:
        - the merged CSS text (empty when there is nothing to write)
        - a boolean indicating whether any duplicate block was dropped.
    """
    seen: set[str] = set()
    merged: List[str] = []
    removed = False

    for section in sections:
        for block in _split_blocks(section):
            if block in seen:
                removed = True
                continue
            seen.add(block)
            merged.append(block)

    return "\n\n".join(merged), removed
