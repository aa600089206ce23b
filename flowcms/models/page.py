from typing import List, NamedTuple

from bs4 import BeautifulSoup


class ParsedPage(NamedTuple):
    """One loaded page: its parsed tree plus the references found in it.

    Transient: consumed by detection, rewriting and extraction, then dropped.
    """

    page_id: str
    title: str
    tree: BeautifulSoup
    asset_refs: List[str]
    nav_refs: List[str]
    css_files: List[str]
    embedded_styles: str
