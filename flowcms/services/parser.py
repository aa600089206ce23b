"""Markup loader: raw exported HTML -> :class:`~flowcms.models.page.ParsedPage`."""

import logging
from typing import List, Tuple

from bs4 import BeautifulSoup

from flowcms.errors import ParseRecoverable
from flowcms.models.issue import Issue
from flowcms.models.page import ParsedPage
from flowcms.services.sanitizer import strip_embedded

logger = logging.getLogger(__name__)


def _extract_title(soup: BeautifulSoup, page_id: str) -> str:
    title_tag = soup.find("title")
    if title_tag:
        title = title_tag.get_text(strip=True)
        if title:
            return title
    return page_id


def _extract_css_files(soup: BeautifulSoup) -> List[str]:
    css_files: List[str] = []
    for link in soup.find_all("link", href=True):
        if "stylesheet" in (link.get("rel") or []):
            css_files.append(str(link["href"]))
    return css_files


def _extract_attr_refs(soup: BeautifulSoup, tag_name: str, attr: str) -> List[str]:
    refs: List[str] = []
    for tag in soup.find_all(tag_name):
        value = tag.get(attr)
        if value:
            refs.append(str(value))
    return refs


def _ensure_body(soup: BeautifulSoup) -> bool:
    """Make sure *soup* has a ``<body>``; return True when one had to be added."""
    if soup.body is not None:
        return False

    body = soup.new_tag("body")
    html = soup.find("html")
    if html is None:
        html = soup.new_tag("html")
        soup.append(html)
    html.append(body)
    return True


def parse_with_issues(raw_markup: str, page_id: str) -> Tuple[ParsedPage, List[Issue]]:
    """Parse *raw_markup* and report the recoveries that were needed.

    Malformed markup never raises: lxml repairs what it can and the partial
    tree is used as is.
    """
    issues: List[Issue] = []
    soup = BeautifulSoup(raw_markup or "", "lxml")

    if _ensure_body(soup):
        detail = "markup has no recoverable <body>; using an empty one"
        logger.warning("Parser: %s for page %s", detail, page_id)
        issues.append(Issue(page_id=page_id, kind=ParseRecoverable.__name__, detail=detail))

    embedded_styles = strip_embedded(soup)

    page = ParsedPage(
        page_id=page_id,
        title=_extract_title(soup, page_id),
        tree=soup,
        asset_refs=_extract_attr_refs(soup, "img", "src"),
        nav_refs=_extract_attr_refs(soup, "a", "href"),
        css_files=_extract_css_files(soup),
        embedded_styles=embedded_styles,
    )
    logger.debug(
        "Parser: loaded %s (%d images, %d links)",
        page_id,
        len(page.asset_refs),
        len(page.nav_refs),
    )
    return page, issues


def parse(raw_markup: str, page_id: str) -> ParsedPage:
    """Parse *raw_markup* into a mutable tree with its title and references."""
    page, _issues = parse_with_issues(raw_markup, page_id)
    return page
