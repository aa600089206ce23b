"""Path normalisation: page ids, routes, navigation links and asset references."""

import posixpath
import re
from urllib.parse import urlsplit

from flowcms.config import config

# References that leave the site or stay on the current page
_EXTERNAL_PREFIXES = (
    "http://",
    "https://",
    "//",
    "#",
    "mailto:",
    "tel:",
    "javascript:",
)

_REMOTE_ASSET_PREFIXES = ("http://", "https://", "//", "data:")

_HTML_EXT_RE = re.compile(r"\.html?$", re.IGNORECASE)

# Leading "../" or "./" segments, any number of them
_LEADING_RELATIVE_RE = re.compile(r"^(?:\.\.?/)+")


def page_id_from_path(path: str) -> str:
    """Derive a page id from an export-relative file path.

    ``"index.html"`` -> ``"index"``, ``"press-release/article.html"`` ->
    ``"press-release/article"``.
    """
    page_id = path.replace("\\", "/")
    page_id = _LEADING_RELATIVE_RE.sub("", page_id).lstrip("/")
    return _HTML_EXT_RE.sub("", page_id)


def route_for_page(page_id: str) -> str:
    """Return the site route a page is served under."""
    if page_id == "index":
        return "/"
    return "/" + page_id


def is_external_link(href: str) -> bool:
    """Return True for links that must not be rewritten into site routes."""
    return href.strip().lower().startswith(_EXTERNAL_PREFIXES)


def normalize_route(href: str) -> str:
    """Turn an exported relative link into a canonical root-relative route.

    Examples::

        about.html                   -> /about
        ../index.html                -> /
        press-release/article.html   -> /press-release/article
        blog/index.html#latest       -> /blog#latest
        ?page=2                      -> ?page=2
    """
    parts = urlsplit(href.strip())
    if not parts.path:
        # Same-page query or fragment
        return href.strip()
    path = _HTML_EXT_RE.sub("", parts.path)
    path = _LEADING_RELATIVE_RE.sub("", path)

    segments = [seg for seg in posixpath.normpath("/" + path).split("/") if seg]
    # Parent references that survive normpath cannot climb above the root
    segments = [seg for seg in segments if seg not in ("..", ".")]
    if segments and segments[-1] == "index":
        segments.pop()

    route = "/" + "/".join(segments)
    if parts.query:
        route += "?" + parts.query
    if parts.fragment:
        route += "#" + parts.fragment
    return route


def normalize_asset_path(src: str, prefix: str | None = None) -> str:
    """Place a local asset reference under the public asset root.

    Examples::

        images/logo.svg              -> /assets/images/logo.svg
        ../images/logo.svg           -> /assets/images/logo.svg
        /assets/../images/logo.svg   -> /assets/images/logo.svg
        https://cdn.example/x.png    -> unchanged
    """
    if not src or src.lower().startswith(_REMOTE_ASSET_PREFIXES):
        return src

    prefix = (prefix or config.ASSET_PREFIX).rstrip("/")
    path = _LEADING_RELATIVE_RE.sub("", src)

    if path.startswith(prefix + "/"):
        rest = path[len(prefix) + 1:]
    else:
        rest = path.lstrip("/")
    # Collapse every parent segment so the reference cannot leave the root
    rest = "/".join(seg for seg in rest.split("/") if seg not in ("", ".", ".."))
    return f"{prefix}/{rest}"


def normalize_image_path(src: str) -> str:
    """Return the public path an extracted image value is seeded with.

    Root-relative and remote values are kept; files from an ``images/``
    folder map to ``/images/<file>``; anything else to ``/<file>``.
    """
    if not src:
        return ""
    if src.startswith("/") or src.lower().startswith(_REMOTE_ASSET_PREFIXES):
        return src

    filename = posixpath.basename(urlsplit(src).path)
    if "images/" in src:
        return f"/images/{filename}"
    return f"/{filename}"
