from bs4 import BeautifulSoup, Comment, Tag

# Tags whose entire subtree is dropped from the page body.  Their content is
# scripting or markup templates, never editable copy.
_REMOVE_TAGS = {
    "script",
    "noscript",
    "template",
}

# Webflow wraps custom code embeds (inline <style> and <script>) in this class
_EMBED_CLASS = "global-embed"


def _embed_blocks(body: Tag) -> list[Tag]:
    return [
        tag
        for tag in body.find_all(class_=_EMBED_CLASS)
        # Nested embeds are removed together with their outermost ancestor
        if not tag.find_parent(class_=_EMBED_CLASS)
    ]


def strip_embedded(soup: BeautifulSoup) -> str:
    """Remove embedded style/script blocks from the body of *soup* in place.

    Returns the concatenated CSS text of the removed ``<style>`` blocks so it
    can be handed to the asset pipeline.  Removal only detaches nodes, so the
    relative order of every remaining sibling and attribute is unchanged.
    """
    body = soup.body
    if body is None:
        return ""

    styles: list[str] = []

    for block in _embed_blocks(body):
        for style in block.find_all("style"):
            styles.append(style.get_text())
        block.decompose()

    for style in body.find_all("style"):
        styles.append(style.get_text())
        style.decompose()

    for tag in body.find_all(_REMOVE_TAGS):
        if tag.decomposed:
            continue
        tag.decompose()

    # Comments would otherwise be carried into every generated template
    for comment in body.find_all(string=lambda text: isinstance(text, Comment)):
        comment.extract()

    return "\n\n".join(s.strip() for s in styles if s.strip())
