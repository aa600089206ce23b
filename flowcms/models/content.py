from typing import Dict, List

from pydantic import BaseModel, Field


class PageContent(BaseModel):
    """Literal values pulled from one page, keyed by manifest identifiers."""

    fields: Dict[str, str] = Field(default_factory=dict)
    collections: Dict[str, List[Dict[str, str]]] = Field(default_factory=dict)


# pageId -> PageContent
ExtractedContent = Dict[str, PageContent]
