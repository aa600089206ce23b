from typing import Dict, Optional

from pydantic import BaseModel, Field, field_validator

from flowcms.config import config
from flowcms.models.manifest import ManifestOverrides


class ConvertRequest(BaseModel):
    pages: Dict[str, str] = Field(
        description="Raw exported markup keyed by page id (e.g. 'index', 'blog/post').",
        examples=[{"index": "<html><body><h1 class='hero-title'>Hello</h1></body></html>"}],
    )
    overrides: Optional[ManifestOverrides] = None
    asset_prefix: Optional[str] = Field(
        default=None,
        pattern=r"^/",
        description="Public root for rewritten asset references (default '/assets').",
    )

    @field_validator("pages")
    @classmethod
    def _check_pages(cls, pages: Dict[str, str]) -> Dict[str, str]:
        if not pages:
            raise ValueError("At least one page is required.")
        if len(pages) > config.MAX_PAGES:
            raise ValueError(f"At most {config.MAX_PAGES} pages can be converted at once.")
        return pages


class DetectRequest(BaseModel):
    page_id: str = Field(min_length=1)
    html: str
    ignore_selectors: list[str] = Field(default_factory=list)
