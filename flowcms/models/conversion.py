from typing import Any, Dict, List

from pydantic import BaseModel, Field

from flowcms.errors import PageFailed
from flowcms.models.backend import BackendSchema
from flowcms.models.issue import Issue
from flowcms.models.manifest import ContentManifest
from flowcms.models.template import PortableTemplate


class ConversionResult(BaseModel):
    """Everything produced from one batch of pages."""

    manifest: ContentManifest
    templates: Dict[str, PortableTemplate] = Field(default_factory=dict)
    schemas: Dict[str, BackendSchema] = Field(default_factory=dict)
    seed: Dict[str, Any] = Field(default_factory=dict)
    styles: str = ""
    """Embedded CSS lifted out of the pages, de-duplicated."""
    css_files: List[str] = Field(default_factory=list)
    issues: List[Issue] = Field(default_factory=list)

    @property
    def failed_pages(self) -> List[str]:
        return sorted({issue.page_id for issue in self.issues if issue.kind == PageFailed.__name__})
