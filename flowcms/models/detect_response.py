from typing import Dict, List

from pydantic import BaseModel

from flowcms.models.issue import Issue
from flowcms.models.manifest import CollectionMapping, FieldMapping


class DetectResponse(BaseModel):
    page_id: str
    title: str
    route: str
    fields: Dict[str, FieldMapping]
    collections: Dict[str, CollectionMapping]
    issues: List[Issue]
