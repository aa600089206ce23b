from typing import Optional

from pydantic import BaseModel


class Issue(BaseModel):
    """A non-fatal problem found while converting one page."""

    page_id: str
    kind: str
    """Name of the :mod:`flowcms.errors` class describing the problem."""
    detail: str
    name: Optional[str] = None
