"""Content manifest models: the single schema every generator reads from."""

from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class FieldType(str, Enum):
    """Kind of content an editable field holds."""

    PLAIN = "plain"
    RICH = "rich"
    HTML = "html"
    IMAGE = "image"
    LINK = "link"
    EMAIL = "email"
    PHONE = "phone"


class FieldMapping(BaseModel):
    """A single editable field on a page."""

    model_config = ConfigDict(frozen=True)

    selector: str
    type: FieldType
    required: Optional[bool] = None
    default: Optional[str] = None


class CollectionFieldMapping(BaseModel):
    """Object form of a collection item field.

    Used when the value lives in an attribute (``src`` for images, ``href``
    for links) rather than in the element text.
    """

    model_config = ConfigDict(frozen=True)

    selector: str
    attribute: Optional[str] = None
    type: Optional[FieldType] = None


class CollectionMapping(BaseModel):
    """A repeating group of structurally similar items.

    ``selector`` matches every repetition; the first match is the binding
    template.  Field selectors are relative to an item.
    """

    model_config = ConfigDict(frozen=True)

    selector: str
    fields: Dict[str, Union[CollectionFieldMapping, str]] = Field(default_factory=dict)
    limit: Optional[int] = None


class PageMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    route: str
    title: Optional[str] = None


class PageSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    fields: Dict[str, FieldMapping] = Field(default_factory=dict)
    collections: Dict[str, CollectionMapping] = Field(default_factory=dict)
    meta: PageMeta


class ContentManifest(BaseModel):
    """Every detected field and collection, per page."""

    model_config = ConfigDict(frozen=True)

    version: str = "1.0"
    pages: Dict[str, PageSchema] = Field(default_factory=dict)


class ManifestOverrides(BaseModel):
    """Developer corrections applied on top of auto-detection."""

    exclude_pages: List[str] = Field(default_factory=list)
    ignore_selectors: List[str] = Field(default_factory=list)
    custom_fields: Dict[str, Dict[str, FieldMapping]] = Field(default_factory=dict)


def field_selector(mapping: Union[CollectionFieldMapping, str]) -> str:
    """Return the selector of a collection field in either of its two forms."""
    if isinstance(mapping, CollectionFieldMapping):
        return mapping.selector
    return mapping
