"""Backend content-type models (Strapi ``schema.json`` layout)."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field

BackendKind = Literal["singleType", "collectionType"]


class BackendAttribute(BaseModel):
    type: str
    required: Optional[bool] = None
    unique: Optional[bool] = None
    default: Optional[Any] = None


class BackendInfo(BaseModel):
    singularName: str
    pluralName: str
    displayName: str


class BackendOptions(BaseModel):
    draftAndPublish: bool = True


class BackendSchema(BaseModel):
    kind: BackendKind
    collectionName: str
    info: BackendInfo
    options: BackendOptions = Field(default_factory=BackendOptions)
    attributes: Dict[str, BackendAttribute] = Field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        """Return the JSON document handed to the schema installer."""
        return self.model_dump(exclude_none=True)
