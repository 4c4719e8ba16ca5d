from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class CollectionField(BaseModel):
    """A field definition from a CMS collection schema."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    slug: str
    display_name: Optional[str] = Field(None, alias="displayName")
    name: Optional[str] = None
    type: Optional[str] = None

    @property
    def label(self) -> str:
        return self.display_name or self.name or self.slug


class CollectionItem(BaseModel):
    """An item stored in a CMS collection."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str
    field_data: Dict[str, Any] = Field(default_factory=dict, alias="fieldData")
    is_draft: bool = Field(False, alias="isDraft")
    is_archived: bool = Field(False, alias="isArchived")

    @property
    def name(self) -> Optional[str]:
        value = self.field_data.get("name")
        return value if isinstance(value, str) and value else None
