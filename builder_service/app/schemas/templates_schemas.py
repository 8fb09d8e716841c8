from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import datetime

from shared.core.schemas import PageQueryParams
from ..enum.site_enum import RenderMode


class ContentKey(BaseModel):
    key: str
    label: str
    default: str = ""

    @field_validator("default", mode="before")
    @classmethod
    def blank_default(cls, value):
        # catalog files may carry null or a bare number here
        if value is None:
            return ""
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class TemplateMetadataOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    template_id: str
    name: str
    description: Optional[str] = None
    business_type: str
    category: str
    tags: List[str] = Field(default_factory=list)
    # slot values are filtered when the palette is resolved
    palettes: Dict[str, Optional[Dict[str, Any]]] = Field(default_factory=dict)
    content_keys: List[ContentKey] = Field(default_factory=list)
    thumbnail_url: Optional[str] = None
    multi_page: bool = False
    has_blog: bool = False
    has_gallery: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TemplatePreview(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True,
                              from_attributes=True)

    id: str
    name: str
    category: str
    business_type: str
    image_url: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    description: Optional[str] = None


class TemplateListResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    templates: List[TemplatePreview]
    total: int
    page: int
    has_more: bool


class TemplateMetadataListResponse(BaseModel):
    data: List[TemplateMetadataOut]
    count: int


class TemplateDetailOut(BaseModel):
    id: str
    metadata: TemplateMetadataOut
    html: str


class TemplateRequest(PageQueryParams):
    category: Optional[str] = None
    business_type: Optional[str] = None


class ComposeRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    palette_id: Optional[str] = None
    colors: Dict[str, str] = Field(default_factory=dict)
    content: Dict[str, str] = Field(default_factory=dict)
    mode: RenderMode = RenderMode.PREVIEW


class EditRegionOut(BaseModel):
    key: str
    label: str
    value: str
    occurrences: int
    wrapped: int = 0


class ComposedPageOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    template_id: str
    mode: RenderMode
    palette: Dict[str, str]
    html: str
    edit_regions: List[EditRegionOut] = Field(default_factory=list)
