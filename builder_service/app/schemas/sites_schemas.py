from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, List, Optional
from datetime import datetime

from shared.wrappers.empty_string_model_wrapper import EmptyStringModel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class SiteCreate(EmptyStringModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # accepts the builder UI's historic "selectedTemplateId" name as well
    template_id: Optional[str] = None
    selected_template_id: Optional[str] = None
    business_type: Optional[str] = None
    category: Optional[str] = None

    @property
    def resolved_template_id(self) -> Optional[str]:
        return self.template_id or self.selected_template_id


class SiteCreateOut(CamelModel):
    site_id: str
    message: str = "Site created successfully"


class SiteSave(CamelModel):
    # "siteId" is what older editor builds send
    id: Optional[str] = None
    site_id: Optional[str] = None
    design_data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def resolved_id(self) -> Optional[str]:
        return self.id or self.site_id


class SitePublish(EmptyStringModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    custom_domain: Optional[str] = None


class SiteOut(CamelModel):
    id: str
    owner_id: Optional[str] = None
    template_id: str
    business_type: str
    category: str
    design_data: Dict[str, Any] = Field(default_factory=dict)
    site_slug: str
    custom_domain: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class UserSiteOut(CamelModel):
    id: str
    title: str
    updated_at: datetime
    business_type: str
    category: str
    published: bool = False


class UserSiteListResponse(CamelModel):
    sites: List[UserSiteOut]
    count: int


class LatestSiteResponse(CamelModel):
    site: SiteOut
