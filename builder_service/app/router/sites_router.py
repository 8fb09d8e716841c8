from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.auth import optional_current_user, validate_current_token
from shared.core.database import get_builder_db as get_db
from shared.core.exceptions import ValidationError
from shared.core.schemas import UserToken
from shared.helpers.json_response_helper import success_response
from shared.utils.app_status_code import AppStatusCode
from ..crud import site_crud as crud
from ..enum.site_enum import RenderMode
from ..schemas.sites_schemas import (SiteCreate, SiteCreateOut, SiteOut,
                                     SitePublish, SiteSave)
from ..services.template_compositor import compose_site
from .templates_router import composed_page_out

router = APIRouter(prefix="/api/sites", tags=["sites"])


@router.post("", status_code=201, response_model=None)
def create_site(
    site: SiteCreate,
    db: Session = Depends(get_db),
    current_user: Optional[UserToken] = Depends(optional_current_user)
):
    result = crud.create_site(db, site, current_user)
    return success_response(
        data=SiteCreateOut(site_id=result.id),
        message="Site created successfully",
        status_code=AppStatusCode.CREATED_SUCCESSFULLY,
    )


@router.get("", response_model=None)
def read_site(id: Optional[str] = Query(default=None), db: Session = Depends(get_db)):
    if not id:
        raise ValidationError("Site ID is required")
    return success_response(data=SiteOut.model_validate(crud.get_site(db, id)))


@router.patch("", response_model=None)
def save_site(
    body: SiteSave,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    site_id = body.resolved_id
    if not site_id:
        raise ValidationError("Site ID is required")

    result = crud.save_site(db, site_id, body.design_data, current_user)
    return success_response(
        data=SiteOut.model_validate(result),
        message="Site updated successfully",
        status_code=AppStatusCode.UPDATED_SUCCESSFULLY,
    )


@router.post("/{site_id}/publish", response_model=None)
def publish_site(
    site_id: str,
    body: Optional[SitePublish] = None,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(validate_current_token)
):
    custom_domain = body.custom_domain if body else None
    result = crud.publish_site(db, site_id, current_user, custom_domain)
    return success_response(
        data=SiteOut.model_validate(result),
        message="Site published successfully",
        status_code=AppStatusCode.UPDATED_SUCCESSFULLY,
    )


@router.get("/{site_id}/render", response_model=None)
def render_site(
    site_id: str,
    mode: RenderMode = Query(default=RenderMode.PREVIEW),
    db: Session = Depends(get_db)
):
    site = crud.get_site(db, site_id)
    page = compose_site(db, site, mode)
    return success_response(data=composed_page_out(page))
