from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from shared.core.auth import validate_current_token
from shared.core.database import get_builder_db as get_db
from shared.core.schemas import UserToken
from ..crud import site_crud as crud
from ..schemas.sites_schemas import (LatestSiteResponse, SiteOut,
                                     UserSiteListResponse)

router = APIRouter(prefix="/api/user", tags=["user sites"])


@router.get("/sites", response_model=UserSiteListResponse)
def read_user_sites(db: Session = Depends(get_db),
                    current_user: UserToken = Depends(validate_current_token)):
    return crud.get_user_sites(db, current_user)


@router.get("/latest-site", response_model=LatestSiteResponse)
def read_latest_site(db: Session = Depends(get_db),
                     current_user: UserToken = Depends(validate_current_token)):
    site = crud.get_latest_site_by_owner(db, current_user)
    return LatestSiteResponse(site=SiteOut.model_validate(site))
