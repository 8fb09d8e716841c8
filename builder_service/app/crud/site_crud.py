# site_crud.py
import logging
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import (Forbidden, InternalError, NotFound,
                                    Unauthorized, ValidationError)
from shared.core.schemas import UserToken
from shared.utils.app_status_code import AppStatusCode
from shared.utils.timestamps import utcnow
from ..enum.site_enum import SITE_TITLE_KEY, UNTITLED_SITE
from ..models.sites import Site
from ..schemas.sites_schemas import (SiteCreate, UserSiteListResponse,
                                     UserSiteOut)
from ..services.host_resolver import (HOSTNAME_PATTERN, PlatformHostPolicy,
                                      normalize_host)
from . import template_crud

logger = logging.getLogger(__name__)


def _require_identity(requester: Optional[UserToken]) -> str:
    # only verify_token() builds a UserToken, so a value here is a verified caller
    if requester is None or not requester.user_id:
        raise Unauthorized("Unauthorized")
    return requester.user_id


def _ensure_owner(site: Site, requester_id: str):
    if site.owner_id is not None and site.owner_id != requester_id:
        logger.warning("Rejected write to site %s by %s (owned by %s)",
                       site.id, requester_id, site.owner_id)
        raise Forbidden("You do not have access to this site")


def _commit(db: Session, site: Site, action: str):
    """Commit one site mutation; all fields land together or not at all."""
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to %s site %s", action, site.id)
        raise InternalError(f"Failed to {action} site")
    db.refresh(site)


def generate_site_slug(site_id: str) -> str:
    return "site-" + site_id.replace("-", "")[:12]


# ----------------- Create -----------------

def create_site(db: Session, site: SiteCreate, requester: Optional[UserToken] = None) -> Site:
    template_id = site.resolved_template_id
    if not template_id or not site.business_type or not site.category:
        raise ValidationError("Missing required fields")

    if not template_crud.template_exists(db, template_id):
        raise NotFound("Template not found", AppStatusCode.TEMPLATE_NOT_FOUND)

    site_id = str(uuid.uuid4())
    now = utcnow()
    db_site = Site(
        id=site_id,
        owner_id=requester.user_id if requester else None,
        template_id=template_id,
        business_type=site.business_type,
        category=site.category,
        design_data={},
        site_slug=generate_site_slug(site_id),
        created_at=now,
        updated_at=now,
    )
    db.add(db_site)
    try:
        _commit(db, db_site, "create")
    except IntegrityError:
        logger.exception("Failed to create site %s", site_id)
        raise InternalError("Failed to create site")

    logger.info("Created site %s from template %s (owner=%s)",
                site_id, template_id, db_site.owner_id)
    return db_site


# ----------------- Read -----------------

def get_site_by_id(db: Session, site_id: str) -> Optional[Site]:
    return db.query(Site).filter(Site.id == site_id).first()


def get_site(db: Session, site_id: str) -> Site:
    site = get_site_by_id(db, site_id)
    if not site:
        raise NotFound("Site not found")
    return site


def _owner_query(db: Session, owner_id: str):
    return (
        db.query(Site)
        .filter(Site.owner_id == owner_id)
        .order_by(Site.updated_at.desc(), Site.created_at.desc(), Site.id.asc())
    )


def list_sites_by_owner(db: Session, requester: Optional[UserToken]) -> List[Site]:
    owner_id = _require_identity(requester)
    return _owner_query(db, owner_id).all()


def get_latest_site_by_owner(db: Session, requester: Optional[UserToken]) -> Site:
    owner_id = _require_identity(requester)
    site = _owner_query(db, owner_id).first()
    if not site:
        raise NotFound("User has no sites yet")
    return site


def site_title(site: Site) -> str:
    title = (site.design_data or {}).get(SITE_TITLE_KEY)
    return title if isinstance(title, str) and title.strip() else UNTITLED_SITE


def get_user_sites(db: Session, requester: Optional[UserToken]) -> UserSiteListResponse:
    sites = list_sites_by_owner(db, requester)
    user_sites = [
        UserSiteOut(
            id=s.id,
            title=site_title(s),
            updated_at=s.updated_at,
            business_type=s.business_type,
            category=s.category,
            published=s.published_at is not None,
        )
        for s in sites
    ]
    return UserSiteListResponse(sites=user_sites, count=len(user_sites))


# ----------------- Save -----------------

def merge_design_data(current: Optional[Dict[str, Any]], patch: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Shallow merge: patch keys overwrite, everything else is kept."""
    merged = dict(current or {})
    merged.update(patch or {})
    return merged


def save_site(db: Session, site_id: str, design_data_patch: Dict[str, Any],
              requester: Optional[UserToken]) -> Site:
    requester_id = _require_identity(requester)
    site = get_site(db, site_id)
    _ensure_owner(site, requester_id)

    claimed = site.owner_id is None
    # new dict so the JSON column is flagged dirty
    site.design_data = merge_design_data(site.design_data, design_data_patch)
    site.owner_id = requester_id
    site.updated_at = utcnow()
    try:
        _commit(db, site, "save")
    except IntegrityError:
        logger.exception("Failed to save site %s", site_id)
        raise InternalError("Failed to save site")

    if claimed:
        logger.info("Site %s claimed by %s", site_id, requester_id)
    logger.info("Saved site %s (%d keys patched)",
                site_id, len(design_data_patch or {}))
    return site


# ----------------- Publish -----------------

def normalize_custom_domain(domain: str) -> str:
    host = normalize_host(domain)
    if not host or "." not in host or not HOSTNAME_PATTERN.match(host) or host.startswith("["):
        raise ValidationError(f"'{domain}' is not a valid domain",
                              AppStatusCode.INVALID_INPUT)
    if PlatformHostPolicy.from_settings().matches(host):
        raise ValidationError(f"'{domain}' is reserved by the platform",
                              AppStatusCode.INVALID_INPUT)
    return host


def publish_site(db: Session, site_id: str, requester: Optional[UserToken],
                 custom_domain: Optional[str] = None) -> Site:
    requester_id = _require_identity(requester)
    site = get_site(db, site_id)
    _ensure_owner(site, requester_id)

    if custom_domain:
        domain = normalize_custom_domain(custom_domain)
        taken = db.query(Site.id).filter(
            Site.custom_domain == domain, Site.id != site.id).first()
        if taken:
            raise ValidationError(f"Domain '{domain}' is already in use",
                                  AppStatusCode.DUPLICATE_ADD_ERROR)
        site.custom_domain = domain

    now = utcnow()
    site.owner_id = requester_id
    if site.published_at is None:
        site.published_at = now
    site.updated_at = now
    try:
        _commit(db, site, "publish")
    except IntegrityError:
        raise ValidationError("Domain is already in use",
                              AppStatusCode.DUPLICATE_ADD_ERROR)

    logger.info("Published site %s (domain=%s)", site_id, site.custom_domain)
    return site


# ----------------- Tenant lookup -----------------

def get_published_site_by_host(db: Session, host: str) -> Site:
    host = normalize_host(host)
    site = None
    if host:
        site = db.query(Site).filter(Site.custom_domain == host).first()

        root = (settings.SITES_ROOT_DOMAIN or "").strip().lower()
        if not site and root and host.endswith("." + root):
            slug = host[:-(len(root) + 1)]
            site = db.query(Site).filter(Site.site_slug == slug).first()

    if not site or site.published_at is None:
        raise NotFound("Site not found")
    return site
