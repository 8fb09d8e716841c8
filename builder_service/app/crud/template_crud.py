import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.exceptions import InternalError, NotFound
from shared.utils.app_status_code import AppStatusCode
from shared.utils.timestamps import utcnow
from ..models.templates import TemplateAsset, TemplateMetadata
from ..schemas.templates_schemas import (TemplateListResponse,
                                         TemplateMetadataOut, TemplatePreview,
                                         TemplateRequest)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TemplateBundle:
    """Registry entry: a template's metadata plus its raw markup bytes."""
    template_id: str
    asset_key: str
    metadata: TemplateMetadataOut
    markup: bytes


def _filtered_query(db: Session, category: Optional[str], business_type: Optional[str]):
    query = db.query(TemplateMetadata)
    if category:
        query = query.filter(
            func.lower(TemplateMetadata.category) == category.lower())
    if business_type:
        query = query.filter(
            func.lower(TemplateMetadata.business_type) == business_type.lower())
    return query


def get_template_metadata(db: Session, template_id: str) -> TemplateMetadata:
    template = db.query(TemplateMetadata).filter(
        TemplateMetadata.template_id == template_id).first()
    if not template:
        raise NotFound("Template not found", AppStatusCode.TEMPLATE_NOT_FOUND)
    return template


def template_exists(db: Session, template_id: str) -> bool:
    return db.query(TemplateMetadata.template_id).filter(
        TemplateMetadata.template_id == template_id).first() is not None


def get_template_bundle(db: Session, template_id: str) -> TemplateBundle:
    """Resolve ``template_id`` to its metadata and markup in one place."""
    try:
        template = get_template_metadata(db, template_id)
        asset = db.query(TemplateAsset).filter(
            TemplateAsset.key == template.asset_key).first()
    except SQLAlchemyError:
        logger.exception("Failed to load template %s", template_id)
        raise InternalError("Failed to load template")

    if not asset:
        logger.error("Template %s references missing asset %s",
                     template_id, template.asset_key)
        raise NotFound("Template HTML not found",
                       AppStatusCode.TEMPLATE_NOT_FOUND)

    return TemplateBundle(
        template_id=template.template_id,
        asset_key=template.asset_key,
        metadata=TemplateMetadataOut.model_validate(template),
        markup=bytes(asset.content),
    )


def get_templates(db: Session, params: TemplateRequest) -> TemplateListResponse:
    page = max(params.page or 1, 1)
    limit = params.limit or settings.DEFAULT_TEMPLATE_PAGE_SIZE
    limit = max(1, min(limit, 100))

    query = _filtered_query(db, params.category, params.business_type)
    total = query.count()

    start = (page - 1) * limit
    rows = (
        query
        .order_by(TemplateMetadata.name.asc(), TemplateMetadata.template_id.asc())
        .offset(start)
        .limit(limit)
        .all()
    )

    templates = [
        TemplatePreview(
            id=t.template_id,
            name=t.name,
            category=t.category,
            business_type=t.business_type,
            image_url=t.thumbnail_url,
            tags=t.tags or [],
            description=t.description,
        )
        for t in rows
    ]
    return TemplateListResponse(templates=templates, total=total, page=page,
                                has_more=start + limit < total)


def get_template_metadata_list(db: Session, category: Optional[str] = None,
                               business_type: Optional[str] = None):
    rows = (
        _filtered_query(db, category, business_type)
        .order_by(TemplateMetadata.template_id.asc())
        .all()
    )
    return [TemplateMetadataOut.model_validate(r) for r in rows]


def upsert_template(db: Session, metadata: dict, markup: bytes) -> TemplateMetadata:
    """Insert or replace a catalog entry; used by the seed script only."""
    template_id = metadata["template_id"]
    asset_key = metadata.get("asset_key") or f"templates/{template_id}.html"

    asset = db.query(TemplateAsset).filter(TemplateAsset.key == asset_key).first()
    if asset:
        asset.content = markup
    else:
        db.add(TemplateAsset(key=asset_key, content=markup))

    template = db.query(TemplateMetadata).filter(
        TemplateMetadata.template_id == template_id).first()
    if not template:
        template = TemplateMetadata(template_id=template_id)
        db.add(template)

    for key in ("name", "description", "business_type", "category", "tags",
                "palettes", "content_keys", "thumbnail_url", "multi_page",
                "has_blog", "has_gallery"):
        if key in metadata:
            setattr(template, key, metadata[key])
    template.asset_key = asset_key
    template.updated_at = utcnow()

    db.commit()
    db.refresh(template)
    return template
