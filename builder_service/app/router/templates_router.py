from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from shared.core.database import get_builder_db as get_db
from shared.helpers.json_response_helper import success_response
from ..crud import template_crud as crud
from ..schemas.templates_schemas import (ComposedPageOut, ComposeRequest,
                                         EditRegionOut, TemplateDetailOut,
                                         TemplateListResponse,
                                         TemplateMetadataListResponse,
                                         TemplateRequest)
from ..services.template_compositor import (ComposedPage, compose_template,
                                            prepare_base_markup)

router = APIRouter(prefix="/api/templates", tags=["templates"])


def composed_page_out(page: ComposedPage) -> ComposedPageOut:
    return ComposedPageOut(
        template_id=page.template_id,
        mode=page.mode,
        palette=page.palette,
        html=page.html,
        edit_regions=[EditRegionOut(key=r.key, label=r.label, value=r.value,
                                    occurrences=r.occurrences, wrapped=r.wrapped)
                      for r in page.edit_regions],
    )


@router.get("", response_model=TemplateListResponse)
def read_templates(params: TemplateRequest = Depends(), db: Session = Depends(get_db)):
    return crud.get_templates(db, params)


@router.get("/metadata", response_model=TemplateMetadataListResponse)
def read_template_metadata(
    category: Optional[str] = Query(default=None),
    business_type: Optional[str] = Query(default=None),
    db: Session = Depends(get_db)
):
    templates = crud.get_template_metadata_list(db, category, business_type)
    return TemplateMetadataListResponse(data=templates, count=len(templates))


@router.get("/{template_id}", response_model=TemplateDetailOut)
def read_template(template_id: str, db: Session = Depends(get_db)):
    bundle = crud.get_template_bundle(db, template_id)
    return TemplateDetailOut(
        id=bundle.template_id,
        metadata=bundle.metadata,
        html=prepare_base_markup(bundle.markup),
    )


@router.post("/{template_id}/compose", response_model=None)
def compose(template_id: str, body: ComposeRequest, db: Session = Depends(get_db)):
    page = compose_template(db, template_id, body.palette_id, body.colors,
                            body.content, body.mode)
    return success_response(data=composed_page_out(page))
