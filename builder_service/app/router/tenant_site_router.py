import html
import logging
from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session

from shared.core.database import get_builder_db as get_db
from shared.core.exceptions import NotFound
from ..crud import site_crud as crud
from ..enum.site_enum import RenderMode
from ..services.template_compositor import compose_site

logger = logging.getLogger(__name__)

router = APIRouter(tags=["tenant sites"])

# single page templates only serve the document root
INDEX_PATHS = ("", "/", "/index.html")

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Site Not Found</title></head>
<body>
<h1>{title}</h1>
<p>{detail}</p>
</body>
</html>
"""


def not_found_page(title: str, detail: str) -> HTMLResponse:
    return HTMLResponse(
        NOT_FOUND_PAGE.format(title=html.escape(title), detail=html.escape(detail)),
        status_code=404,
    )


@router.api_route("/site/{host}{page_path:path}", methods=["GET", "HEAD"],
                  response_class=HTMLResponse)
def read_tenant_page(host: str, page_path: str, db: Session = Depends(get_db)):
    try:
        site = crud.get_published_site_by_host(db, host)
    except NotFound:
        logger.info("No published site for host %s", host)
        return not_found_page("Site Not Found", f"The site for {host} does not exist.")

    if page_path not in INDEX_PATHS:
        return not_found_page("Page Not Found",
                              "Sorry, we couldn't find the content you're looking for.")

    page = compose_site(db, site, RenderMode.PUBLISH)
    return HTMLResponse(page.html)


# published sites are read-only; writes never reach the builder API envelopes
@router.api_route("/site/{host}{page_path:path}",
                  methods=["POST", "PUT", "PATCH", "DELETE"],
                  response_class=HTMLResponse)
def reject_tenant_write(host: str, page_path: str):
    logger.info("Rejected write to tenant page %s%s", host, page_path)
    return not_found_page("Page Not Found",
                          "Sorry, we couldn't find the content you're looking for.")
