"""Load the template catalog from disk into the database.

Layout: ``{catalog_dir}/{businessType}/{category}/{templateId}.json`` with the
markup next to it in ``{templateId}.html``.

    python -m builder_service.seed [catalog_dir]
"""
import json
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.database import Base, BuilderSessionLocal, builder_engine
from builder_service.app.crud import template_crud
from builder_service.app.models import sites, templates  # noqa: F401

logger = logging.getLogger(__name__)


def label_for(key: str) -> str:
    """heroTitle -> Hero Title"""
    words, current = [], ""
    for ch in key:
        if ch.isupper() and current:
            words.append(current)
            current = ch
        else:
            current += ch
    words.append(current)
    return " ".join(w.capitalize() for w in words if w)


def metadata_from_json(raw: Dict[str, Any], template_id: str, parts: List[str]) -> Dict[str, Any]:
    palettes = raw.get("palettes") or {}
    if not palettes and raw.get("colors"):
        palettes = {"default": raw["colors"]}

    content_keys = []
    for item in raw.get("contentKeys", []):
        if isinstance(item, str):
            item = {"key": item}
        default = item.get("default")
        content_keys.append({
            "key": item["key"],
            "label": item.get("label") or label_for(item["key"]),
            "default": "" if default is None else str(default),
        })

    return {
        "template_id": raw.get("id") or template_id,
        "name": raw.get("name") or template_id,
        "description": raw.get("description"),
        "business_type": raw.get("businessType") or (parts[0] if parts else "services"),
        "category": raw.get("category") or (parts[1] if len(parts) > 1 else "general"),
        "tags": raw.get("tags", []),
        "palettes": palettes,
        "content_keys": content_keys,
        "thumbnail_url": raw.get("thumbnailUrl") or raw.get("imageUrl"),
        "multi_page": bool(raw.get("multiPage", False)),
        "has_blog": bool(raw.get("hasBlog", False)),
        "has_gallery": bool(raw.get("hasGallery", False)),
    }


def load_catalog(db: Session, catalog_dir: Optional[str] = None) -> int:
    catalog_dir = catalog_dir or settings.TEMPLATE_CATALOG_DIR
    loaded = 0
    for root, _, files in sorted(os.walk(catalog_dir)):
        for name in sorted(files):
            if not name.endswith(".json"):
                continue
            template_id = name[:-len(".json")]
            html_path = os.path.join(root, template_id + ".html")
            if not os.path.exists(html_path):
                logger.warning("Skipping %s: no %s.html next to it", name, template_id)
                continue

            with open(os.path.join(root, name), encoding="utf-8") as f:
                raw = json.load(f)
            with open(html_path, "rb") as f:
                markup = f.read()

            rel_dir = os.path.relpath(root, catalog_dir)
            parts = [] if rel_dir == "." else rel_dir.split(os.sep)
            metadata = metadata_from_json(raw, template_id, parts)
            metadata["asset_key"] = "/".join(
                ["templates", *parts, template_id + ".html"])
            template_crud.upsert_template(db, metadata, markup)
            logger.info("Loaded template %s", metadata["template_id"])
            loaded += 1
    return loaded


def seed_data(catalog_dir: Optional[str] = None):
    Base.metadata.create_all(bind=builder_engine)
    db = BuilderSessionLocal()
    try:
        count = load_catalog(db, catalog_dir)
        logger.info("Seeded %d templates", count)
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s [%(levelname)s]: %(message)s")
    seed_data(sys.argv[1] if len(sys.argv) > 1 else None)
