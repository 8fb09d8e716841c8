from sqlalchemy import Boolean, Column, String, Text, DateTime, JSON, LargeBinary
from sqlalchemy.dialects.postgresql import JSONB
from shared.core.database import Base
from shared.utils.timestamps import utcnow


class TemplateMetadata(Base):
    __tablename__ = "template_metadata"
    __table_args__ = {'extend_existing': True}

    template_id = Column(String(128), primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    business_type = Column(String(64), nullable=False, index=True)
    category = Column(String(64), nullable=False, index=True)
    tags = Column(JSON().with_variant(JSONB, "postgresql"), default=list)
    # {"default": {"primary": "#1f2937", ...}, "ocean": {...}}
    # plain json keeps declared key order, jsonb would sort it
    palettes = Column(JSON, default=dict)
    # [{"key": "heroTitle", "label": "Hero Title", "default": "..."}]
    content_keys = Column(JSON().with_variant(JSONB, "postgresql"), default=list)
    thumbnail_url = Column(String(500))
    asset_key = Column(String(255), nullable=False)
    multi_page = Column(Boolean, default=False)
    has_blog = Column(Boolean, default=False)
    has_gallery = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class TemplateAsset(Base):
    """Immutable template markup, stored as opaque bytes by key."""
    __tablename__ = "template_assets"
    __table_args__ = {'extend_existing': True}

    key = Column(String(255), primary_key=True)
    content = Column(LargeBinary, nullable=False)
    content_type = Column(String(100), default="text/html")
    created_at = Column(DateTime(timezone=True), default=utcnow)
