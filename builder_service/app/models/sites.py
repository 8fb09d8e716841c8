import uuid
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import JSONB
from shared.core.database import Base
from shared.utils.timestamps import utcnow


def new_site_id() -> str:
    return str(uuid.uuid4())


class Site(Base):
    __tablename__ = "sites"
    __table_args__ = {'extend_existing': True}

    id = Column(String(36), primary_key=True, default=new_site_id)
    # null until the first authenticated save claims the site
    owner_id = Column(String(128), nullable=True, index=True)
    template_id = Column(String(128), nullable=False)
    business_type = Column(String(64), nullable=False)
    category = Column(String(64), nullable=False)
    design_data = Column(JSON().with_variant(JSONB, "postgresql"),
                         nullable=False, default=dict)

    site_slug = Column(String(64), unique=True, nullable=False)
    custom_domain = Column(String(255), unique=True, nullable=True)
    published_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False,
                        default=utcnow, index=True)
