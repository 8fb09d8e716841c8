from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from shared.core.config import BUILDER_DATABASE_URL

Base = declarative_base()

POOL_SIZE = 2
MAX_OVERFLOW = 2


def build_engine(url: str):
    # sqlite is only used for local runs and tests; one shared in-memory connection
    if url.startswith("sqlite"):
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=300,
        pool_size=POOL_SIZE,          # max idle connections
        max_overflow=MAX_OVERFLOW,      # max temporary extra connections
        pool_timeout=30       # wait time before failing
    )


# Builder DB (sites + template catalog)
builder_engine = build_engine(BUILDER_DATABASE_URL)
BuilderSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, bind=builder_engine)


# Dependency
def get_builder_db():
    db = BuilderSessionLocal()
    try:
        yield db
    finally:
        db.close()
