import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.core.config import settings
from shared.core.database import Base, builder_engine
from shared.helpers.exception_handler import setup_exception_handlers
from shared.wrappers.response_wrapper import JsonResponseMiddleware
from .middleware.host_resolver_middleware import HostResolverMiddleware
from .models import sites, templates  # noqa: F401  (register tables)
from .router import (sites_router, templates_router, tenant_site_router,
                     user_sites_router)

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)

# Create all tables
Base.metadata.create_all(bind=builder_engine)

app = FastAPI(title="Site Builder Service API")

# 1️⃣ CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2️⃣ Custom JSON response wrapper middleware
app.add_middleware(JsonResponseMiddleware)

# 3️⃣ Host resolution runs first on every request (added last = outermost)
app.add_middleware(HostResolverMiddleware)

# Register exception handlers
setup_exception_handlers(app)

# Routers
app.include_router(sites_router.router)
app.include_router(user_sites_router.router)
app.include_router(templates_router.router)
app.include_router(tenant_site_router.router)


@app.get("/api/health")
def health():
    return {"status": "healthy"}
