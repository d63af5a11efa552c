import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bizmanager.application.services.catalog_seed_service import CatalogSeedService
from bizmanager.infrastructure.config.settings import get_settings
from bizmanager.infrastructure.persistence.database import (AsyncSessionLocal,
                                                            create_tables,
                                                            engine, get_db)
from bizmanager.infrastructure.persistence.repositories import (
    ModuleActionRepository, ModuleRepository, PermissionRepository,
    RoleRepository, UserRepository)
from bizmanager.presentation.api.errors import register_exception_handlers
from bizmanager.presentation.api.v1.routes import companies, rbac
from bizmanager.presentation.middleware.correlation import CorrelationIDMiddleware
from bizmanager.presentation.middleware.rate_limit import limiter
from bizmanager.presentation.middleware.security import SecurityHeadersMiddleware
from bizmanager.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)

settings = get_settings()


async def seed_catalog() -> None:
    """Create tables and seed the global permission catalog"""
    await create_tables(engine)
    async with AsyncSessionLocal() as session:
        async with session.begin():
            result = await CatalogSeedService(
                module_repo=ModuleRepository(session),
                module_action_repo=ModuleActionRepository(session),
                permission_repo=PermissionRepository(session),
                role_repo=RoleRepository(session),
                user_repo=UserRepository(session),
            ).seed()
    logger.info(f"Catalog ready: {result}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    if settings.seed_catalog_on_startup:
        await seed_catalog()
    else:
        logger.info("Catalog seeding on startup disabled in configuration")

    yield

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

register_exception_handlers(app)

# Middleware (order matters - applied in reverse)
app.add_middleware(CorrelationIDMiddleware)
app.add_middleware(SecurityHeadersMiddleware)
# Security: Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(companies.router, prefix="/companies", tags=["companies"])
app.include_router(rbac.router, prefix="/rbac", tags=["rbac"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns:
    - 200 OK if the database answers
    - 503 Service Unavailable otherwise
    """
    checks: dict[str, Any] = {"api": True, "database": False}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})

    return {"status": "healthy", "checks": checks}
