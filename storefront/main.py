"""
Storefront - FastAPI Backend Application
"""

from contextlib import asynccontextmanager
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.middleware.sessions import SessionMiddleware
import structlog

from storefront.config import settings
from storefront.log import configure_logging
from storefront.api import (
    account,
    admin_categories,
    admin_customers,
    admin_dashboard,
    admin_products,
    admin_reservations,
    age,
    auth,
    cart,
    catalog,
    checkout,
)
from storefront.api.deps import require_age_verified

configure_logging()

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    logger.info("Starting Storefront API", version="1.0.0")
    yield
    logger.info("Shutting down Storefront API")


# Create FastAPI application
app = FastAPI(
    title="Storefront",
    description="Online catalog with in-store pickup reservations",
    version="1.0.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed cookie session holding the cart and the age gate flag
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.session_secret_key,
    max_age=settings.session_max_age_seconds,
    same_site="lax",
)


# Health check endpoints
@app.get("/health")
async def health():
    """Basic health check"""
    return {"status": "healthy", "service": "api", "version": "1.0.0"}


@app.get("/health/ready")
async def ready():
    """Readiness check with dependency verification"""
    from storefront.database import SessionLocal

    checks = {}

    # Check database
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"failed: {str(e)}"

    # Check Redis
    try:
        from storefront.jobs.celery_app import celery_app
        celery_app.control.ping(timeout=1)
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"failed: {str(e)}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
    }


age_gate = [Depends(require_age_verified)]

# Include API routers
app.include_router(age.router, prefix="/age-verification", tags=["Age Gate"])
app.include_router(catalog.router, tags=["Catalog"], dependencies=age_gate)
app.include_router(cart.router, prefix="/cart", tags=["Cart"], dependencies=age_gate)
app.include_router(checkout.router, tags=["Checkout"], dependencies=age_gate)
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(account.router, prefix="/account", tags=["Account"])

# Back office
app.include_router(admin_dashboard.router, prefix="/admin/dashboard", tags=["Admin"])
app.include_router(admin_products.router, prefix="/admin/products", tags=["Admin Products"])
app.include_router(admin_categories.router, prefix="/admin/categories", tags=["Admin Categories"])
app.include_router(admin_customers.router, prefix="/admin/customers", tags=["Admin Customers"])
app.include_router(admin_reservations.router, prefix="/admin/reservations", tags=["Admin Reservations"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_debug,
    )
