from fastapi import FastAPI, Request, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import os
import logging

from ..database.connection import DatabaseManager, get_db
from ..services.exceptions import ServiceError
from .routes import (
    auth, users, properties, tenants, leases, invoices, cheques, vendors, assets,
    work_orders, pm_schedules, compliance, announcements, jobs
)

# Configure logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Initialize FastAPI app with metadata
app = FastAPI(
    title="Building Manager API",
    description="Multi-organization building management API covering properties, tenants and leases, "
                "invoicing, post-dated cheques, maintenance work orders, vendors, assets, "
                "preventive maintenance, compliance and announcements.",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {
            "name": "Authentication",
            "description": "User authentication, registration, and password reset"
        },
        {
            "name": "Users",
            "description": "Organization user management"
        },
        {
            "name": "Properties",
            "description": "Properties and their rentable units"
        },
        {
            "name": "Tenants",
            "description": "Tenant onboarding and contact details"
        },
        {
            "name": "Leases",
            "description": "Lease expiry, extensions and renewal requests"
        },
        {
            "name": "Invoices",
            "description": "Rent invoices, payments and balances"
        },
        {
            "name": "Cheques",
            "description": "Post-dated cheques from receipt to clearance"
        },
        {
            "name": "Vendors",
            "description": "Vendor directory, documents, ratings and performance"
        },
        {
            "name": "Assets",
            "description": "Equipment and asset register"
        },
        {
            "name": "Work Orders",
            "description": "Maintenance work order lifecycle"
        },
        {
            "name": "PM Schedules",
            "description": "Recurring preventive maintenance"
        },
        {
            "name": "Compliance",
            "description": "Requirements, schedules, inspections and violations"
        },
        {
            "name": "Announcements",
            "description": "Tenant-facing announcements"
        },
        {
            "name": "Jobs",
            "description": "Daily maintenance jobs"
        }
    ]
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_exception_handler(request: Request, exc: ServiceError):
    """Answer business rule failures with their own status code."""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message}
    )


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


# Startup event
@app.on_event("startup")
async def startup_event():
    """Initialize database and perform startup tasks."""
    logger.info("Starting up Building Manager API...")

    try:
        DatabaseManager.init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Perform cleanup tasks on shutdown."""
    logger.info("Shutting down Building Manager API...")


# Health check endpoint
@app.get("/", tags=["Health"])
def health_check():
    """
    Health check endpoint.

    Returns basic API status and version information.
    """
    return {
        "message": "Building Manager API is healthy",
        "version": API_VERSION,
        "status": "operational"
    }


@app.get("/health", tags=["Health"])
def detailed_health_check():
    """
    Detailed health check endpoint.

    Reports database connectivity.
    """
    db = next(get_db())
    try:
        db.execute(text("SELECT 1")).scalar()
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service unhealthy - database connection failed"
        )
    finally:
        db.close()

    return {
        "status": "healthy",
        "version": API_VERSION,
        "database": "connected"
    }


# Include routers
app.include_router(auth.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(properties.router, prefix="/api/v1")
app.include_router(tenants.router, prefix="/api/v1")
app.include_router(leases.router, prefix="/api/v1")
app.include_router(invoices.router, prefix="/api/v1")
app.include_router(cheques.router, prefix="/api/v1")
app.include_router(vendors.router, prefix="/api/v1")
app.include_router(assets.router, prefix="/api/v1")
app.include_router(work_orders.router, prefix="/api/v1")
app.include_router(pm_schedules.router, prefix="/api/v1")
app.include_router(compliance.router, prefix="/api/v1")
app.include_router(announcements.router, prefix="/api/v1")
app.include_router(jobs.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "building_manager.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
