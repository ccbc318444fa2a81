"""
Bike Registry Recovery Service - Main FastAPI Application
=========================================================

Theft reports, recoveries and the public recovery stories of a bike
registry, with promoted alert images and parking notifications.

Version: 1.0.0
"""

import sys
from pathlib import Path

# Add backend directory to Python path
sys.path.insert(0, str(Path(__file__).parent))

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import uvicorn

from config import settings
from database import init_db
from routes import bikes_router, stolen_records_router, theft_alerts_router
from utils.timeparse import utc_now

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan events handler.
    Handles startup and shutdown events.
    """
    logger.info("Starting Bike Registry Recovery Service...")

    logger.info("Initializing database...")
    try:
        init_db()
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise

    logger.info(f"Upload directory: {settings.UPLOAD_DIR}")
    logger.info(f"Alert image directory: {settings.ALERT_IMAGE_DIR}")

    yield

    logger.info("Shutting down Bike Registry Recovery Service...")


# API Tags for Swagger grouping
tags_metadata = [
    {
        "name": "Health",
        "description": "Service health check endpoints.",
    },
    {
        "name": "Bikes",
        "description": "Bike registration, photos, theft reports and parking notifications.",
    },
    {
        "name": "Stolen Records",
        "description": "Recoveries, alert images and recovery story curation.",
    },
    {
        "name": "Theft Alerts",
        "description": "Promoted alert campaigns for stolen bikes.",
    },
]

app = FastAPI(
    title="Bike Registry Recovery Service API",
    description="""
## Bike Registry Recovery Service

### Recovery workflow

```
1. Report stolen   -> new current stolen record, bike marked stolen
2. Promote         -> theft alert + generated alert image
3. Mark recovered  -> bike back with owner, alert image released,
                      admins notified once if an alert was active
4. Curate          -> recovery display status, public recovery story
```

### Recovery display status

| Status | Meaning |
|--------|---------|
| **not_eligible** | Still stolen, or the owner didn't agree to share |
| **displayable_no_photo** | Shareable, but the bike has no public photo |
| **waiting_on_decision** | Shareable with a photo, awaiting curation |
| **displayed** | Published as a recovery story |
| **not_displayed** | Curated out |
    """,
    version="1.0.0",
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions gracefully."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal server error",
            "detail": str(exc) if settings.DEBUG else "An error occurred"
        }
    )


# Include routers
app.include_router(bikes_router)
app.include_router(stolen_records_router)
app.include_router(theft_alerts_router)


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with service information."""
    return {
        "name": "Bike Registry Recovery Service",
        "version": "1.0.0",
        "status": "running",
        "documentation": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.
    Returns service status and component health.
    """
    services_status = {
        "database": "unknown",
        "admin_email": "unknown",
        "owner_email": "unknown"
    }

    # Check database
    try:
        from database import SessionLocal
        from sqlalchemy import text
        db = SessionLocal()
        db.execute(text("SELECT 1"))
        db.close()
        services_status["database"] = "healthy"
    except Exception as e:
        services_status["database"] = f"unhealthy: {str(e)}"

    # Email channels are optional; unconfigured means disabled, not broken
    from services import get_email_service
    from utils import get_brevo_service
    services_status["admin_email"] = "healthy" if get_email_service().is_configured() else "disabled"
    services_status["owner_email"] = "healthy" if get_brevo_service().is_configured() else "disabled"

    overall_status = "healthy" if services_status["database"] == "healthy" else "degraded"

    return {
        "status": overall_status,
        "version": "1.0.0",
        "timestamp": utc_now().isoformat(),
        "services": services_status
    }


# Run with uvicorn when executed directly
if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
