"""
FastAPI backend for vessel voyage reporting.

Provides REST API endpoints for:
- Report submission (departure, noon, arrival, berth)
- Shore-side review (approve / reject)
- Vessels, voyages and bunker ROB records

Version: 1.0.0
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from api.config import settings
from api.database import init_db
from api.errors import register_exception_handlers
from api.middleware import setup_middleware
from api.routers import reports, system, vessels, voyages

# Configure logging; request logs are JSON lines from api.middleware
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """
    Application factory for the voyage reporting API.

    Creates and configures the FastAPI application with middleware,
    exception handlers and routers.

    Returns:
        FastAPI: Configured application instance
    """
    application = FastAPI(
        title="Voyage Report API",
        description="""
## Vessel Voyage Reporting API

Vessels submit departure, noon, arrival and berth reports; shore staff
approve or reject them. Each approved report becomes the baseline for the
next: distance-to-go and fuel remaining-on-board (ROB) are carried forward
from it.

### Report sequence
departure -> noon (noon / sosp / rosp) ... -> arrival -> berth ... -> departure

Only one report per voyage can be pending review at a time.
        """,
        version="1.0.0",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    setup_middleware(
        application,
        debug=settings.debug or settings.is_development,
        enable_hsts=settings.is_production,
    )

    # CORS middleware - use configured origins only (NO WILDCARDS)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=settings.cors_credentials,
        allow_methods=[m.strip() for m in settings.cors_methods.split(",")],
        allow_headers=[h.strip() for h in settings.cors_headers.split(",")],
    )

    register_exception_handlers(application)

    application.include_router(system.router)
    application.include_router(reports.router)
    application.include_router(vessels.router)
    application.include_router(voyages.router)

    if settings.is_sqlite:
        # SQLite deployments have no migration step; create tables on startup
        init_db()

    logger.info(f"Voyage Report API created (environment={settings.environment})")
    return application


app = create_app()


# ============================================================================
# Run Server
# ============================================================================

if __name__ == "__main__":
    uvicorn.run(
        "api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
