"""
System API router: root endpoint and health check.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from api.database import get_db
from api.middleware import get_request_id
from api.state import get_app_state

router = APIRouter(tags=["System"])

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@router.get("/")
async def root():
    """
    API root endpoint.

    Returns basic API information and available endpoint categories.
    """
    return {
        "name": "Voyage Report API",
        "version": API_VERSION,
        "status": "operational",
        "docs": "/api/docs",
        "endpoints": {
            "health": "/api/health",
            "reports": "/api/reports/...",
            "vessels": "/api/vessels/...",
            "voyages": "/api/voyages/...",
        }
    }


@router.get("/api/health")
def health_check(db=Depends(get_db)):
    """
    Health check for load balancers.

    Returns:
        - status: healthy, or unhealthy when the database is unreachable
        - timestamp: Current UTC timestamp
        - components: database and application state
    """
    try:
        db.execute(text("SELECT 1"))
        database = {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        database = {"status": "unhealthy", "error": type(e).__name__}

    return {
        "status": database["status"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": API_VERSION,
        "request_id": get_request_id(),
        "components": {
            "database": database,
            "application": get_app_state().health_check(),
        },
    }
