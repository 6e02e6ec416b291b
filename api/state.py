"""
Thread-safe shared state for the voyage reporting API.

Per-request objects (sessions, stores, state machines) are built from the
request's database session; the only state shared between requests is the
vessel lock registry, held by the ApplicationState singleton.
"""
import threading
import logging
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from fastapi import Depends
from sqlalchemy.orm import Session

from api.config import settings
from api.database import get_db
from api.store import SqlReportStore
from src.reporting import ReportStateMachine, ReviewWorkflow, VesselLockRegistry

logger = logging.getLogger(__name__)


class ApplicationState:
    """
    Singleton application state manager.

    Use get_app_state() to access the singleton instance.
    """

    _instance: Optional['ApplicationState'] = None
    _lock: threading.Lock = threading.Lock()

    def __new__(cls):
        """Ensure singleton pattern."""
        if cls._instance is None:
            with cls._lock:
                # Double-check locking
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize application state (only once)."""
        if self._initialized:
            return

        self._initialized = True
        self._vessel_locks = VesselLockRegistry()
        self._startup_time = datetime.now(timezone.utc)

        logger.info("Application state initialized")

    @property
    def vessel_locks(self) -> VesselLockRegistry:
        """Per-vessel locks shared by all request handlers."""
        return self._vessel_locks

    @property
    def uptime_seconds(self) -> float:
        """Get application uptime in seconds."""
        return (datetime.now(timezone.utc) - self._startup_time).total_seconds()

    def health_check(self) -> Dict[str, Any]:
        return {
            'tracked_vessels': len(self._vessel_locks),
            'uptime_seconds': round(self.uptime_seconds, 1),
        }


def get_app_state() -> ApplicationState:
    """
    Get the application state singleton.

    Returns:
        ApplicationState: The singleton application state instance
    """
    return ApplicationState()


# =============================================================================
# FastAPI dependencies
# =============================================================================

def get_report_store(db: Session = Depends(get_db)) -> SqlReportStore:
    return SqlReportStore(db)


def get_state_machine(store: SqlReportStore = Depends(get_report_store)) -> ReportStateMachine:
    return ReportStateMachine(
        store,
        locks=get_app_state().vessel_locks,
        enforce_bls_limit=settings.enforce_bls_limit,
    )


def get_review_workflow(store: SqlReportStore = Depends(get_report_store)) -> ReviewWorkflow:
    return ReviewWorkflow(store, locks=get_app_state().vessel_locks)
