"""
Liveness endpoint reporting database and integration status.
"""
from typing import Any, Annotated, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, text

from app.core.config import settings
from app.core.database import get_session
from app.core.logging_config import log_warning
from app.core.time_utils import serialize_datetime, utc_now

router = APIRouter(tags=["health"])


def _database_status(session: Session) -> str:
    try:
        session.exec(text("SELECT 1")).first()
    except SQLAlchemyError as e:
        log_warning(f"Health check could not reach the database: {e}")
        return "disconnected"
    return "connected"


def _integration_status() -> Dict[str, str]:
    def state(configured: bool) -> str:
        return "configured" if configured else "not_configured"

    return {
        "immich": state(bool(settings.immich_base_url and settings.immich_api_key)),
        "auth": state(bool(settings.effective_jwks_url)),
    }


@router.get("/health", response_model=Dict[str, Any])
async def health_check(session: Annotated[Session, Depends(get_session)]):
    """
    Report service status. A database outage degrades the status but the
    endpoint still answers 200 so orchestrators can tell the process is up.
    """
    db_status = _database_status(session)
    return {
        "status": "healthy" if db_status == "connected" else "degraded",
        "timestamp": serialize_datetime(utc_now()),
        "service": settings.app_name,
        "version": settings.app_version,
        "database": db_status,
        "timezone": settings.local_timezone,
        "integrations": _integration_status(),
    }
