"""Health check endpoint with database connectivity check."""

from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from app.api.deps import get_app_settings
from app.core.config import Settings
from app.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(
    request: Request,
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> HealthResponse:
    """
    Return service health status and database connectivity.
    Used by load balancers and monitoring.
    """
    db_status = "connected" if request.app.state.db.is_connected() else "disconnected"

    return HealthResponse(
        environment=settings.APP_ENV,
        database=db_status,
        timestamp=datetime.now(timezone.utc),
    )
