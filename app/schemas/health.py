"""Pydantic schemas for health check responses."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel


class HealthResponse(CamelModel):
    """Response body for the health check endpoint."""

    success: bool = Field(default=True)
    message: str = Field(default="BowlersNetwork Backend API is running")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Database connectivity status when check is performed",
    )
    timestamp: datetime
