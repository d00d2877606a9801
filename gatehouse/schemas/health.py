"""Pydantic schemas for health check responses."""

from typing import Literal

from pydantic import Field

from gatehouse.schemas.base import CamelModel


class HealthResponse(CamelModel):
    """Response body for the health check endpoint."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    environment: str = Field(description="Current app environment (e.g. dev, prod)")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="Database connectivity status when check is performed",
    )
    audit_failures: int = Field(
        default=0,
        description="Audit writes that failed since process start",
    )
