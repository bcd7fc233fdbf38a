"""Common Pydantic models shared across services."""

from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field


class HealthStatus(str, Enum):
    """Health status enum."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ServiceInfo(BaseModel):
    """Liveness response."""

    status: HealthStatus = Field(..., description="Service health status")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    environment: str = Field(..., description="Deployment environment")

    model_config = {"use_enum_values": True}


class ReadinessInfo(BaseModel):
    """Readiness response with per-dependency checks."""

    status: str = Field(..., description="ready or not_ready")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    checks: Dict[str, HealthStatus] = Field(
        default_factory=dict, description="Dependency health status"
    )

    model_config = {"use_enum_values": True}

    @property
    def is_ready(self) -> bool:
        """True when every dependency is healthy."""
        return all(check == HealthStatus.HEALTHY for check in self.checks.values())
