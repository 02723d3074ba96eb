"""Health checks for the database and blob storage."""

import time
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.storage.ports.blob_storage_port import BlobStoragePort
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    DEGRADED = "degraded"


@dataclass
class ComponentHealth:
    """Health status for a single component."""
    status: HealthStatus
    message: Optional[str] = None
    latency_ms: Optional[float] = None

    def to_dict(self) -> dict:
        return {"status": self.status.value, "message": self.message, "latency_ms": self.latency_ms}


def check_database_health(db: Session) -> ComponentHealth:
    """Run SELECT 1 against the database."""
    try:
        start = time.perf_counter()
        db.execute(text("SELECT 1"))
        latency_ms = (time.perf_counter() - start) * 1000
        return ComponentHealth(
            status=HealthStatus.HEALTHY,
            message="Database connection OK",
            latency_ms=round(latency_ms, 2)
        )
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}", exc_info=True)
        return ComponentHealth(status=HealthStatus.UNHEALTHY, message=f"Database error: {e}")


def check_storage_health(storage: BlobStoragePort) -> ComponentHealth:
    """Ask the storage adapter whether its root or bucket is reachable."""
    start = time.perf_counter()
    healthy = storage.health_check()
    latency_ms = round((time.perf_counter() - start) * 1000, 2)
    if healthy:
        return ComponentHealth(status=HealthStatus.HEALTHY, message="Storage OK", latency_ms=latency_ms)
    logger.error("Storage health check failed")
    return ComponentHealth(status=HealthStatus.UNHEALTHY, message="Storage unavailable", latency_ms=latency_ms)


def get_overall_health(components: Dict[str, ComponentHealth]) -> HealthStatus:
    """Healthy if all are healthy, unhealthy if any is unhealthy, else degraded."""
    if all(c.status == HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.HEALTHY

    if any(c.status == HealthStatus.UNHEALTHY for c in components.values()):
        return HealthStatus.UNHEALTHY

    return HealthStatus.DEGRADED
