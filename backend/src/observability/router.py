"""Health endpoint for load balancers and monitoring."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from database import get_db
from domain.storage.ports.blob_storage_port import BlobStoragePort
from infrastructure.storage import get_storage
from .health import HealthStatus, check_database_health, check_storage_health, get_overall_health

router = APIRouter(tags=["Observability"])


@router.get(
    "/health",
    summary="Health check endpoint",
    description="Returns health status of the database and file storage",
)
def health_check(
    db: Annotated[Session, Depends(get_db)],
    storage: Annotated[BlobStoragePort, Depends(get_storage)],
):
    """Check health of all system components.

    Returns 200 OK if all components are healthy, 503 if any are unhealthy.
    """
    components = {
        "database": check_database_health(db),
        "storage": check_storage_health(storage),
    }
    overall_status = get_overall_health(components)

    response_data = {
        "status": overall_status.value,
        "components": {name: comp.to_dict() for name, comp in components.items()},
    }
    status_code = 503 if overall_status == HealthStatus.UNHEALTHY else 200
    return JSONResponse(content=response_data, status_code=status_code)
