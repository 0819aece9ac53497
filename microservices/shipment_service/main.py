"""
Shipment Service Main Application

FastAPI admin API over the shipment repository.
Port: 8260
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from core.config import configure_logging, get_settings

from .factory import ShipmentServiceFactory
from .models import (
    BulkDeleteRequest,
    BulkStatusRequest,
    HealthResponse,
    LocationUpdateRequest,
    Shipment,
    ShipmentListResponse,
    StatusChangeRequest,
)
from .protocols import (
    ConflictError,
    DuplicateTrackingNumberError,
    ShipmentNotFoundError,
    ShipmentValidationError,
    StoreUnavailableError,
)
from .routes_registry import SERVICE_METADATA, get_route_summary
from .shipment_repository import ShipmentRepository
from .status_engine import color_class_for, status_label
from .validation import parse_model

settings = get_settings()
configure_logging(settings.logging)
logger = logging.getLogger(__name__)

# Service configuration
SERVICE_NAME = "shipment_service"
SERVICE_PORT = settings.service_port
SERVICE_VERSION = SERVICE_METADATA["version"]

# Global factory instance
factory: Optional[ShipmentServiceFactory] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    global factory

    logger.info(f"Starting {SERVICE_NAME} on port {SERVICE_PORT}")

    factory = ShipmentServiceFactory(settings)
    await factory.initialize()

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")
    await factory.close()
    factory = None


app = FastAPI(
    title="Shipment Service",
    description="Shipment tracking back office: shipment CRUD, status workflow and tracking history",
    version=SERVICE_VERSION,
    lifespan=lifespan,
)


# ====================
# Exception Handlers
# ====================


@app.exception_handler(ShipmentValidationError)
async def validation_error_handler(request: Request, exc: ShipmentValidationError):
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": str(exc), "field": exc.field, "reason": exc.reason},
    )


@app.exception_handler(ShipmentNotFoundError)
async def shipment_not_found_handler(request: Request, exc: ShipmentNotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": str(exc)},
    )


@app.exception_handler(DuplicateTrackingNumberError)
async def duplicate_tracking_number_handler(request: Request, exc: DuplicateTrackingNumberError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={"detail": str(exc), "trackingNumber": exc.tracking_number},
    )


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError):
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": str(exc),
            "expectedRevision": exc.expected_revision,
            "actualRevision": exc.actual_revision,
        },
    )


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
    logger.error(f"Store unavailable while handling {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": str(exc)},
    )


# ====================
# Dependencies
# ====================


def get_repository() -> ShipmentRepository:
    """Get shipment repository from factory"""
    if factory is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service not initialized",
        )
    return factory.repository


def shipment_view(shipment: Shipment) -> Dict[str, Any]:
    """Wire document plus derived display facts"""
    document = shipment.to_document()
    document["statusColor"] = color_class_for(shipment.status).value
    document["statusLabel"] = status_label(shipment.status)
    drift = ShipmentRepository.status_drift(shipment)
    document["statusDrift"] = drift.value if drift else None
    return document


# ====================
# Health Endpoints
# ====================


@app.get("/", tags=["Health"])
async def service_info():
    """Service info and route metadata"""
    return {**SERVICE_METADATA, **get_route_summary()}


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(repository: ShipmentRepository = Depends(get_repository)):
    """Health check endpoint"""
    store_healthy = await repository.health_check()
    health = HealthResponse(
        status="healthy" if store_healthy else "degraded",
        service=SERVICE_NAME,
        version=SERVICE_VERSION,
        store_backend=settings.store.backend,
        store_healthy=store_healthy,
    )
    return JSONResponse(
        content=health.model_dump(),
        status_code=status.HTTP_200_OK if store_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
    )


# ====================
# Shipment Endpoints
# ====================


@app.get("/api/v1/shipments", response_model=ShipmentListResponse, tags=["Shipments"])
async def list_shipments(
    search: str = Query("", description="Match tracking number, receiver name or destination city"),
    status_filter: Optional[str] = Query(None, alias="status", description="Only shipments in this status"),
    sort: str = Query("shipDate", description="Sort field, e.g. shipDate, status, receiver.name"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    repository: ShipmentRepository = Depends(get_repository),
):
    """List shipments, optionally filtered and sorted"""
    shipments = await repository.search_shipments(
        term=search,
        status=status_filter,
        sort_field=sort,
        descending=order == "desc",
    )
    return ShipmentListResponse(
        shipments=[shipment_view(s) for s in shipments],
        count=len(shipments),
    )


@app.post("/api/v1/shipments", status_code=status.HTTP_201_CREATED, tags=["Shipments"])
async def create_shipment(
    draft: Dict[str, Any] = Body(...),
    repository: ShipmentRepository = Depends(get_repository),
):
    """Create a shipment; a tracking number is generated when omitted"""
    shipment = await repository.create_shipment(draft)
    return shipment_view(shipment)


@app.post("/api/v1/shipments/bulk/status", tags=["Bulk"])
async def bulk_change_status(
    body: Dict[str, Any] = Body(...),
    repository: ShipmentRepository = Depends(get_repository),
):
    """Change the status of several shipments, stopping at the first failure"""
    request = parse_model(BulkStatusRequest, body)
    shipments = await repository.bulk_change_status(request.keys, request.status)
    return {"shipments": [shipment_view(s) for s in shipments], "count": len(shipments)}


@app.post("/api/v1/shipments/bulk/delete", tags=["Bulk"])
async def bulk_delete(
    body: Dict[str, Any] = Body(...),
    repository: ShipmentRepository = Depends(get_repository),
):
    """Delete several shipments, stopping at the first failure"""
    request = parse_model(BulkDeleteRequest, body)
    deleted = await repository.bulk_delete(request.keys)
    return {"success": True, "deleted": deleted}


@app.get("/api/v1/shipments/{key}", tags=["Shipments"])
async def get_shipment(key: str, repository: ShipmentRepository = Depends(get_repository)):
    """Get a shipment by tracking number or id"""
    return shipment_view(await repository.get_shipment(key))


@app.patch("/api/v1/shipments/{key}", tags=["Shipments"])
async def update_shipment(
    key: str,
    patch: Dict[str, Any] = Body(...),
    repository: ShipmentRepository = Depends(get_repository),
):
    """Merge top-level fields into a shipment"""
    return shipment_view(await repository.update_shipment(key, patch))


@app.delete("/api/v1/shipments/{key}", tags=["Shipments"])
async def delete_shipment(key: str, repository: ShipmentRepository = Depends(get_repository)):
    """Permanently delete a shipment"""
    await repository.delete_shipment(key)
    return {"success": True, "message": f"Shipment {key} deleted"}


@app.post("/api/v1/shipments/{key}/status", tags=["Tracking"])
async def change_status(
    key: str,
    body: Dict[str, Any] = Body(...),
    repository: ShipmentRepository = Depends(get_repository),
):
    """Set the shipment status and record the matching tracking event"""
    request = parse_model(StatusChangeRequest, body)
    return shipment_view(await repository.change_status(key, request.status))


@app.post("/api/v1/shipments/{key}/events", tags=["Tracking"])
async def add_tracking_event(
    key: str,
    event: Dict[str, Any] = Body(...),
    repository: ShipmentRepository = Depends(get_repository),
):
    """Prepend a tracking event"""
    return shipment_view(await repository.add_tracking_event(key, event))


@app.post("/api/v1/shipments/{key}/location", tags=["Tracking"])
async def update_location(
    key: str,
    body: Dict[str, Any] = Body(...),
    repository: ShipmentRepository = Depends(get_repository),
):
    """Record a location update"""
    request = parse_model(LocationUpdateRequest, body)
    return shipment_view(await repository.update_location(key, request.location, request.details))


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "microservices.shipment_service.main:app",
        host=settings.service_host,
        port=SERVICE_PORT,
        reload=False,
        log_level=settings.logging.log_level.lower(),
    )
